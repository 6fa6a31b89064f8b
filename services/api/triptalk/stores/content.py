"""Content store: posts authored by users, listed newest first."""
import logging
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.models import Content, utcnow
from triptalk.results import ErrorKind, Result, failure, success

logger = logging.getLogger(__name__)


async def create_post(
    db: AsyncSession,
    author: str,
    text: Optional[str],
    image_url: Optional[str] = None,
) -> Result[Content]:
    body = (text or "").strip()
    if not body:
        return failure(ErrorKind.VALIDATION, "Content text is required.")

    post = Content(
        username=author,
        text=body,
        image_url=image_url or "",
        created_at=utcnow(),
    )
    db.add(post)
    await db.commit()
    logger.info("Post created: %s by %s", post.id, author)
    return success(post)


async def search_posts(db: AsyncSession, query: Optional[str]) -> Result[list[Content]]:
    stmt = select(Content).order_by(Content.created_at.desc())
    term = (query or "").strip()
    if term:
        stmt = stmt.where(func.lower(Content.text).contains(term.lower(), autoescape=True))
    rows = await db.execute(stmt)
    return success(list(rows.scalars().all()))


async def list_by_authors(db: AsyncSession, authors: Iterable[str]) -> Result[list[Content]]:
    """
    Posts written by any of `authors`, newest first.

    An empty author set yields an empty list, never "all posts".
    """
    names = list(authors)
    if not names:
        return success([])
    rows = await db.execute(
        select(Content)
        .where(Content.username.in_(names))
        .order_by(Content.created_at.desc())
    )
    return success(list(rows.scalars().all()))
