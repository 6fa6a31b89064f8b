"""
Interaction store: likes and comments attached to a content by id.

A like is keyed by (content_id, username); liking twice is a primary-key
violation and comes back as CONFLICT. Comments are append-only and are read
oldest first, as a conversation.
"""
import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.models import Comment, Content, Like, is_well_formed_id, utcnow
from triptalk.results import ErrorKind, Result, failure, success

logger = logging.getLogger(__name__)

INVALID_CONTENT_ID = "Invalid content ID."


async def like(db: AsyncSession, content_id: str, username: str) -> Result[Like]:
    if not is_well_formed_id(content_id):
        return failure(ErrorKind.VALIDATION, INVALID_CONTENT_ID)
    if await db.get(Content, content_id) is None:
        return failure(ErrorKind.NOT_FOUND, "Content not found.")

    row = Like(content_id=content_id, username=username, created_at=utcnow())
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return failure(ErrorKind.CONFLICT, "You already liked this post.")

    logger.debug("%s liked %s", username, content_id)
    return success(row)


async def unlike(db: AsyncSession, content_id: str, username: str) -> Result[None]:
    if not is_well_formed_id(content_id):
        return failure(ErrorKind.VALIDATION, INVALID_CONTENT_ID)

    result = await db.execute(
        delete(Like).where(Like.content_id == content_id, Like.username == username)
    )
    if result.rowcount == 0:
        await db.rollback()
        return failure(ErrorKind.NOT_FOUND, "Like not found.")
    await db.commit()
    return success(None)


async def count_likes(db: AsyncSession, content_id: str) -> Result[int]:
    if not is_well_formed_id(content_id):
        return failure(ErrorKind.VALIDATION, INVALID_CONTENT_ID)
    count = await db.scalar(
        select(func.count()).select_from(Like).where(Like.content_id == content_id)
    )
    return success(count or 0)


async def list_likers(db: AsyncSession, content_id: str) -> Result[list[str]]:
    if not is_well_formed_id(content_id):
        return failure(ErrorKind.VALIDATION, INVALID_CONTENT_ID)
    rows = await db.execute(
        select(Like.username)
        .where(Like.content_id == content_id)
        .order_by(Like.created_at)
    )
    return success([r[0] for r in rows.all()])


async def add_comment(
    db: AsyncSession, content_id: str, username: str, text: Optional[str]
) -> Result[Comment]:
    body = (text or "").strip()
    if not body:
        return failure(ErrorKind.VALIDATION, "Comment text is required.")
    if not is_well_formed_id(content_id):
        return failure(ErrorKind.VALIDATION, INVALID_CONTENT_ID)
    if await db.get(Content, content_id) is None:
        return failure(ErrorKind.NOT_FOUND, "Content not found.")

    comment = Comment(
        content_id=content_id,
        username=username,
        text=body,
        created_at=utcnow(),
    )
    db.add(comment)
    await db.commit()
    return success(comment)


async def list_comments(db: AsyncSession, content_id: str) -> Result[list[Comment]]:
    if not is_well_formed_id(content_id):
        return failure(ErrorKind.VALIDATION, INVALID_CONTENT_ID)
    rows = await db.execute(
        select(Comment)
        .where(Comment.content_id == content_id)
        .order_by(Comment.created_at.asc())
    )
    return success(list(rows.scalars().all()))
