"""
Content endpoints:
  POST   /contents                 - create a post
  GET    /contents?q=              - search / list posts, newest first
  POST   /contents/{id}/like       - like a post
  DELETE /contents/{id}/like       - remove own like
  GET    /contents/{id}/likes      - like count + usernames
  POST   /contents/{id}/comments   - comment on a post
  GET    /contents/{id}/comments   - comments, oldest first
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.database import get_db
from triptalk.gateway import RequestContext, require_context, resolve
from triptalk.schemas import (
    CommentCreate,
    CommentResponse,
    ContentCreate,
    ContentResponse,
    LikesResponse,
    MessageResponse,
)
from triptalk.stores import content, interactions
from triptalk.telemetry import POSTS_CREATED_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/contents", response_model=ContentResponse, status_code=status.HTTP_201_CREATED)
async def create_content(
    body: ContentCreate,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("create_content") as span:
        post = await resolve(content.create_post(db, ctx.username, body.text, body.image_url))
        span.set_attribute("content.id", post.id)
        POSTS_CREATED_TOTAL.inc()
        return post


@router.get("/contents", response_model=list[ContentResponse])
async def search_contents(
    q: Optional[str] = Query(None, description="Case-insensitive text substring"),
    db: AsyncSession = Depends(get_db),
):
    return await resolve(content.search_posts(db, q))


# ── Likes ──────────────────────────────────────────────────────────────────

@router.post("/contents/{content_id}/like", response_model=MessageResponse)
async def like_content(
    content_id: str,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("like_content"):
        await resolve(interactions.like(db, content_id, ctx.username))
        return MessageResponse(message="Post liked.")


@router.delete("/contents/{content_id}/like", response_model=MessageResponse)
async def unlike_content(
    content_id: str,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    await resolve(interactions.unlike(db, content_id, ctx.username))
    return MessageResponse(message="Like removed.")


@router.get("/contents/{content_id}/likes", response_model=LikesResponse)
async def list_likes(content_id: str, db: AsyncSession = Depends(get_db)):
    users = await resolve(interactions.list_likers(db, content_id))
    count = await resolve(interactions.count_likes(db, content_id))
    return LikesResponse(count=count, users=users)


# ── Comments ───────────────────────────────────────────────────────────────

@router.post(
    "/contents/{content_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    content_id: str,
    body: CommentCreate,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("add_comment"):
        return await resolve(interactions.add_comment(db, content_id, ctx.username, body.text))


@router.get("/contents/{content_id}/comments", response_model=list[CommentResponse])
async def list_comments(content_id: str, db: AsyncSession = Depends(get_db)):
    return await resolve(interactions.list_comments(db, content_id))
