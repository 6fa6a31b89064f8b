"""
Feed retrieval endpoint: GET /feed

Posts by everyone the logged-in user follows, newest first. Following
nobody gives an empty list. The whole result set is returned on every call.
"""
import logging
import time

from fastapi import APIRouter, Depends
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.database import get_db
from triptalk.gateway import RequestContext, require_context, resolve
from triptalk.schemas import ContentResponse
from triptalk.stores.feed import build_feed
from triptalk.telemetry import FEED_LATENCY, FEED_POSTS_RETURNED

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get("/feed", response_model=list[ContentResponse])
async def get_feed(
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    start_time = time.time()

    with tracer.start_as_current_span("get_feed") as span:
        span.set_attribute("user.username", ctx.username)
        posts = await resolve(build_feed(db, ctx.username))

        latency = time.time() - start_time
        FEED_LATENCY.observe(latency)
        FEED_POSTS_RETURNED.observe(len(posts))
        span.set_attribute("feed.posts_returned", len(posts))
        logger.debug(
            "Feed for %s: %d posts in %.1fms", ctx.username, len(posts), latency * 1000
        )
        return posts
