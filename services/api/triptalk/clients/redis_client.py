"""
Redis client wrapper.

Responsibilities:
  • Sessions - STRING keyed by session:{session_id}
               value = username, TTL = settings.session_ttl_seconds

The session id is an opaque random token handed to the browser in an
HTTP-only cookie; the gateway resolves it to a username on every request.
"""
import logging
import secrets
from typing import Optional

import redis.asyncio as aioredis

from triptalk.config import settings

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    global _redis
    _redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
    )
    await _redis.ping()
    logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)


async def close_redis() -> None:
    if _redis is not None:
        await _redis.aclose()


def get_redis() -> aioredis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialised: call init_redis() at startup")
    return _redis


# ─────────────────────── Sessions (STRING) ────────────────────────────────

SESSION_KEY = "session:{session_id}"


async def create_session(username: str) -> str:
    """Bind a fresh session id to `username` and return the id."""
    session_id = secrets.token_urlsafe(32)
    await get_redis().set(
        SESSION_KEY.format(session_id=session_id),
        username,
        ex=settings.session_ttl_seconds,
    )
    return session_id


async def get_session_username(session_id: str) -> Optional[str]:
    return await get_redis().get(SESSION_KEY.format(session_id=session_id))


async def destroy_session(session_id: str) -> None:
    """Idempotent: deleting an unknown session is a no-op."""
    await get_redis().delete(SESSION_KEY.format(session_id=session_id))
