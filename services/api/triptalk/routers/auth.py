"""
Login endpoints (session cookie):
  GET    /login - login status
  POST   /login - check credentials and open a session
  DELETE /login - close the session (idempotent)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.clients.redis_client import create_session, destroy_session
from triptalk.config import settings
from triptalk.database import get_db
from triptalk.gateway import RequestContext, bounded, optional_context, resolve
from triptalk.schemas import LoginRequest, LoginStatus, MessageResponse, UserResponse
from triptalk.stores import identity

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get("/login", response_model=LoginStatus, response_model_exclude_none=True)
async def login_status(
    response: Response,
    ctx: Optional[RequestContext] = Depends(optional_context),
    db: AsyncSession = Depends(get_db),
):
    if ctx is None:
        return LoginStatus(logged_in=False)

    result = await bounded(identity.get_profile(db, ctx.username))
    if not result.ok:
        await destroy_session(ctx.session_id)
        response.delete_cookie(settings.session_cookie_name)
        return LoginStatus(logged_in=False)
    return LoginStatus(logged_in=True, user=UserResponse.model_validate(result.value))


@router.post("/login", response_model=LoginStatus)
async def login(body: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    with tracer.start_as_current_span("login"):
        user = await resolve(identity.authenticate(db, body.username, body.password))

        session_id = await create_session(user.username)
        response.set_cookie(
            settings.session_cookie_name,
            session_id,
            max_age=settings.session_ttl_seconds,
            httponly=True,
            samesite="lax",
        )
        logger.info("User %s logged in", user.username)
        return LoginStatus(logged_in=True, user=UserResponse.model_validate(user))


@router.delete("/login", response_model=MessageResponse)
async def logout(
    response: Response,
    ctx: Optional[RequestContext] = Depends(optional_context),
):
    response.delete_cookie(settings.session_cookie_name)
    if ctx is None:
        return MessageResponse(message="Not logged in, but logout complete.")
    await destroy_session(ctx.session_id)
    logger.info("User %s logged out", ctx.username)
    return MessageResponse(message="Logged out successfully.")
