"""
Social graph endpoints:
  POST   /follow                         - follow {usernameToFollow}
  DELETE /follow                         - unfollow {usernameToUnfollow}
  POST   /friend-requests                - send {toUsername}
  GET    /friend-requests                - pending requests addressed to me
  POST   /friend-requests/{id}/accept    - accept; both users follow each other
"""
import logging

from fastapi import APIRouter, Depends, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.database import get_db
from triptalk.gateway import RequestContext, require_context, require_field, resolve
from triptalk.schemas import (
    FollowCreate,
    FollowDelete,
    FollowResponse,
    FollowResult,
    FriendRequestAccepted,
    FriendRequestCreate,
    FriendRequestResponse,
    MessageResponse,
)
from triptalk.stores import graph

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/follow", response_model=FollowResult)
async def follow_user(
    body: FollowCreate,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("follow_user"):
        target = require_field(body.username_to_follow, "You must provide 'usernameToFollow'.")
        edge = await resolve(graph.follow(db, ctx.username, target))
        return FollowResult(
            message="Now following user.",
            follow=FollowResponse.model_validate(edge),
        )


@router.delete("/follow", response_model=MessageResponse)
async def unfollow_user(
    body: FollowDelete,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("unfollow_user"):
        target = require_field(
            body.username_to_unfollow, "You must provide 'usernameToUnfollow'."
        )
        await resolve(graph.unfollow(db, ctx.username, target))
        return MessageResponse(message="Unfollowed user.")


# ── Friend requests ────────────────────────────────────────────────────────

@router.post(
    "/friend-requests",
    response_model=FriendRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_friend_request(
    body: FriendRequestCreate,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("send_friend_request"):
        target = require_field(body.to_username, "You must provide 'toUsername'.")
        return await resolve(graph.send_friend_request(db, ctx.username, target))


@router.get("/friend-requests", response_model=list[FriendRequestResponse])
async def list_friend_requests(
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    return await resolve(graph.list_incoming_requests(db, ctx.username))


@router.post("/friend-requests/{request_id}/accept", response_model=FriendRequestAccepted)
async def accept_friend_request(
    request_id: str,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("accept_friend_request"):
        request = await resolve(graph.accept_friend_request(db, request_id, ctx.username))
        return FriendRequestAccepted(
            message="Friend request accepted.",
            request=FriendRequestResponse.model_validate(request),
        )
