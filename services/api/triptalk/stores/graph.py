"""
Social graph store: directed follow edges and friend requests.

Follow edges are keyed by (follower, followee) so a duplicate follow is a
primary-key violation, reported as CONFLICT. Accepting a friend request
flips the request to `accepted` with a conditional UPDATE and writes both
follow directions in the same transaction; an edge that already exists is
kept as-is.
"""
import logging
from datetime import datetime

from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from triptalk.models import (
    Follow,
    FriendRequest,
    FriendRequestStatus,
    User,
    is_well_formed_id,
    pending_key_for,
    utcnow,
)
from triptalk.results import ErrorKind, Result, failure, success

logger = logging.getLogger(__name__)


async def follow(db: AsyncSession, follower: str, followee: str) -> Result[Follow]:
    """Create a follower → followee edge."""
    if follower == followee:
        return failure(ErrorKind.SELF_REFERENCE, "You cannot follow yourself.")
    if await db.get(User, followee) is None:
        return failure(ErrorKind.NOT_FOUND, "User to follow does not exist.")

    edge = Follow(
        follower_username=follower,
        followee_username=followee,
        created_at=utcnow(),
    )
    db.add(edge)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return failure(ErrorKind.CONFLICT, "You already follow this user.")

    logger.info("%s followed %s", follower, followee)
    return success(edge)


async def unfollow(db: AsyncSession, follower: str, followee: str) -> Result[None]:
    result = await db.execute(
        delete(Follow).where(
            Follow.follower_username == follower,
            Follow.followee_username == followee,
        )
    )
    if result.rowcount == 0:
        await db.rollback()
        return failure(ErrorKind.NOT_FOUND, "You were not following this user.")
    await db.commit()
    logger.info("%s unfollowed %s", follower, followee)
    return success(None)


async def list_followees(db: AsyncSession, follower: str) -> Result[set[str]]:
    rows = await db.execute(
        select(Follow.followee_username).where(Follow.follower_username == follower)
    )
    return success({r[0] for r in rows.all()})


async def add_follow_edges(
    db: AsyncSession, pairs: list[tuple[str, str]], created_at: datetime
) -> None:
    """
    Insert (follower, followee) edges inside the caller's transaction.

    Edges that already exist, including ones committed concurrently, are
    skipped by the database instead of failing the statement.
    """
    rows = [
        {"follower_username": a, "followee_username": b, "created_at": created_at}
        for a, b in pairs
    ]
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        stmt = sqlite_insert(Follow).values(rows).on_conflict_do_nothing()
    else:
        # MySQL / TiDB
        stmt = insert(Follow).values(rows).prefix_with("IGNORE")
    await db.execute(stmt)


async def send_friend_request(
    db: AsyncSession, from_username: str, to_username: str
) -> Result[FriendRequest]:
    if from_username == to_username:
        return failure(ErrorKind.SELF_REFERENCE, "You cannot friend yourself.")
    if await db.get(User, to_username) is None:
        return failure(ErrorKind.NOT_FOUND, "User does not exist.")

    request = FriendRequest(
        from_username=from_username,
        to_username=to_username,
        status=FriendRequestStatus.PENDING.value,
        pending_key=pending_key_for(from_username, to_username),
        created_at=utcnow(),
        handled_at=None,
    )
    db.add(request)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return failure(ErrorKind.CONFLICT, "Friend request already pending.")

    logger.info(
        "Friend request %s: %s -> %s", request.id, from_username, to_username
    )
    return success(request)


async def list_incoming_requests(
    db: AsyncSession, to_username: str
) -> Result[list[FriendRequest]]:
    rows = await db.execute(
        select(FriendRequest)
        .where(
            FriendRequest.to_username == to_username,
            FriendRequest.status == FriendRequestStatus.PENDING.value,
        )
        .order_by(FriendRequest.created_at)
    )
    return success(list(rows.scalars().all()))


async def accept_friend_request(
    db: AsyncSession, request_id: str, acting_user: str
) -> Result[FriendRequest]:
    if not is_well_formed_id(request_id):
        return failure(ErrorKind.VALIDATION, "Invalid request ID.")

    request = await db.get(FriendRequest, request_id)
    if request is None:
        return failure(ErrorKind.NOT_FOUND, "Request not found.")
    if request.to_username != acting_user:
        return failure(
            ErrorKind.AUTHORIZATION, "You are not the recipient of this request."
        )
    if request.status != FriendRequestStatus.PENDING.value:
        return failure(ErrorKind.STATE, "Request already handled.")

    handled_at = utcnow()
    transition = await db.execute(
        update(FriendRequest)
        .where(
            FriendRequest.id == request_id,
            FriendRequest.status == FriendRequestStatus.PENDING.value,
        )
        .values(
            status=FriendRequestStatus.ACCEPTED.value,
            handled_at=handled_at,
            pending_key=None,
        )
        .execution_options(synchronize_session=False)
    )
    if transition.rowcount == 0:
        # Another accept won the race
        await db.rollback()
        return failure(ErrorKind.STATE, "Request already handled.")

    await add_follow_edges(
        db,
        [
            (request.from_username, request.to_username),
            (request.to_username, request.from_username),
        ],
        created_at=handled_at,
    )
    await db.commit()

    # Mirror the committed row without marking the instance dirty
    set_committed_value(request, "status", FriendRequestStatus.ACCEPTED.value)
    set_committed_value(request, "handled_at", handled_at)
    set_committed_value(request, "pending_key", None)
    logger.info(
        "Friend request %s accepted: %s <-> %s",
        request_id, request.from_username, request.to_username,
    )
    return success(request)
