"""
Identity store: user records, registration rules and credential checks.

Session binding after a successful `authenticate` is the gateway's job
(see triptalk.clients.redis_client); this module never touches sessions.
"""
import hmac
import logging
import re
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.models import User, utcnow
from triptalk.results import ErrorKind, Result, failure, success

logger = logging.getLogger(__name__)

# at least 8 chars, one upper, one lower, one digit, one symbol
PASSWORD_POLICY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^\da-zA-Z]).{8,}$")
EMAIL_FORMAT = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_strong_password(password: str) -> bool:
    return bool(PASSWORD_POLICY.match(password))


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_FORMAT.match(email))


async def register(
    db: AsyncSession,
    username: Optional[str],
    password: Optional[str],
    display_name: Optional[str],
    email: Optional[str],
) -> Result[User]:
    if not username or not password or not display_name or not email:
        return failure(
            ErrorKind.VALIDATION,
            "username, password, displayName and email are required.",
        )
    if not is_strong_password(password):
        return failure(
            ErrorKind.VALIDATION,
            "Password must be at least 8 characters and include uppercase, "
            "lowercase, a number and a special character.",
        )
    if not is_valid_email(email):
        return failure(ErrorKind.VALIDATION, "Email address is not in a valid format.")

    user = User(
        username=username,
        password=password,
        display_name=display_name,
        email=email,
        bio="",
        location="",
        profile_image_url="",
        created_at=utcnow(),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return failure(
            ErrorKind.CONFLICT,
            "This username is already taken. Please choose another.",
        )

    logger.info("Registered user %s", username)
    return success(user)


async def authenticate(
    db: AsyncSession, username: Optional[str], password: Optional[str]
) -> Result[User]:
    if not username or not password:
        return failure(
            ErrorKind.VALIDATION, "You must provide both username and password."
        )
    user = await db.get(User, username)
    if user is None or not hmac.compare_digest(
        user.password.encode("utf-8"), password.encode("utf-8")
    ):
        return failure(ErrorKind.AUTH, "Username or password incorrect.")
    return success(user)


async def get_profile(db: AsyncSession, username: str) -> Result[User]:
    user = await db.get(User, username)
    if user is None:
        return failure(ErrorKind.NOT_FOUND, "User not found.")
    return success(user)


async def update_profile(db: AsyncSession, username: str, changes: dict) -> Result[User]:
    """
    Apply a partial profile update.

    `changes` holds only the fields the client actually sent. displayName and
    email are applied when non-empty; bio and location are applied whenever
    present, so an explicit "" clears them.
    """
    update: dict = {}
    if changes.get("display_name"):
        update["display_name"] = changes["display_name"]
    if changes.get("email"):
        if not is_valid_email(changes["email"]):
            return failure(ErrorKind.VALIDATION, "Invalid email format.")
        update["email"] = changes["email"]
    for field in ("bio", "location"):
        if field in changes and changes[field] is not None:
            update[field] = changes[field]

    if not update:
        return failure(ErrorKind.VALIDATION, "Nothing to update.")

    user = await db.get(User, username)
    if user is None:
        return failure(ErrorKind.NOT_FOUND, "User not found.")

    for field, value in update.items():
        setattr(user, field, value)
    await db.commit()
    logger.info("Updated profile of %s (%s)", username, ", ".join(sorted(update)))
    return success(user)


async def set_profile_image(db: AsyncSession, username: str, image_url: str) -> Result[User]:
    user = await db.get(User, username)
    if user is None:
        return failure(ErrorKind.NOT_FOUND, "User not found.")
    user.profile_image_url = image_url
    await db.commit()
    return success(user)


async def search_users(db: AsyncSession, query: Optional[str]) -> Result[list[User]]:
    stmt = select(User).order_by(User.created_at)
    term = (query or "").strip()
    if term:
        stmt = stmt.where(
            func.lower(User.username).contains(term.lower(), autoescape=True)
        )
    rows = await db.execute(stmt)
    return success(list(rows.scalars().all()))
