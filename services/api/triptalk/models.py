"""
SQLAlchemy ORM models for TiDB.

Tables:
  users           - user profiles keyed by username
  follows         - social graph edges (follower → followee)
  contents        - posts (text + optional image URL)
  likes           - user × content engagement, one row per pair
  comments        - append-only conversation under a content
  friend_requests - pending / accepted mutual-follow proposals

Uniqueness lives in the schema: composite primary keys on follows and likes,
and a nullable unique `pending_key` on friend_requests that is only set
while a request is pending.
"""
import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column

from triptalk.database import Base

# Microsecond precision keeps chronological ordering stable on MySQL/TiDB
Timestamp = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_well_formed_id(value: str) -> bool:
    """True when `value` is a canonical UUID string (the id format we issue)."""
    try:
        return str(uuid.UUID(value)) == value
    except (ValueError, AttributeError, TypeError):
        return False


class FriendRequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class User(Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), primary_key=True)
    # Stored as given; credential hardening is outside this service
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    profile_image_url: Mapped[str] = mapped_column(
        String(500), nullable=False, default=""
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False, default=utcnow)


class Follow(Base):
    __tablename__ = "follows"

    follower_username: Mapped[str] = mapped_column(String(100), primary_key=True)
    followee_username: Mapped[str] = mapped_column(String(100), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False, default=utcnow)

    __table_args__ = (
        # "who follows user X?"
        Index("idx_follows_followee", "followee_username"),
    )


class Content(Base):
    __tablename__ = "contents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_contents_user", "username"),
        Index("idx_contents_created", "created_at"),
    )


class Like(Base):
    __tablename__ = "likes"

    content_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(100), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False, default=utcnow)


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    content_id: Mapped[str] = mapped_column(String(36), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_comments_content", "content_id", "created_at"),
    )


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    from_username: Mapped[str] = mapped_column(String(100), nullable=False)
    to_username: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FriendRequestStatus.PENDING.value
    )
    # "<from>\n<to>" while pending, NULL once handled. NULLs never collide,
    # so this allows one pending request per ordered pair and any number of
    # accepted ones.
    pending_key: Mapped[Optional[str]] = mapped_column(String(201), unique=True)
    created_at: Mapped[datetime] = mapped_column(Timestamp, nullable=False, default=utcnow)
    handled_at: Mapped[Optional[datetime]] = mapped_column(Timestamp)

    __table_args__ = (
        Index("idx_friend_requests_to", "to_username", "status"),
    )


def pending_key_for(from_username: str, to_username: str) -> str:
    return f"{from_username}\n{to_username}"
