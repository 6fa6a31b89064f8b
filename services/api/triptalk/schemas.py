"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models to avoid coupling transport to storage.

JSON keys are camelCase on the wire (displayName, usernameToFollow, ...);
request models also accept the snake_case field names. Request fields are
Optional so presence checks produce the service's own 400 messages instead
of a generic schema error.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


# ──────────────────────────── Users ───────────────────────────────────────

class UserCreate(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None


class ProfileUpdate(CamelModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None


class UserResponse(CamelModel):
    """Public projection of a user: never carries the credential."""
    username: str
    display_name: str
    email: str
    bio: str
    location: str
    profile_image_url: str
    created_at: datetime


# ──────────────────────────── Login ───────────────────────────────────────

class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginStatus(CamelModel):
    logged_in: bool
    user: Optional[UserResponse] = None


# ──────────────────────────── Contents ────────────────────────────────────

class ContentCreate(CamelModel):
    text: Optional[str] = None
    image_url: Optional[str] = None


class ContentResponse(CamelModel):
    id: str
    username: str
    text: str
    image_url: str
    created_at: datetime


class LikesResponse(CamelModel):
    count: int
    users: list[str]


class CommentCreate(CamelModel):
    text: Optional[str] = None


class CommentResponse(CamelModel):
    id: str
    content_id: str
    username: str
    text: str
    created_at: datetime


# ──────────────────────────── Social graph ────────────────────────────────

class FollowCreate(CamelModel):
    username_to_follow: Optional[str] = None


class FollowDelete(CamelModel):
    username_to_unfollow: Optional[str] = None


class FollowResponse(CamelModel):
    follower_username: str
    followee_username: str
    created_at: datetime


class FollowResult(CamelModel):
    message: str
    follow: FollowResponse


class FriendRequestCreate(CamelModel):
    to_username: Optional[str] = None


class FriendRequestResponse(CamelModel):
    id: str
    from_username: str
    to_username: str
    status: str
    created_at: datetime
    handled_at: Optional[datetime] = None


class FriendRequestAccepted(CamelModel):
    message: str
    request: FriendRequestResponse


# ──────────────────────────── Uploads & third parties ─────────────────────

class UploadResponse(CamelModel):
    message: str
    file_url: str
    original_name: str


class WeatherResponse(CamelModel):
    city: str
    temperature: float
    feels_like: float
    description: str


class ChatRequest(CamelModel):
    message: Optional[str] = None


class ChatResponse(CamelModel):
    reply: str
