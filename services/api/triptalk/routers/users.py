"""
User management endpoints:
  POST /users             - register
  GET  /users?q=          - search users by username
  GET  /profile           - view own profile
  PUT  /profile           - edit own profile (partial)
  POST /profile-picture   - upload and set own profile picture
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.clients.minio_client import read_upload, store_file
from triptalk.clients.redis_client import destroy_session
from triptalk.config import settings
from triptalk.database import get_db
from triptalk.gateway import RequestContext, bounded, require_context, resolve, unwrap
from triptalk.results import ErrorKind
from triptalk.schemas import ProfileUpdate, UserCreate, UserResponse
from triptalk.stores import identity

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    with tracer.start_as_current_span("register_user"):
        return await resolve(
            identity.register(
                db,
                username=body.username,
                password=body.password,
                display_name=body.display_name,
                email=body.email,
            )
        )


@router.get("/users", response_model=list[UserResponse])
async def search_users(
    q: Optional[str] = Query(None, description="Case-insensitive username substring"),
    db: AsyncSession = Depends(get_db),
):
    return await resolve(identity.search_users(db, q))


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    result = await bounded(identity.get_profile(db, ctx.username))
    try:
        return unwrap(result)
    except HTTPException as exc:
        if result.error.kind is ErrorKind.NOT_FOUND:
            # The account behind this session is gone; drop the session and its cookie
            await destroy_session(ctx.session_id)
            expired = Response()
            expired.delete_cookie(settings.session_cookie_name)
            exc.headers = {"set-cookie": expired.headers["set-cookie"]}
        raise


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdate,
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Partial update. Only the keys present in the request body are considered,
    so `{"bio": ""}` clears the bio while omitting `bio` leaves it untouched.
    """
    with tracer.start_as_current_span("update_profile"):
        changes = body.model_dump(exclude_unset=True)
        return await resolve(identity.update_profile(db, ctx.username, changes))


@router.post("/profile-picture", response_model=UserResponse)
async def upload_profile_picture(
    file: UploadFile = File(...),
    ctx: RequestContext = Depends(require_context),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("upload_profile_picture"):
        data = await read_upload(file)
        image_url = unwrap(await store_file(data, file.filename, file.content_type))
        logger.info("Profile picture for %s stored at %s", ctx.username, image_url)
        return await resolve(identity.set_profile_image(db, ctx.username, image_url))
