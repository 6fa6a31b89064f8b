"""
MinIO (S3-compatible) client for uploaded files.

Stores image/file bytes as objects and hands back a stable public URL
(media_public_url/bucket/key). The URL string is all the rest of the system
sees: posts keep it as their image reference and users as their profile
picture.
"""
import logging
import re
import uuid
from io import BytesIO
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from triptalk.config import settings
from triptalk.results import ErrorKind, Result, failure, success
from triptalk.telemetry import UPSTREAM_ERRORS_TOTAL

logger = logging.getLogger(__name__)

_s3 = None

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def init_minio() -> None:
    """Create the S3 client and ensure the upload bucket exists."""
    global _s3
    scheme = "https" if settings.minio_use_ssl else "http"
    _s3 = boto3.client(
        "s3",
        endpoint_url=f"{scheme}://{settings.minio_endpoint}",
        aws_access_key_id=settings.minio_access_key,
        aws_secret_access_key=settings.minio_secret_key,
        config=Config(signature_version="s3v4"),
        region_name="us-east-1",
    )

    # Create bucket if missing
    existing = [b["Name"] for b in _s3.list_buckets().get("Buckets", [])]
    if settings.minio_bucket not in existing:
        _s3.create_bucket(Bucket=settings.minio_bucket)
        logger.info("Created MinIO bucket '%s'", settings.minio_bucket)
    else:
        logger.info("MinIO bucket '%s' already exists", settings.minio_bucket)


def get_s3():
    if _s3 is None:
        raise RuntimeError("MinIO client not initialised: call init_minio() at startup")
    return _s3


def object_key_for(filename: Optional[str]) -> str:
    """Key format: uploads/{uuid}-{sanitised original name}"""
    safe_name = _UNSAFE_CHARS.sub("_", filename or "") or "file"
    return f"uploads/{uuid.uuid4().hex}-{safe_name}"


def public_url(key: str) -> str:
    return f"{settings.media_public_url.rstrip('/')}/{settings.minio_bucket}/{key}"


async def read_upload(file: UploadFile) -> bytes:
    """Read at most one byte past the size limit, enough for store_file to reject it."""
    return await file.read(settings.upload_max_bytes + 1)


async def store_file(
    data: bytes,
    filename: Optional[str],
    content_type: Optional[str],
) -> Result[str]:
    """Upload `data` and return its public URL."""
    if not data:
        return failure(ErrorKind.VALIDATION, "No file uploaded.")
    if len(data) > settings.upload_max_bytes:
        return failure(
            ErrorKind.VALIDATION,
            f"File is larger than {settings.upload_max_bytes} bytes.",
        )

    key = object_key_for(filename)
    s3 = get_s3()
    try:
        # boto3 is blocking; keep it off the event loop
        await run_in_threadpool(
            s3.put_object,
            Bucket=settings.minio_bucket,
            Key=key,
            Body=BytesIO(data),
            ContentType=content_type or "application/octet-stream",
        )
    except (BotoCoreError, ClientError) as exc:
        logger.warning("Upload of %s to MinIO failed: %s", key, exc)
        UPSTREAM_ERRORS_TOTAL.labels(service="media").inc()
        return failure(ErrorKind.UPSTREAM, "Error uploading file.")

    logger.debug("Uploaded %d bytes to MinIO: %s", len(data), key)
    return success(public_url(key))
