"""
Request gateway: the boundary between HTTP and the stores.

  • Resolves the session cookie to a RequestContext before any store call;
    stores only ever see the explicit username it carries.
  • Bounds each store call with settings.store_timeout_seconds.
  • Translates error results into HTTP statuses and renders every error as
    {"error": "<message>"}.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from triptalk.clients.redis_client import get_session_username
from triptalk.config import settings
from triptalk.results import ErrorKind, Result, failure
from triptalk.telemetry import STORE_ERRORS_TOTAL

logger = logging.getLogger(__name__)

T = TypeVar("T")

NOT_LOGGED_IN = "You must be logged in to access this resource."

STATUS_FOR_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.SELF_REFERENCE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTH: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


@dataclass(frozen=True)
class RequestContext:
    """Identity resolved for the current request."""
    username: str
    session_id: str


async def optional_context(request: Request) -> Optional[RequestContext]:
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        return None
    username = await get_session_username(session_id)
    if not username:
        return None
    return RequestContext(username=username, session_id=session_id)


async def require_context(
    ctx: Optional[RequestContext] = Depends(optional_context),
) -> RequestContext:
    if ctx is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_LOGGED_IN)
    return ctx


def require_field(value: Optional[str], message: str) -> str:
    if not value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return value


def unwrap(result: Result[T]) -> T:
    """Return the result's value or raise the HTTP error its kind maps to."""
    if result.error is None:
        return result.value
    kind = result.error.kind
    STORE_ERRORS_TOTAL.labels(kind=kind.value).inc()
    logger.debug("Request failed (%s): %s", kind.value, result.error.message)
    raise HTTPException(status_code=STATUS_FOR_KIND[kind], detail=result.error.message)


async def bounded(operation: Awaitable[Result[T]]) -> Result[T]:
    """Await a store operation; exceeding the store timeout is a TIMEOUT result."""
    try:
        return await asyncio.wait_for(operation, timeout=settings.store_timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("Store call exceeded %.1fs", settings.store_timeout_seconds)
        return failure(ErrorKind.TIMEOUT, "The request timed out.")


async def resolve(operation: Awaitable[Result[T]]) -> T:
    return unwrap(await bounded(operation))


def _describe_validation_error(exc: RequestValidationError) -> str:
    fields = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        name = str(loc[-1]) if loc else "request"
        if name not in fields:
            fields.append(name)
    return f"Missing or invalid field(s): {', '.join(fields)}."


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            {"error": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_shape_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": _describe_validation_error(exc)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            {"error": "Internal server error."},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
