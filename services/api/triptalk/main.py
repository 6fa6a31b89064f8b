"""
tripTalk API - entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP) when enabled
  2. Create tables if not present (TiDB)
  3. Connect to Redis (sessions)
  4. Initialise MinIO client & bucket (uploads)
  5. Start async HTTP clients (weather, chat)
  6. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from triptalk.config import settings
from triptalk.database import init_db
from triptalk.gateway import register_exception_handlers
from triptalk.telemetry import setup_tracing, instrument_app
from triptalk.clients.redis_client import close_redis, init_redis
from triptalk.clients.minio_client import init_minio
from triptalk.clients.weather_client import weather_client
from triptalk.clients.chat_client import chat_client
from triptalk.routers import auth, contents, feed, graph, media, users

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting tripTalk API (env=%s)", settings.environment)

    await init_db()
    await init_redis()
    init_minio()                    # sync: boto3 is not async
    await weather_client.start()
    await chat_client.start()

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await weather_client.stop()
    await chat_client.stop()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="tripTalk API",
        description=(
            "Travel-themed social network: profiles, posts, follows, "
            "a personalised feed, likes, comments and friend requests."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    # ── Routers ────────────────────────────────────────────────────────────
    prefix = settings.api_prefix
    app.include_router(users.router, prefix=prefix, tags=["Users"])
    app.include_router(auth.router, prefix=prefix, tags=["Login"])
    app.include_router(contents.router, prefix=prefix, tags=["Contents"])
    app.include_router(feed.router, prefix=prefix, tags=["Feed"])
    app.include_router(graph.router, prefix=prefix, tags=["Social graph"])
    app.include_router(media.router, prefix=prefix, tags=["Uploads & third parties"])

    @app.get(prefix + "/test", tags=["Health"])
    async def service_check():
        return {"message": "tripTalk web service is running!"}

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "service": settings.service_name}

    # ── Prometheus metrics endpoint ────────────────────────────────────────
    app.mount("/metrics", make_asgi_app())

    # ── OTel FastAPI instrumentation ───────────────────────────────────────
    if settings.tracing_enabled:
        instrument_app(app)

    return app


# Set up tracing before the app is created so all imports are instrumented
if settings.tracing_enabled:
    setup_tracing()

app = create_app()
