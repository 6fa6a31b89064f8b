"""
Shared fixtures.

The service runs against an in-memory SQLite database (aiosqlite, one shared
connection) and fakeredis instead of TiDB and Redis. HTTP-level tests drive
the real FastAPI app through httpx's ASGI transport, so lifespan startup
(TiDB, MinIO, third-party clients) never runs.
"""
import os

os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis
from httpx import ASGITransport, AsyncClient

from triptalk.clients import redis_client
from triptalk.config import settings
from triptalk.database import build_engine, build_session_factory, create_tables, get_db
from triptalk.main import create_app
from triptalk.stores import identity

PASSWORD = "Abcd123!"


@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def fake_redis(monkeypatch):
    server = fake_aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(redis_client, "_redis", server)
    yield server
    await server.aclose()


@pytest.fixture
def app(session_factory, fake_redis):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest_asyncio.fixture
async def make_client(app):
    """Factory for independent HTTP clients (each keeps its own cookie jar)."""
    clients = []

    async def _make() -> AsyncClient:
        client = AsyncClient(
            transport=ASGITransport(app=app),
            base_url=f"http://testserver{settings.api_prefix}",
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def client(make_client):
    return await make_client()


@pytest_asyncio.fixture
async def make_user(session_factory):
    """Register a user directly through the identity store."""

    async def _make(username: str, email: str = None):
        async with session_factory() as session:
            result = await identity.register(
                session,
                username=username,
                password=PASSWORD,
                display_name=username.title(),
                email=email or f"{username}@example.com",
            )
            assert result.ok, result.error
            return result.value

    return _make


@pytest_asyncio.fixture
async def login(make_client):
    """Return a client logged in as `username` (password PASSWORD)."""

    async def _login(username: str) -> AsyncClient:
        client = await make_client()
        resp = await client.post("/login", json={"username": username, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        return client

    return _login
