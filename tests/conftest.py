"""Shared pytest fixtures for all test suites."""

import os

# Settings are read at import time, so the environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TENANT_CACHE_TTL_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from roadmapper.core.security import create_access_token
from roadmapper.data.registry import Stores
from roadmapper.database import Executor, create_engine_from_url, get_connection, init_db
from roadmapper.main import app


@pytest.fixture
def auth_headers():
    """Bearer header for a seeded user row."""

    def headers(user: dict) -> dict:
        token = create_access_token(user["id"], user["tenant_id"], user["role"])
        return {"Authorization": f"Bearer {token}"}

    return headers


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with every table created."""
    engine = create_engine_from_url("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def conn(engine: AsyncEngine) -> AsyncGenerator[AsyncConnection, None]:
    """Connection inside a transaction that is rolled back after the test."""
    async with engine.connect() as conn:
        trans = await conn.begin()
        yield conn
        await trans.rollback()


@pytest_asyncio.fixture
async def stores(conn: AsyncConnection) -> Stores:
    return Stores.bind(Executor(conn))


@pytest_asyncio.fixture
async def tenant_a(stores: Stores) -> dict:
    return await stores.tenants.create({"domain_name": "acme.io", "plan_tier": "pro"})


@pytest_asyncio.fixture
async def tenant_b(stores: Stores) -> dict:
    return await stores.tenants.create({"domain_name": "globex.io"})


@pytest_asyncio.fixture
async def seeded(engine: AsyncEngine) -> SimpleNamespace:
    """
    Two committed tenants with users, for API tests.

    acme.io is on the pro plan, globex.io on basic.
    """
    async with engine.begin() as conn:
        stores = Stores.bind(Executor(conn))
        acme = await stores.tenants.create({"domain_name": "acme.io", "plan_tier": "pro"})
        globex = await stores.tenants.create({"domain_name": "globex.io", "plan_tier": "basic"})

        def user(tenant, email, name, role):
            return stores.users.create({
                "tenant_id": tenant["id"],
                "email": email,
                "password_hash": "unused",
                "name": name,
                "role": role,
            })

        acme_admin = await user(acme, "ada@acme.io", "Ada", "admin")
        acme_user = await user(acme, "ben@acme.io", "Ben", "user")
        acme_other = await user(acme, "cy@acme.io", "Cy", "user")
        globex_admin = await user(globex, "hank@globex.io", "Hank", "admin")

    return SimpleNamespace(
        acme=acme,
        globex=globex,
        acme_admin=acme_admin,
        acme_user=acme_user,
        acme_other=acme_other,
        globex_admin=globex_admin,
    )


@pytest_asyncio.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the app, with each request in its own transaction on the test engine."""

    async def test_connection():
        async with engine.begin() as conn:
            yield conn

    app.dependency_overrides[get_connection] = test_connection
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
