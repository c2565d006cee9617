"""
Database Configuration and Connection Management

Async SQLAlchemy engine with connection pooling, plus the per-request
connection dependency.

Every request gets ONE connection with ONE transaction (engine.begin()).
Multi-step sequences such as "fetch, verify tenant, update" or "clear links,
re-insert links" therefore commit together or not at all.

NOTE: The data layer issues textual SQL through the query builder. The ORM
models in roadmapper.models exist to own the table definitions (create_all,
column types, allow-lists).
"""
import asyncio
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from sqlalchemy import event
from sqlalchemy.engine import Result
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.elements import TextClause

from roadmapper.config import get_settings
from roadmapper.core.exceptions import ConstraintViolationError, DataLayerError, QueryTimeoutError
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

# Base class for all models
Base = declarative_base()

_engine: Optional[AsyncEngine] = None


def normalize_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """
    Build an async engine for the given URL.

    PostgreSQL gets a sized QueuePool with pre-ping and UTC sessions.
    In-memory SQLite (tests) must share a single connection, hence StaticPool.
    """
    settings = get_settings()
    url = normalize_database_url(url)

    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.endswith("://"):
            options["poolclass"] = StaticPool
    else:
        options = {
            "pool_size": settings.DATABASE_POOL_SIZE,
            "max_overflow": settings.DATABASE_MAX_OVERFLOW,
            # Verify connections before using (handles stale connections)
            "pool_pre_ping": True,
            "connect_args": {"server_settings": {"timezone": "UTC"}},
        }

    engine = create_async_engine(url, echo=echo, **options)

    if engine.dialect.name == "sqlite":
        # ON DELETE CASCADE / SET NULL only work with foreign keys switched on
        @event.listens_for(engine.sync_engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            logger.debug("New database connection established")

    return engine


def get_engine() -> AsyncEngine:
    """Process-wide engine, created on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_from_url(settings.DATABASE_URL, echo=settings.DEBUG)
    return _engine


async def get_connection() -> AsyncIterator[AsyncConnection]:
    """
    Dependency function that provides a transactional connection.

    Commits when the request handler returns, rolls back when anything
    raises (including HTTPExceptions), and always returns the connection to
    the pool.
    """
    async with get_engine().begin() as conn:
        yield conn


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all tables.

    For dev/testing convenience. Use migrations in production.
    """
    import roadmapper.models  # noqa: F401  (registers every table on Base.metadata)

    engine = engine or get_engine()
    logger.warning("init_db() called - use migrations in production!")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


class Executor:
    """
    Runs statements for one request on its connection.

    Every statement is bounded by the request deadline (event loop time).
    SQLAlchemy errors are translated into the data layer exceptions so
    callers above this point never see driver-specific types.
    """

    def __init__(self, conn: AsyncConnection, deadline: Optional[float] = None):
        self.conn = conn
        self.deadline = deadline
        self._after_commit: List[Callable[[], Awaitable[None]]] = []

    @property
    def dialect_name(self) -> str:
        return self.conn.dialect.name

    @classmethod
    def with_timeout(cls, conn: AsyncConnection, timeout: Optional[float]) -> "Executor":
        deadline = None
        if timeout:
            deadline = asyncio.get_running_loop().time() + timeout
        return cls(conn, deadline)

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return self.deadline - asyncio.get_running_loop().time()

    async def execute(self, statement: TextClause) -> Result:
        timeout = self.remaining()
        if timeout is not None and timeout <= 0:
            raise QueryTimeoutError("Request deadline exceeded before query start")

        try:
            if timeout is None:
                return await self.conn.execute(statement)
            return await asyncio.wait_for(self.conn.execute(statement), timeout)
        except asyncio.TimeoutError as e:
            logger.error("Query cancelled: request deadline exceeded")
            raise QueryTimeoutError("Request deadline exceeded") from e
        except IntegrityError as e:
            logger.error(f"Constraint violation: {e.orig}")
            raise ConstraintViolationError(str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error(f"Database error: {type(e).__name__}: {e}")
            raise DataLayerError(str(e)) from e

    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """
        Run callback once the request transaction has committed.

        Dropped if the transaction rolls back. For work outside the
        database, such as cache invalidation.
        """
        self._after_commit.append(callback)

    async def commit(self) -> None:
        """Commit the open transaction, then run the after-commit callbacks in order."""
        try:
            if self.conn.in_transaction():
                await self.conn.commit()
        except SQLAlchemyError as e:
            logger.error(f"Commit failed: {type(e).__name__}: {e}")
            raise DataLayerError(str(e)) from e

        callbacks, self._after_commit = self._after_commit, []
        for callback in callbacks:
            await callback()
