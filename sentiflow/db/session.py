# sentiflow/db/session.py
import asyncio
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sentiflow.config import settings
from sentiflow.db.base_class import Base
from sentiflow.db import models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite") and (":memory:" in database_url or database_url.endswith("://")):
        # In-memory SQLite lives in one connection; share it across sessions
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


class Database:
    """Owns the async engine and session factory for one database URL."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine: AsyncEngine = create_async_engine(database_url, echo=echo, **_engine_options(database_url))
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Let route handlers read committed objects
        )
        self._ready = False
        self._ready_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def ensure_ready(self) -> None:
        """Create the schema once; later calls return immediately."""
        if self._ready:
            return
        async with self._ready_lock:
            if self._ready:
                return
            logger.info("Initializing database schema...")
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self._ready = True
            logger.info("Database initialization complete.")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        await self.engine.dispose()


@lru_cache(maxsize=1)
def get_database() -> Optional[Database]:
    """Lazily build the process-wide Database, or None when DATABASE_URL is unset."""
    if not settings.DATABASE_URL:
        logger.error(
            "DATABASE_URL is not set in the environment. "
            "Database operations are unavailable."
        )
        return None
    database = Database(settings.DATABASE_URL)
    logger.info("Async SQLAlchemy engine and session maker configured successfully.")
    return database


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding an async session on a ready database.
    Fails when no database is configured.
    """
    database = get_database()
    if database is None:
        logger.critical("Database is not configured. Cannot provide DB session. DATABASE_URL might be missing.")
        raise RuntimeError("Database not configured. DATABASE_URL is not set.")
    await database.ensure_ready()
    async with database.session() as session:
        yield session


async def get_optional_db() -> AsyncIterator[Optional[AsyncSession]]:
    """Like get_db, but yields None instead of failing when storage is not configured."""
    database = get_database()
    if database is None:
        yield None
        return
    await database.ensure_ready()
    async with database.session() as session:
        yield session
