"""Async database engine lifecycle.

A single ``Database`` object owns the engine and session factory for the
lifetime of the process. ``connect()`` is called once from the FastAPI
lifespan; request handlers only borrow sessions from the pool.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pricetracker.config import settings
from pricetracker.models import Base

logger = structlog.get_logger(__name__)


class Database:
    """Connection-pool owner with health-checked reuse."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        # SQLite doesn't support pool_size / max_overflow / pool_pre_ping
        self._is_sqlite = url.startswith("sqlite")

        engine_kwargs: dict = {"echo": echo}
        if not self._is_sqlite:
            engine_kwargs.update(
                pool_size=10,
                max_overflow=10,
                pool_pre_ping=True,
                pool_timeout=10,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((OperationalError, OSError)),
        before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
        reraise=True,
    )
    async def connect(self, create_tables: bool = True) -> None:
        """Open the pool, verify it with ``SELECT 1`` and create missing tables.

        Safe to call more than once; later calls only re-run the health check.
        """
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables and not self._connected:
                await conn.run_sync(Base.metadata.create_all)

        if not self._connected:
            logger.info("database_connected", dialect=self.engine.dialect.name)
        self._connected = True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session scoped to one unit of work.

        Committed when the block exits normally, rolled back when it raises.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> dict:
        """Ping the database through the pool.

        Returns:
            dict with 'healthy' boolean and optional 'error' message
        """
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            return {"healthy": True}
        except (SQLAlchemyError, OSError) as e:
            logger.error("database_health_check_failed", error=str(e))
            return {"healthy": False, "error": str(e)}

    async def dispose(self) -> None:
        """Close every pooled connection. Called on application shutdown."""
        await self.engine.dispose()
        self._connected = False
        logger.info("database_disposed")


_database: Optional[Database] = None


def get_database() -> Database:
    """Get or create the process-wide Database instance."""
    global _database

    if _database is None:
        _database = Database(settings.DATABASE_URL, echo=settings.DEBUG and settings.ENVIRONMENT == "development")

    return _database
