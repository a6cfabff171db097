"""FastAPI dependency for request-scoped database sessions."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from pricetracker.db.session import get_database


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for one request; see ``Database.session``."""
    async with get_database().session() as session:
        yield session
