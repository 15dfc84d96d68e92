import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from db.session import async_session

logger = logging.getLogger(__name__)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; anything left uncommitted by a failed request is rolled back."""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            logger.debug("Rolling back request session")
            await session.rollback()
            raise
