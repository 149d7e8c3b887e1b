"""Async SQLAlchemy engine and sessions for the case store."""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from referral_service.config import settings
from .models import Base

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Owns the engine; hands out one session per request."""

    def __init__(self, database_url: Optional[str] = None, **engine_kwargs):
        """
        Args:
            database_url: Defaults to ``settings.database_url``
            **engine_kwargs: Extra ``create_async_engine`` options, e.g. a
                StaticPool for in-memory SQLite
        """
        self.database_url = database_url or settings.database_url

        # SQLite files don't tolerate pooled connections across event loops
        if self.is_sqlite:
            engine_kwargs.setdefault("poolclass", NullPool)

        self.engine = create_async_engine(
            self.database_url,
            echo=settings.log_level.upper() == "DEBUG",
            **engine_kwargs,
        )
        self.async_session_maker = async_sessionmaker(self.engine, expire_on_commit=False)

        logger.info(f"Case database engine created for {self.driver}")

    @property
    def driver(self) -> str:
        return self.database_url.split("://")[0]

    @property
    def is_sqlite(self) -> bool:
        return self.driver.startswith("sqlite")

    async def verify_connection(self):
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info(f"Connected to {self.driver}")

    async def create_tables(self):
        """Create missing tables from the ORM metadata."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Ensured tables: {', '.join(sorted(Base.metadata.tables))}")

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session; anything left uncommitted is rolled back on error."""
        session = self.async_session_maker()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def close(self):
        await self.engine.dispose()
        logger.info("Case database engine disposed")


db_client = DatabaseClient()
