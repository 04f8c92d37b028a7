"""Database engine lifecycle and session management."""

import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings
from .models import Base, Resume

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and session factory for one process.

    Constructed by the application factory, opened during startup and
    disposed on shutdown. Handlers reach it through ``get_db``.
    """

    def __init__(self, settings: Settings):
        self.url = settings.sqlalchemy_url
        # Pool capped at db_pool_size; acquisition fails fast after db_pool_timeout
        self.engine: AsyncEngine = create_async_engine(
            self.url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            autocommit=False,
        )

    async def connect(self) -> None:
        """Create the resumes table and its indexes if they don't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Resumes table created/verified")

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database pool has been closed")

    async def ping(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return False

    async def count_resumes(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(select(func.count(Resume.id)))
            return result.scalar_one()

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to get a database session.

    Yields:
        AsyncSession: Database session bound to the app's Database
    """
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
