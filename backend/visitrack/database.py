import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base for all ORM models."""


class StoreUnavailableError(RuntimeError):
    """Raised when an operation needs the database but none is configured."""


class Database:
    """
    Process-wide database handle.

    Constructed once per application and handed to request handlers through
    the ``get_db`` dependency. The engine is created on first use; concurrent
    first requests share a single initialization.
    """

    def __init__(self, url: Optional[str], echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self._lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.url)

    async def get_engine(self) -> Optional[AsyncEngine]:
        if not self.configured:
            return None
        if self._engine is not None:
            return self._engine

        async with self._lock:
            if self._engine is None:
                self._engine = create_async_engine(self.url, echo=self.echo, pool_pre_ping=True)
                self._sessionmaker = async_sessionmaker(
                    self._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )
                logger.info("Database engine created")
        return self._engine

    async def session(self) -> Optional[AsyncSession]:
        if await self.get_engine() is None:
            return None
        return self._sessionmaker()

    async def create_all(self) -> None:
        """Create missing tables. Failures are logged so the server can still start."""
        engine = await self.get_engine()
        if engine is None:
            logger.warning("DATABASE_URL not set, skipping schema creation")
            return

        try:
            logger.info("Creating database tables...")
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ready")
        except Exception:
            logger.exception("Database schema creation failed")

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[Optional[AsyncSession], None]:
    """Yield a session for the request, or None when no database is configured."""
    session = await get_database(request).session()
    if session is None:
        yield None
        return

    async with session:
        yield session
