"""
Database Session Management

Provides the async SQLAlchemy engine and session factory wrapped in an
explicitly constructed Database object. The application creates one Database
at startup (see quill.main lifespan), stores it on app.state and disposes it at
shutdown; request handlers receive sessions through the get_db dependency.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from quill.config import Settings, settings as default_settings
from quill.db.models import Base


class Database:
    """
    Storage client owning the async engine and session factory.

    Example:
        >>> db = Database("sqlite+aiosqlite:///./quill.db")
        >>> async with db.session() as session:
        ...     ...
        >>> await db.dispose()
    """

    def __init__(self, url: str, engine: Optional[AsyncEngine] = None, **engine_kwargs):
        """
        Initialize the storage client.

        Args:
            url: Async SQLAlchemy database URL
            engine: Pre-built engine (tests), created from url when omitted
            **engine_kwargs: Extra arguments for create_async_engine
        """
        self.url = url
        self.engine = engine or create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "Database":
        """
        Build the storage client from application settings.

        SQLite URLs get a NullPool since pool sizing does not apply to them.
        """
        if config.DATABASE_URL.startswith("sqlite"):
            return cls(config.DATABASE_URL, echo=config.DEBUG, poolclass=NullPool)

        return cls(
            config.DATABASE_URL,
            echo=config.DEBUG,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_pre_ping=True,  # Verify connections before using
        )

    def session(self) -> AsyncSession:
        """Open a new session (use as an async context manager)."""
        return self.session_factory()

    async def create_all(self) -> None:
        """Create missing tables (no-op for tables that already exist)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Yields an AsyncSession from the application's Database and ensures proper
    cleanup. Use with FastAPI Depends():
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...

    Yields:
        AsyncSession: Database session for the request
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
