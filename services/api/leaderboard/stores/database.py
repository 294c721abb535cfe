"""Database store with async SQLAlchemy.

Handles:
- Engine and connection pool lifecycle
- Session management with commit/rollback
- Schema bootstrap for development and tests

A `Database` is created at process start and handed to the services that
need it; there is no module-level engine.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from leaderboard.settings import Settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class Database:
    """Async engine plus session factory for one database URL."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        connect_args: dict[str, object] | None = None,
    ) -> None:
        self.url = url
        engine_kwargs: dict[str, object] = {
            "echo": echo,
            "connect_args": connect_args or {},
            "pool_pre_ping": True,
        }
        if not url.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)

        self._engine: AsyncEngine | None = create_async_engine(url, **engine_kwargs)
        self._session_factory: async_sessionmaker[AsyncSession] | None = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a database handle from application settings."""
        return cls(
            settings.async_database_url,
            echo=settings.debug,
            connect_args=settings.asyncpg_connect_args,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is closed.")
        return self._engine

    async def close(self) -> None:
        """Dispose the connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def ping(self) -> None:
        """Run a trivial query to validate connectivity."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session context manager.

        Commits when the block exits normally and rolls back on any exception.

        Usage:
            async with db.session() as session:
                result = await session.execute(query)
        """
        if self._session_factory is None:
            raise RuntimeError("Database is closed.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create all tables (for development/testing only)."""
        # Register models on Base.metadata before create_all.
        import leaderboard.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables (for testing only)."""
        import leaderboard.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
