"""
Database Connection Pool Management
====================================

Async connection pool management using SQLAlchemy AsyncIO with asyncpg.
Provides session management, schema creation and health checks.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.config.settings import Settings, get_settings
from storefront.db.base import Base
from storefront.utils.errors import DatabaseError
from storefront.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages async database connections with connection pooling.

    Features:
        - AsyncIO connection pool with asyncpg
        - Health check functionality
        - Session lifecycle management (commit on success, rollback on error)
        - Automatic connection pool cleanup
    """

    _instance: "DatabaseManager | None" = None
    _engine: AsyncEngine | None = None
    _session_factory: async_sessionmaker[AsyncSession] | None = None

    def __new__(cls) -> "DatabaseManager":
        """Singleton pattern to ensure single database manager."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    async def initialize(cls, settings: Settings | None = None) -> "DatabaseManager":
        """
        Initialize the database connection pool.

        Args:
            settings: Application settings (uses default if not provided)

        Returns:
            DatabaseManager instance

        Raises:
            DatabaseError: If connection initialization fails
        """
        instance = cls()

        if instance._engine is not None:
            logger.debug("Database already initialized, reusing connection pool")
            return instance

        settings = settings or get_settings()

        try:
            logger.info(
                "Initializing database connection pool",
                pool_min=settings.db_pool_min,
                pool_max=settings.db_pool_max,
            )

            engine_kwargs = {"echo": settings.db_echo, "pool_pre_ping": True}
            if settings.database_url.startswith("postgresql"):
                engine_kwargs.update(
                    pool_size=settings.db_pool_min,
                    max_overflow=settings.db_pool_max - settings.db_pool_min,
                    pool_recycle=3600,  # Recycle connections after 1 hour
                )

            instance._engine = create_async_engine(settings.database_url, **engine_kwargs)
            instance._session_factory = async_sessionmaker(
                instance._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            logger.info("Database connection pool initialized successfully")
            return instance

        except Exception as e:
            logger.error("Failed to initialize database", error=str(e))
            raise DatabaseError(
                message="Database initialization failed",
                details={"error": str(e)},
            ) from e

    @classmethod
    async def create_schema(cls) -> None:
        """Create all tables from ORM metadata if they do not exist."""
        import storefront.db.models  # noqa: F401  registers tables on Base.metadata

        engine = cls.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    @classmethod
    async def close(cls) -> None:
        """
        Close the database connection pool.

        Should be called during application shutdown.
        """
        instance = cls._instance

        if instance is None or instance._engine is None:
            logger.debug("Database not initialized, nothing to close")
            return

        try:
            logger.info("Closing database connection pool")
            await instance._engine.dispose()
            instance._engine = None
            instance._session_factory = None
            cls._instance = None
            logger.info("Database connection pool closed")
        except Exception as e:
            logger.error("Error closing database connection pool", error=str(e))
            raise DatabaseError(
                message="Failed to close database connection",
                details={"error": str(e)},
            ) from e

    @classmethod
    def get_engine(cls) -> AsyncEngine:
        """
        Get the async engine instance.

        Raises:
            DatabaseError: If database is not initialized
        """
        instance = cls._instance

        if instance is None or instance._engine is None:
            raise DatabaseError(
                message="Database not initialized",
                details={"hint": "Call DatabaseManager.initialize() first"},
            )

        return instance._engine

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session.

        Yields:
            AsyncSession instance, committed on success and rolled back on error

        Raises:
            DatabaseError: If database is not initialized

        Usage:
            async with DatabaseManager.get_session() as session:
                result = await session.execute(...)
        """
        instance = cls._instance

        if instance is None or instance._session_factory is None:
            raise DatabaseError(
                message="Database not initialized",
                details={"hint": "Call DatabaseManager.initialize() first"},
            )

        async with instance._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.warning("Database session rolled back", error=str(e))
                raise

    @classmethod
    async def health_check(cls) -> dict:
        """
        Check database connection health.

        Usage:
            status = await DatabaseManager.health_check()
            # {"status": "healthy", "latency_ms": 5.2}
        """
        instance = cls._instance

        if instance is None or instance._engine is None:
            return {"status": "not_initialized", "error": "Database not initialized"}

        start = time.perf_counter()

        try:
            async with instance._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

            latency = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "latency_ms": round(latency, 2),
            }

        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
            }


# Convenience functions for direct import
async def init_database(settings: Settings | None = None) -> DatabaseManager:
    """Initialize database connection pool."""
    return await DatabaseManager.initialize(settings)


async def close_database() -> None:
    """Close database connection pool."""
    await DatabaseManager.close()


async def health_check() -> dict:
    """Check database health."""
    return await DatabaseManager.health_check()
