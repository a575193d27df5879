from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text
from typing import AsyncGenerator, Optional
import logging
import asyncio
import time
from datetime import datetime, timezone

from app.core.config import settings
from app.utils.logger import db_logger

logger = logging.getLogger(__name__)


class AsyncDatabaseManager:
    """
    Manages async database connections and sessions.

    Owns the engine and session factory used by DatabasePostStore, and
    disposes of them on shutdown.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.async_database_url
        self.async_engine = None
        self.async_session_factory = None
        self._is_initialized = False
        self._initialize_engine()

    def _initialize_engine(self):
        """Initialize the async database engine."""
        try:
            if not self.database_url:
                raise ValueError("Async database URL is not configured")

            logger.info(f"Initializing async database engine with URL: {self.database_url[:50]}...")
            logger.info(f"Environment: {settings.ENVIRONMENT}")

            engine_options = {"echo": settings.ASYNC_DB_ECHO}
            if self.database_url.startswith("postgresql+asyncpg://"):
                pool_size = settings.ASYNC_DB_POOL_SIZE
                max_overflow = settings.ASYNC_DB_MAX_OVERFLOW
                if settings.ENVIRONMENT == "development":
                    pool_size = min(pool_size, 5)
                    max_overflow = min(max_overflow, 5)

                logger.info(f"Pool configuration - Size: {pool_size}, Max Overflow: {max_overflow}, "
                            f"Timeout: {settings.ASYNC_DB_POOL_TIMEOUT}s, Recycle: {settings.ASYNC_DB_POOL_RECYCLE}s")

                engine_options.update(
                    pool_pre_ping=settings.ASYNC_DB_POOL_PRE_PING,
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_recycle=settings.ASYNC_DB_POOL_RECYCLE,
                    pool_timeout=settings.ASYNC_DB_POOL_TIMEOUT,
                    connect_args={
                        "server_settings": {"application_name": "content_platform_async"},
                        "command_timeout": settings.ASYNC_DB_COMMAND_TIMEOUT,
                    },
                )

            self.async_engine = create_async_engine(self.database_url, **engine_options)

            self.async_session_factory = async_sessionmaker(
                bind=self.async_engine,
                class_=AsyncSession,
                expire_on_commit=False,  # Keep objects accessible after commit
                autoflush=False,
            )

            self._is_initialized = True
            logger.info("Async database engine initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize async database engine: {e}")
            raise

    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session with proper lifecycle management.

        Yields:
            AsyncSession: Database session for async operations

        Raises:
            RuntimeError: If the database manager is not initialized
        """
        if not self._is_initialized:
            raise RuntimeError("AsyncDatabaseManager is not initialized")

        async with self.async_session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error in session: {e}")
                raise
            finally:
                await session.close()

    async def test_connection(self) -> bool:
        try:
            async with self.async_session_factory() as session:
                await session.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    async def get_connection_info(self) -> dict:
        """Get information about the current connection pool."""
        if not self.async_engine:
            return {"status": "not_initialized"}

        pool = self.async_engine.pool
        info = {"status": "initialized", "pool_type": type(pool).__name__}
        # Only QueuePool-style pools expose counters
        for name in ("size", "checkedin", "checkedout", "overflow"):
            method = getattr(pool, name, None)
            if callable(method):
                info[name] = method()
        return info

    async def close(self):
        """Dispose of the engine and all pooled connections."""
        if self.async_engine:
            try:
                await self.async_engine.dispose()
                logger.info("Async database engine disposed successfully")
            finally:
                self._is_initialized = False
                self.async_engine = None
                self.async_session_factory = None


# Global async database manager instance (singleton pattern)
_async_db_manager: Optional[AsyncDatabaseManager] = None
_manager_lock = asyncio.Lock()


async def get_async_db_manager() -> AsyncDatabaseManager:
    """
    Get or create the global async database manager instance.

    Returns:
        AsyncDatabaseManager: The global database manager instance
    """
    global _async_db_manager

    if _async_db_manager is None:
        async with _manager_lock:
            # Double-check locking pattern
            if _async_db_manager is None:
                _async_db_manager = AsyncDatabaseManager()
                logger.info("Created new AsyncDatabaseManager singleton instance")

    return _async_db_manager


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection.

    The session is rolled back on database errors and closed after use.
    """
    manager = await get_async_db_manager()
    async for session in manager.get_async_session():
        yield session


# Database startup and shutdown handlers
async def startup_async_database():
    """
    Initialize async database connections on application startup.

    Raises:
        RuntimeError: If the connection test fails
    """
    logger.info("Starting async database initialization...")
    manager = await get_async_db_manager()

    if not await manager.test_connection():
        raise RuntimeError("Failed to establish database connection during startup")

    pool_info = await manager.get_connection_info()
    db_logger.success("Async database startup completed", "STARTUP", **pool_info)


async def shutdown_async_database():
    """Clean up async database connections on application shutdown."""
    logger.info("Starting async database shutdown...")
    await close_async_db_manager()
    logger.info("Async database shutdown completed successfully")


async def check_async_database_health() -> dict:
    """
    Health check of the async database connection.

    Example:
        {
            "status": "healthy",
            "connection_test": True,
            "pool_info": {"status": "initialized", "pool_type": "AsyncAdaptedQueuePool", ...},
            "response_time_ms": 15.2,
            "timestamp": "2024-01-15T10:30:00Z",
            "error": None
        }
    """
    start_time = time.time()
    health_status = {
        "status": "unhealthy",
        "connection_test": False,
        "pool_info": {},
        "response_time_ms": 0,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "error": None
    }

    try:
        manager = await get_async_db_manager()

        connection_test = await manager.test_connection()
        health_status["connection_test"] = connection_test
        if not connection_test:
            health_status["error"] = "Database connection test failed"
        else:
            health_status["pool_info"] = await manager.get_connection_info()
            health_status["status"] = "healthy"
    except (SQLAlchemyError, ValueError, RuntimeError) as e:
        health_status["error"] = str(e)
        logger.error(f"Database health check failed: {e}")

    health_status["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
    return health_status


async def close_async_db_manager():
    """Close the global async database manager."""
    global _async_db_manager

    if _async_db_manager is not None:
        await _async_db_manager.close()
        _async_db_manager = None
        logger.info("Async database manager closed and cleaned up")
