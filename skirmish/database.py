"""
Database configuration for Skirmish.

This module provides database connection, session management,
and initialization for the durable storage backing.

CRITICAL: Database initialization is LAZY and requires configuration to be loaded first.
         The system will FAIL LOUDLY if asked for an engine without a database URL.
"""

import threading

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from .exceptions import ConfigurationError
from .models.db import Base
from .structured_logging.enhanced_logging_config import get_logger
from .utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)


class DatabaseManager:
    """
    Database engine and session maker holder.

    The process-wide instance is reached through get_instance(); tests build
    their own instance against a throwaway URL.
    """

    _instance: "DatabaseManager | None" = None
    _lock: threading.Lock = threading.Lock()

    def __init__(self, database_url: str | None = None, echo: bool = False) -> None:
        """Initialize the database manager."""
        self.engine: AsyncEngine | None = None
        self.session_maker: async_sessionmaker | None = None
        self.database_url: str | None = database_url
        self.echo = echo
        self._initialized: bool = False

    @classmethod
    def get_instance(cls) -> "DatabaseManager":
        """Get the singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton for testing."""
        with cls._lock:
            cls._instance = None

    def _initialize_database(self) -> None:
        """
        Initialize database engine and session maker from configuration.

        Raises:
            ConfigurationError: If no database URL is configured
        """
        if self._initialized:
            return

        context = create_error_context()
        context.metadata["operation"] = "database_initialization"

        if self.database_url is None:
            from .config import get_config

            config = get_config()
            self.database_url = config.database.url
            self.echo = config.database.echo

        if not self.database_url:
            log_and_raise(
                ConfigurationError,
                "Database URL is not configured",
                context=context,
                user_friendly="Database cannot be initialized: DATABASE_URL is not set",
            )

        engine_kwargs: dict = {"echo": self.echo}
        if self.database_url.startswith("sqlite"):
            engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_async_engine(self.database_url, **engine_kwargs)
        logger.info("Database engine created", database_url=self.database_url)

        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("Database session maker created")
        self._initialized = True

    def get_engine(self) -> AsyncEngine:
        """
        Get the database engine, initializing if necessary.

        Raises:
            ConfigurationError: If database cannot be initialized
        """
        if not self._initialized:
            self._initialize_database()
        assert self.engine is not None, "Database engine not initialized"
        return self.engine

    def get_session_maker(self) -> async_sessionmaker:
        """
        Get the async session maker, initializing if necessary.

        Raises:
            ConfigurationError: If database cannot be initialized
        """
        if not self._initialized:
            self._initialize_database()
        assert self.session_maker is not None, "Session maker not initialized"
        return self.session_maker

    async def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        engine = self.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured", tables=sorted(Base.metadata.tables))

    async def close(self) -> None:
        """Close database connections."""
        if self.engine is None:
            self._initialized = False
            return
        engine = self.engine
        try:
            await engine.dispose()
            logger.info("Database connections closed")
        except (RuntimeError, AttributeError) as e:
            logger.debug("Event loop closed during engine disposal", error=str(e))
        finally:
            self.engine = None
            self.session_maker = None
            self._initialized = False


def get_database_manager() -> DatabaseManager:
    """Get the database manager singleton."""
    return DatabaseManager.get_instance()


async def init_db() -> None:
    """Create all tables on the process-wide database."""
    await get_database_manager().init_db()
