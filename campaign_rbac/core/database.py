"""
Database Configuration and Session Management
Async engine and sessions for the RBAC tables
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
import structlog

from campaign_rbac.core.config import settings, DATABASE_CONFIG

logger = structlog.get_logger()

database_url = settings.DATABASE_URL

engine_kwargs = {
    "pool_pre_ping": DATABASE_CONFIG["pool_pre_ping"],
    "echo": DATABASE_CONFIG["echo"],
}

# Pool sizing and server settings only apply to PostgreSQL
if database_url.startswith("postgresql"):
    engine_kwargs.update(
        pool_size=DATABASE_CONFIG["pool_size"],
        max_overflow=DATABASE_CONFIG["max_overflow"],
        pool_timeout=DATABASE_CONFIG["pool_timeout"],
        pool_recycle=DATABASE_CONFIG["pool_recycle"],
    )
    engine_kwargs["connect_args"] = {
        "server_settings": {
            "application_name": "campaign-rbac",
        }
    }

engine = create_async_engine(
    database_url,
    **engine_kwargs
)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Create declarative base
Base = declarative_base()


# Database dependency for FastAPI
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency for FastAPI endpoints
    Commits on success, rolls back on any error and re-raises it
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_health() -> bool:
    """
    Check database connectivity
    Used by operator scripts before touching the RBAC tables
    """
    try:
        async with engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False


async def init_database():
    """
    Create the RBAC tables if they do not exist yet
    """
    try:
        async with engine.begin() as conn:
            # Import all models to ensure they're registered
            from campaign_rbac.models import rbac, user  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Database initialization failed", error=str(e))
        raise


async def close_database():
    """
    Close database connections
    """
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections", error=str(e))
