"""
Database connection and session management.
Handles PostgreSQL + pgvector setup with SQLAlchemy async engine.
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
import logging

from mindmeld.config import settings

logger = logging.getLogger(__name__)

# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,  # Set to True for SQL query logging
    future=True,
    pool_pre_ping=True,
    poolclass=NullPool,  # Use NullPool for better async compatibility
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for ORM models
Base = declarative_base()


async def init_db() -> None:
    """
    Initialize the pgvector extension, the round_data table and its
    cosine vector index.
    """
    try:
        async with engine.begin() as conn:
            # Import all models to ensure they're registered
            from mindmeld.models import database_models  # noqa: F401

            await conn.execute(
                text("CREATE EXTENSION IF NOT EXISTS vector")
            )
            logger.info("pgvector extension created/verified")

            # Table and the HNSW index declared on RoundRecord
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created/verified")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


async def close_db() -> None:
    """Close database connections gracefully."""
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database: {e}")
        raise
