from typing import Optional
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy import text

# Base class for SQLAlchemy models
Base = declarative_base()

logger = logging.getLogger(__name__)


def create_sql_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine (pool options only apply to server databases)"""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)

    return create_async_engine(
        database_url,
        echo=echo,  # Log SQL queries in debug mode
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Validate connections before use
    )


async def init_sql_db(engine: AsyncEngine):
    """Create tables for all registered models"""
    # 모델 등록 (Base.metadata에 테이블 추가)
    from monadssenger.models import messages, typing_indicators  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQL database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize SQL database: {e}")
        raise


async def check_sql_connection(engine: Optional[AsyncEngine]) -> bool:
    """Check SQL database connection"""
    if engine is None:
        return False
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.fetchone() is not None
    except Exception as e:
        logger.error(f"SQL connection check failed: {e}")
        return False


async def close_sql_db(engine: AsyncEngine):
    """Close SQL database connections"""
    await engine.dispose()
    logger.info("SQL database connections closed")
