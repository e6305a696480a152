import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from .core.config import settings
from .models import metadata
from .store import SQLAlchemyEntityStore

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.DATABASE_URL)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)

# Shared by every session so inserts reach every subscriber
entity_store = SQLAlchemyEntityStore(async_session_maker)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Creates any missing tables."""
    async with bind.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Database tables ensured")


async def check_database_health(bind: AsyncEngine = engine) -> bool:
    """
    Check if the database connection is working and all required tables exist.
    Returns True if healthy, raises an exception if not.
    """
    try:
        async with bind.connect() as conn:
            table_names = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        existing_tables = set(table_names)
        logger.info("Database connection successful")

        expected_tables = set(metadata.tables.keys())
        missing_tables = expected_tables - existing_tables
        if missing_tables:
            logger.error(f"Missing required tables: {missing_tables}")
            raise RuntimeError(
                f"Database initialisation required. Missing tables: {missing_tables}"
            )

        logger.info(f"All required tables present: {expected_tables}")
        return True

    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise
