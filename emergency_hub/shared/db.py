import json
from contextlib import asynccontextmanager

import asyncpg
import logging

from emergency_hub.shared import config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Database connection pool (asyncpg pool)
db_pool = None


async def _init_connection(conn):
    """Decode json/jsonb columns into Python objects on every pooled connection."""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


async def init_db():
    """
    Initialize asynchronous database connection pool.
    This function should be called once at application startup.
    """
    global db_pool
    try:
        database_url = config.DATABASE_URL
        if not database_url:
            logger.error("DATABASE_URL environment variable is not set.")
            raise RuntimeError("DATABASE_URL environment variable is not set.")

        logger.info("Initializing database connection pool...")
        db_pool = await asyncpg.create_pool(
            dsn=database_url,
            min_size=config.DB_POOL_MIN_SIZE,
            max_size=config.DB_POOL_MAX_SIZE,
            command_timeout=60,
            init=_init_connection,
        )
        logger.info("Database connection pool initialized successfully.")
    except Exception as e:
        logger.exception(f"Error initializing database: {str(e)}")
        raise


async def close_db():
    """
    Close the database connection pool.
    This function should be called once at application shutdown.
    """
    global db_pool
    if db_pool:
        logger.info("Closing database connection pool...")
        await db_pool.close()
        db_pool = None
        logger.info("Database connection pool closed.")


@asynccontextmanager
async def get_db_connection():
    """
    Asynchronous context manager for acquiring and releasing database connections from the pool.
    Use with 'async with get_db_connection() as conn:'
    """
    if db_pool is None:
        logger.error("Database connection pool is not initialized. Call init_db() first.")
        raise RuntimeError("Database connection pool is not initialized. Call init_db() first.")

    conn = None
    try:
        logger.debug("Acquiring database connection from pool...")
        conn = await db_pool.acquire()
        logger.debug("Database connection acquired.")
        yield conn
    finally:
        if conn:
            logger.debug("Releasing database connection back to pool...")
            await db_pool.release(conn)
            logger.debug("Database connection released.")


async def execute_query(sql, params=None, fetch_one=False):
    """
    Execute an asynchronous SQL query and return results.
    Note: Use $1, $2, ... as placeholders in your SQL queries for parameters (not %s or %(name)s).
    """
    try:
        logger.info(f"Executing SQL query: {sql.strip().splitlines()[0][:100]}...")
        logger.debug(f"Query params: {params}")
        async with get_db_connection() as conn:
            if fetch_one:
                result = await conn.fetchrow(sql, *(params or []))
            else:
                result = await conn.fetch(sql, *(params or []))
            logger.info("SQL query executed successfully.")
            return result
    except Exception as e:
        logger.exception(f"Database query error: {str(e)}")
        raise


async def ping_db() -> bool:
    """Return True when the pool can run a trivial query."""
    try:
        async with get_db_connection() as conn:
            await conn.fetchval("SELECT 1")
        return True
    except Exception as e:
        logger.warning(f"Database ping failed: {e}")
        return False
