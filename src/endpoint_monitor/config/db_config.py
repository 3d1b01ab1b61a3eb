"""
Database configuration module for the endpoint monitoring system.

This module creates and validates a connection pool to the PostgreSQL
database using the asyncpg library. JSON columns are decoded into Python
values on every pooled connection.
"""

import json
import logging

import asyncpg

from endpoint_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)


async def _init_connection(connection: asyncpg.Connection) -> None:
    """
    Registers JSON codecs on a freshly opened connection.

    Args:
        connection: The connection being added to the pool.
    """
    for type_name in ("json", "jsonb"):
        await connection.set_type_codec(
            type_name, encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
        )


async def initiate_db_pool(context: MonitoringContext) -> asyncpg.pool.Pool:
    """
    Create and validate a connection pool to the PostgreSQL database.

    If the validation query fails, the pool is closed and the error re-raised;
    the monitor cannot run without its endpoint store.

    Args:
        context: Configuration context containing database connection parameters.

    Returns:
        asyncpg.pool.Pool: A connection pool that can be used to execute database queries.

    Raises:
        Exception: If the database connection cannot be established.
    """
    pool: asyncpg.pool.Pool = await asyncpg.create_pool(
        dsn=context.dsn,
        min_size=1,
        max_size=context.db_pool_size,
        init=_init_connection,
    )

    try:
        async with pool.acquire() as connection:
            await connection.fetchval("SELECT 1")
        logger.info("Database connection pool successfully created.")
        return pool
    except Exception as e:
        logger.error(f"Error: Could not connect to the database. {e}")
        await pool.close()
        raise
