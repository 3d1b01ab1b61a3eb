"""
Unit tests for the database configuration module.

This module contains tests for initiate_db_pool, ensuring that it creates and
validates a connection pool and closes it again when validation fails.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

import json
from typing import Tuple
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from endpoint_monitor.config.db_config import _init_connection, initiate_db_pool
from endpoint_monitor.config.monitoring_context import MonitoringContext


@pytest.fixture
def mock_context() -> MonitoringContext:
    """
    Creates a MonitoringContext for testing.

    Returns:
        MonitoringContext: A MonitoringContext with test values.
    """
    return MonitoringContext(
        dsn="postgresql://localhost/test",
        instance_id="test-instance",
        logging_type="dev",
        logging_config_file="",
        db_pool_size=7,
        max_concurrent_checks=5,
        timezone="",
        shutdown_grace_period=1,
    )


@pytest.fixture
def mock_pool() -> Tuple[MagicMock, AsyncMock]:
    """
    Creates a mock asyncpg pool for testing.

    Returns:
        Tuple[MagicMock, AsyncMock]: The pool and the connection it hands out.
    """
    pool = MagicMock()
    pool.close = AsyncMock()
    conn = AsyncMock()
    conn.fetchval.return_value = 1
    pool.acquire.return_value.__aenter__.return_value = conn
    return pool, conn


@pytest.mark.asyncio
async def test_initiate_db_pool_should_create_and_validate_pool(
    mock_context: MonitoringContext, mock_pool: Tuple[MagicMock, AsyncMock]
) -> None:
    """
    Tests that initiate_db_pool creates a pool sized from the context and validates it.
    """
    # Arrange
    pool, conn = mock_pool

    with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as mock_create_pool:
        # Act
        result = await initiate_db_pool(mock_context)

    # Assert
    mock_create_pool.assert_awaited_once_with(
        dsn=mock_context.dsn, min_size=1, max_size=7, init=_init_connection
    )
    conn.fetchval.assert_awaited_once_with("SELECT 1")
    pool.close.assert_not_awaited()
    assert result is pool


@pytest.mark.asyncio
async def test_initiate_db_pool_should_close_pool_and_raise_exception_on_error(
    mock_context: MonitoringContext, mock_pool: Tuple[MagicMock, AsyncMock]
) -> None:
    """
    Tests that a failed validation query closes the pool and re-raises.
    """
    # Arrange
    pool, conn = mock_pool
    conn.fetchval.side_effect = OSError("Connection error")

    with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)):
        # Act & Assert
        with pytest.raises(OSError, match="Connection error"):
            await initiate_db_pool(mock_context)

    pool.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_init_connection_should_register_json_codecs() -> None:
    """
    Tests that json and jsonb columns are decoded with the json module.
    """
    # Arrange
    connection = AsyncMock()

    # Act
    await _init_connection(connection)

    # Assert
    registered = [call.args[0] for call in connection.set_type_codec.await_args_list]
    assert registered == ["json", "jsonb"]
    for call in connection.set_type_codec.await_args_list:
        assert call.kwargs == {
            "encoder": json.dumps,
            "decoder": json.loads,
            "schema": "pg_catalog",
        }
