"""
Unit tests for the AiohttpProbeExecutor class.

This module contains tests for the AiohttpProbeExecutor class, ensuring that it
performs one request per check, evaluates the response and folds transport
failures into unhealthy outcomes.

The tests follow the Arrange-Act-Assert (AAA) pattern. Most tests mock the
aiohttp session; the timeout and connection refused cases run against real
sockets.
"""

import asyncio
import socket
from typing import AsyncGenerator, Tuple
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from endpoint_monitor.domain import Endpoint, HttpMethod, PathAssertion
from endpoint_monitor.executor.aiohttp_executor import (
    AiohttpProbeExecutor,
    describe_transport_error,
    truncate_body,
)


@pytest.fixture
def mock_session() -> Tuple[MagicMock, MagicMock]:
    """
    Creates a mock aiohttp.ClientSession for testing.

    Returns:
        Tuple[MagicMock, MagicMock]: A tuple containing a mock ClientSession and a mock response.
    """
    session = MagicMock()

    mock_response = MagicMock()
    mock_response.status = 200
    mock_response.text = AsyncMock(return_value='{"status":"healthy"}')

    # session.request(...) is used as an async context manager
    session.request.return_value.__aenter__.return_value = mock_response

    return session, mock_response


@pytest.fixture
def sample_endpoint() -> Endpoint:
    """
    Creates a sample Endpoint object for testing.

    Returns:
        Endpoint: An Endpoint object with test values.
    """
    return Endpoint(
        id="ep-1",
        name="Health API",
        url="https://example.com/health",
        method=HttpMethod.POST,
        headers={"Authorization": "Bearer token"},
        timeout_ms=2500,
        path_assertions=(PathAssertion(path="status", operator="equals", value="healthy"),),
        check_frequency=5,
    )


@pytest.fixture
def executor(mock_session: Tuple[MagicMock, MagicMock]) -> AiohttpProbeExecutor:
    """
    Creates an AiohttpProbeExecutor instance with a mock session.

    Args:
        mock_session: A fixture providing a mock ClientSession.

    Returns:
        AiohttpProbeExecutor: An executor configured with mock dependencies.
    """
    session, _ = mock_session
    return AiohttpProbeExecutor(instance_id="test-instance", session=session)


@pytest_asyncio.fixture
async def slow_server() -> AsyncGenerator[TestServer, None]:
    """
    Starts a local HTTP server whose handler answers after one second.

    Yields:
        TestServer: The running server.
    """

    async def slow_handler(request: web.Request) -> web.Response:
        await asyncio.sleep(1)
        return web.Response(text="late")

    app = web.Application()
    app.router.add_get("/slow", slow_handler)
    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest.mark.asyncio
async def test_execute_should_return_healthy_outcome_for_matching_response(
    executor: AiohttpProbeExecutor,
    mock_session: Tuple[MagicMock, MagicMock],
    sample_endpoint: Endpoint,
) -> None:
    """
    Tests that a 200 response satisfying every assertion yields a healthy outcome.
    """
    # Arrange
    session, _ = mock_session

    # Act
    outcome = await executor.execute(sample_endpoint)

    # Assert
    assert outcome.endpoint_id == "ep-1"
    assert outcome.healthy is True
    assert outcome.status_code == 200
    assert outcome.response_body == '{"status":"healthy"}'
    assert outcome.error_message is None
    assert outcome.latency_ms >= 0
    assert outcome.started_at.tzinfo is not None
    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    assert args == (HttpMethod.POST, "https://example.com/health")
    assert kwargs["headers"] == {"Authorization": "Bearer token"}
    assert kwargs["timeout"].total == 2.5
    assert kwargs["raise_for_status"] is False


@pytest.mark.asyncio
async def test_execute_should_join_failure_reasons(
    executor: AiohttpProbeExecutor,
    mock_session: Tuple[MagicMock, MagicMock],
    sample_endpoint: Endpoint,
) -> None:
    """
    Tests that every failed expectation ends up in the error message, joined by '; '.
    """
    # Arrange
    _, mock_response = mock_session
    mock_response.status = 503
    mock_response.text.return_value = '{"status":"degraded"}'

    # Act
    outcome = await executor.execute(sample_endpoint)

    # Assert
    assert outcome.healthy is False
    assert outcome.status_code == 503
    assert outcome.error_message == (
        "Expected status 200, got 503; "
        'Assertion failed: status equals "healthy" (actual: "degraded")'
    )


@pytest.mark.asyncio
async def test_execute_should_cap_stored_body_but_evaluate_full_body(
    mock_session: Tuple[MagicMock, MagicMock],
    sample_endpoint: Endpoint,
) -> None:
    """
    Tests that the stored body is truncated while assertions see the whole body.
    """
    # Arrange
    session, mock_response = mock_session
    body = '{"padding":"' + "x" * 200 + '","status":"healthy"}'
    mock_response.text.return_value = body
    executor = AiohttpProbeExecutor(instance_id="test-instance", session=session, max_body_bytes=50)

    # Act
    outcome = await executor.execute(sample_endpoint)

    # Assert
    assert outcome.healthy is True
    assert outcome.response_body == body[:50]


@pytest.mark.asyncio
async def test_execute_should_send_no_headers_when_none_configured(
    executor: AiohttpProbeExecutor,
    mock_session: Tuple[MagicMock, MagicMock],
    sample_endpoint: Endpoint,
) -> None:
    """
    Tests that an endpoint without headers does not pass an empty mapping.
    """
    # Arrange
    session, _ = mock_session
    endpoint = sample_endpoint._replace(headers=None, method=HttpMethod.GET)

    # Act
    await executor.execute(endpoint)

    # Assert
    _, kwargs = session.request.call_args
    assert kwargs["headers"] is None


@pytest.mark.asyncio
async def test_execute_should_report_dns_failure(
    executor: AiohttpProbeExecutor,
    mock_session: Tuple[MagicMock, MagicMock],
    sample_endpoint: Endpoint,
) -> None:
    """
    Tests that a name resolution error yields an unhealthy outcome without status or body.
    """
    # Arrange
    session, _ = mock_session
    session.request.side_effect = aiohttp.ClientConnectorDNSError(
        MagicMock(), socket.gaierror(-2, "Name or service not known")
    )

    # Act
    outcome = await executor.execute(sample_endpoint)

    # Assert
    assert outcome.healthy is False
    assert outcome.status_code is None
    assert outcome.response_body is None
    assert outcome.error_message.startswith("DNS lookup failed: ")


@pytest.mark.asyncio
async def test_execute_should_report_generic_transport_error(
    executor: AiohttpProbeExecutor,
    mock_session: Tuple[MagicMock, MagicMock],
    sample_endpoint: Endpoint,
) -> None:
    """
    Tests that other client errors are described by their message.
    """
    # Arrange
    session, _ = mock_session
    session.request.side_effect = aiohttp.ClientPayloadError("Response payload is not completed")

    # Act
    outcome = await executor.execute(sample_endpoint)

    # Assert
    assert outcome.healthy is False
    assert outcome.error_message == "Response payload is not completed"


@pytest.mark.asyncio
async def test_execute_should_time_out_against_slow_server(slow_server: TestServer) -> None:
    """
    Tests that a server slower than the endpoint timeout yields a timeout outcome.
    """
    # Arrange
    endpoint = Endpoint(
        id="ep-slow", name="Slow", url=str(slow_server.make_url("/slow")), timeout_ms=100
    )

    # Act
    async with aiohttp.ClientSession() as session:
        outcome = await AiohttpProbeExecutor("test-instance", session).execute(endpoint)

    # Assert
    assert outcome.healthy is False
    assert outcome.status_code is None
    assert outcome.response_body is None
    assert outcome.error_message == "Request timeout after 100ms"
    assert outcome.latency_ms < 1000


@pytest.mark.asyncio
async def test_execute_should_report_connection_refused() -> None:
    """
    Tests that connecting to a closed local port is reported as a refused connection.
    """
    # Arrange
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    endpoint = Endpoint(id="ep-closed", name="Closed", url=f"http://127.0.0.1:{port}/")

    # Act
    async with aiohttp.ClientSession() as session:
        outcome = await AiohttpProbeExecutor("test-instance", session).execute(endpoint)

    # Assert
    assert outcome.healthy is False
    assert outcome.error_message == "Connection refused"


def test_describe_transport_error_should_report_timeout_with_configured_value() -> None:
    """
    Tests that timeouts quote the endpoint's timeout in milliseconds.
    """
    # Act
    result = describe_transport_error(asyncio.TimeoutError(), 750)

    # Assert
    assert result == "Request timeout after 750ms"


def test_describe_transport_error_should_fall_back_to_type_name() -> None:
    """
    Tests that an exception without a message is described by its type name.
    """
    # Act
    result = describe_transport_error(aiohttp.ClientError(), 1000)

    # Assert
    assert result == "ClientError"


def test_truncate_body_should_not_split_multibyte_characters() -> None:
    """
    Tests that truncation happens on UTF-8 bytes without leaving a partial character.
    """
    # Arrange
    body = "ab" + "é" * 10

    # Act
    result = truncate_body(body, limit=5)

    # Assert
    assert result == "abé"
    assert len(result.encode("utf-8")) <= 5


def test_truncate_body_should_keep_short_bodies_intact() -> None:
    """
    Tests that bodies within the limit are returned unchanged.
    """
    # Act
    result = truncate_body("short", limit=10_000)

    # Assert
    assert result == "short"
