"""
Unit tests for the SequentialOutcomeProcessor class.

This module contains tests for the SequentialOutcomeProcessor class, ensuring
that it runs its child processors in order and keeps going when one fails.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

from datetime import datetime, timezone
from typing import List
from unittest.mock import AsyncMock

import pytest

from endpoint_monitor.contracts import OutcomeProcessor
from endpoint_monitor.domain import Endpoint, ProbeOutcome
from endpoint_monitor.processor.sequential_processor import SequentialOutcomeProcessor


@pytest.fixture
def sample_endpoint() -> Endpoint:
    """
    Creates a sample Endpoint object for testing.

    Returns:
        Endpoint: An Endpoint object with test values.
    """
    return Endpoint(id="ep-1", name="API", url="https://example.com", check_frequency=1)


@pytest.fixture
def sample_outcome() -> ProbeOutcome:
    """
    Creates a sample ProbeOutcome object for testing.

    Returns:
        ProbeOutcome: An unhealthy outcome.
    """
    return ProbeOutcome(
        endpoint_id="ep-1",
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        latency_ms=30,
        status_code=500,
        response_body="error",
        healthy=False,
        error_message="Expected status 200, got 500",
    )


@pytest.mark.asyncio
async def test_process_should_run_children_in_order(
    sample_endpoint: Endpoint, sample_outcome: ProbeOutcome
) -> None:
    """
    Tests that every child processor receives the outcome, in list order.
    """
    # Arrange
    calls: List[str] = []
    first = AsyncMock(spec=OutcomeProcessor)
    first.process.side_effect = lambda endpoint, outcome: calls.append("first")
    second = AsyncMock(spec=OutcomeProcessor)
    second.process.side_effect = lambda endpoint, outcome: calls.append("second")
    processor = SequentialOutcomeProcessor("test-instance", [first, second])

    # Act
    await processor.process(sample_endpoint, sample_outcome)

    # Assert
    assert calls == ["first", "second"]
    first.process.assert_awaited_once_with(sample_endpoint, sample_outcome)
    second.process.assert_awaited_once_with(sample_endpoint, sample_outcome)


@pytest.mark.asyncio
async def test_process_should_continue_after_child_failure(
    sample_endpoint: Endpoint, sample_outcome: ProbeOutcome, caplog: pytest.LogCaptureFixture
) -> None:
    """
    Tests that a failing child is logged and does not prevent the next one from running.
    """
    # Arrange
    failing = AsyncMock(spec=OutcomeProcessor)
    failing.process.side_effect = RuntimeError("database down")
    following = AsyncMock(spec=OutcomeProcessor)
    processor = SequentialOutcomeProcessor("test-instance", [failing, following])

    # Act
    await processor.process(sample_endpoint, sample_outcome)

    # Assert
    following.process.assert_awaited_once_with(sample_endpoint, sample_outcome)
    assert "database down" in caplog.text


@pytest.mark.asyncio
async def test_process_should_accept_empty_processor_list(
    sample_endpoint: Endpoint, sample_outcome: ProbeOutcome
) -> None:
    """
    Tests that a composite without children is a no-op.
    """
    # Arrange
    processor = SequentialOutcomeProcessor("test-instance", [])

    # Act & Assert
    await processor.process(sample_endpoint, sample_outcome)
