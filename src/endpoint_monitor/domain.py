"""
Domain models for the endpoint monitoring system.

This module defines the core data structures used throughout the application:
monitored endpoints with their expectations and schedule, the raw response
handed to the assertion evaluator, and the outcome of a single check.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple


class HttpMethod(str, Enum):
    """
    Defines supported HTTP methods as a type-safe enumeration.

    Inheriting from 'str' allows enum members to behave like strings,
    making them compatible with libraries expecting string values.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ScheduleMode(str, Enum):
    """Timing strategies an endpoint can be scheduled with."""

    INTERVAL = "interval"
    CRON = "cron"


class AssertionOperator(str, Enum):
    """Operators understood by the body-path assertion evaluator."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    EXISTS = "exists"


class PathAssertion(NamedTuple):
    """
    A rule validating a single dotted path within a JSON response body.

    The operator is kept as a plain string because definitions come from an
    external store and may carry operators this version does not know; those
    always fail.

    Attributes:
        path: Dot-separated path, e.g. "data.items.0.status".
        operator: One of the AssertionOperator values.
        value: The expected value (ignored by 'exists').
    """

    path: str
    operator: str
    value: Any = None


class Endpoint(NamedTuple):
    """
    Represents a single monitored HTTP endpoint with its complete definition.

    This data structure corresponds to a row of the 'endpoints' table. Updates
    replace the whole definition, which is why it is immutable.

    Attributes:
        id: Opaque unique identifier, stable for the endpoint's lifetime.
        name: Human readable name used in logs and notifications.
        url: The URL to probe.
        method: The HTTP method to use for the request.
        headers: Optional HTTP headers sent with every request.
        timeout_ms: Request timeout in milliseconds.
        expected_status_codes: Status codes considered healthy.
        response_time_threshold_ms: Optional latency ceiling in milliseconds.
        path_assertions: Ordered body-path assertions.
        schedule_type: 'interval' or 'cron'; None means interval.
        check_frequency: Interval period in minutes (interval mode).
        cron_schedule: Five-field cron expression (cron mode).
        is_active: Inactive endpoints are never scheduled.
    """

    id: str
    name: str
    url: str
    method: HttpMethod = HttpMethod.GET
    headers: Optional[Dict[str, str]] = None
    timeout_ms: int = 30000
    expected_status_codes: Tuple[int, ...] = (200,)
    response_time_threshold_ms: Optional[int] = None
    path_assertions: Tuple[PathAssertion, ...] = ()
    schedule_type: Optional[str] = ScheduleMode.INTERVAL.value
    check_frequency: Optional[int] = None
    cron_schedule: Optional[str] = None
    is_active: bool = True


class ProbeResponse(NamedTuple):
    """
    The part of an HTTP response the assertion evaluator looks at.

    Attributes:
        status_code: The HTTP status code received.
        latency_ms: Measured request duration in milliseconds.
        body: The full, untruncated response body as text.
    """

    status_code: int
    latency_ms: int
    body: str


class ProbeOutcome(NamedTuple):
    """
    The result of one check execution, handed to the outcome pipeline.

    Attributes:
        endpoint_id: Identifier of the checked endpoint.
        started_at: Wall-clock time (UTC) at which the check started.
        latency_ms: Measured duration, also recorded for transport failures.
        status_code: HTTP status code, or None when the request failed.
        response_body: Response text capped in size, or None on failure.
        healthy: Whether every expectation was met.
        error_message: Combined failure description, or None when healthy.
    """

    endpoint_id: str
    started_at: datetime
    latency_ms: int
    status_code: Optional[int]
    response_body: Optional[str]
    healthy: bool
    error_message: Optional[str]


class NotificationResult(NamedTuple):
    """What a notification sink reports back; only ever logged."""

    sent: bool
    reason: Optional[str] = None
