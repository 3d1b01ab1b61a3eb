"""
HTTP probe executor implementation using the aiohttp library.

This module provides an implementation of the ProbeExecutor interface that uses
the aiohttp library to perform HTTP requests. It handles timing, transport error
classification, body capping, and delegates pass/fail rules to the assertion
evaluator.
"""

import asyncio
import errno
import logging
import socket
import time
from datetime import datetime, timezone
from typing import List, Optional

import aiohttp

from endpoint_monitor.contracts import ProbeExecutor
from endpoint_monitor.domain import Endpoint, ProbeOutcome, ProbeResponse
from endpoint_monitor.evaluator.assertion_evaluator import evaluate

# Module logger
logger = logging.getLogger(__name__)

# Stored response bodies are capped to this many UTF-8 bytes
MAX_BODY_BYTES = 10_000


def truncate_body(body: str, limit: int = MAX_BODY_BYTES) -> str:
    """
    Caps a response body to a number of UTF-8 bytes.

    Args:
        body: The full response text.
        limit: Maximum size in bytes of the returned text.

    Returns:
        str: The body, cut at the byte limit without splitting a character.
    """
    encoded = body.encode("utf-8")
    if len(encoded) <= limit:
        return body
    return encoded[:limit].decode("utf-8", errors="ignore")


def describe_transport_error(error: Exception, timeout_ms: int) -> str:
    """
    Maps a transport-level exception onto a human readable failure summary.

    Args:
        error: The exception raised while performing the request.
        timeout_ms: The endpoint's configured timeout, quoted for timeouts.

    Returns:
        str: One of the timeout, DNS, connection refused or generic summaries.
    """
    if isinstance(error, asyncio.TimeoutError):
        return f"Request timeout after {timeout_ms}ms"

    if isinstance(error, aiohttp.ClientConnectorDNSError):
        return f"DNS lookup failed: {error}"

    if isinstance(error, aiohttp.ClientConnectorError):
        os_error = error.os_error
        if isinstance(os_error, socket.gaierror):
            return f"DNS lookup failed: {error}"
        if isinstance(os_error, ConnectionRefusedError) or os_error.errno == errno.ECONNREFUSED:
            return "Connection refused"

    return str(error) or type(error).__name__


class AiohttpProbeExecutor(ProbeExecutor):
    """
    A concrete implementation of ProbeExecutor using the aiohttp library.

    This class handles the entire lifecycle of a single HTTP check: one
    request bounded by the endpoint timeout, latency measurement, error
    classification and evaluation. It uses a shared aiohttp ClientSession.
    Any status code is accepted here; whether it is healthy is decided by the
    evaluator.
    """

    def __init__(
        self,
        instance_id: str,
        session: aiohttp.ClientSession,
        max_body_bytes: int = MAX_BODY_BYTES,
    ) -> None:
        """
        Initializes the executor with a shared aiohttp ClientSession.

        Args:
            instance_id: A unique identifier for this monitor instance.
            session: An active aiohttp.ClientSession to be used for requests.
            max_body_bytes: Size cap applied to stored response bodies.
        """
        self._instance_id: str = instance_id
        self._session: aiohttp.ClientSession = session
        self._max_body_bytes: int = max_body_bytes

    async def execute(self, endpoint: Endpoint) -> ProbeOutcome:
        """
        Performs an HTTP request to the endpoint's URL and evaluates the response.

        Transport failures never propagate; they produce an unhealthy outcome
        without status code or body.

        Args:
            endpoint: The endpoint to check.

        Returns:
            ProbeOutcome: The outcome of the check.
        """
        logger.debug(f"Starting check for endpoint {endpoint.id}: {endpoint.method.value} {endpoint.url}")
        started_at: datetime = datetime.now(timezone.utc)
        status_code: Optional[int] = None
        body: Optional[str] = None
        error: Optional[Exception] = None
        start: float = time.monotonic()

        try:
            async with self._session.request(
                endpoint.method,
                endpoint.url,
                headers=endpoint.headers or None,
                timeout=aiohttp.ClientTimeout(total=endpoint.timeout_ms / 1000),
                raise_for_status=False,
            ) as response:
                status_code = response.status
                body = await response.text(errors="replace")
        except Exception as e:
            error = e

        latency_ms: int = int((time.monotonic() - start) * 1000)

        if error is not None:
            error_message = describe_transport_error(error, endpoint.timeout_ms)
            logger.warning(f"Check failed for {endpoint.url}: {error_message}")
            return ProbeOutcome(
                endpoint_id=endpoint.id,
                started_at=started_at,
                latency_ms=latency_ms,
                status_code=None,
                response_body=None,
                healthy=False,
                error_message=error_message,
            )

        healthy, reasons = evaluate(
            ProbeResponse(status_code=status_code, latency_ms=latency_ms, body=body), endpoint
        )
        logger.debug(
            f"Checked {endpoint.url} in {latency_ms}ms with status {status_code} "
            f"({'healthy' if healthy else 'unhealthy'})"
        )

        return ProbeOutcome(
            endpoint_id=endpoint.id,
            started_at=started_at,
            latency_ms=latency_ms,
            status_code=status_code,
            response_body=truncate_body(body, self._max_body_bytes),
            healthy=healthy,
            error_message=_join_reasons(reasons),
        )


def _join_reasons(reasons: List[str]) -> Optional[str]:
    return "; ".join(reasons) if reasons else None
