"""
HTTP client configuration module for the endpoint monitoring system.

This module creates the aiohttp client session shared by all health checks.
"""

import logging

import aiohttp

from endpoint_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)

USER_AGENT = "endpoint-monitor/1.0"


def get_http_session(context: MonitoringContext) -> aiohttp.ClientSession:
    """
    Create the HTTP client session used for all checks.

    The connection pool is sized to the concurrency bound. No session-wide
    timeout is set because every request carries its endpoint's own timeout,
    and cookies are not kept between checks.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        aiohttp.ClientSession: A configured HTTP client session.
    """
    connector = aiohttp.TCPConnector(limit=context.max_concurrent_checks)
    logger.debug(f"HTTP connector limit set to {context.max_concurrent_checks}")
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=None),
        cookie_jar=aiohttp.DummyCookieJar(),
        headers={"User-Agent": USER_AGENT},
    )
