"""
PostgreSQL-backed collaborators of the scheduling engine.

This module provides the endpoint store, the outcome sink and the settings
store on top of an asyncpg connection pool. The table layout is described in
sql/schema.sql.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from asyncpg import Pool, Record

from endpoint_monitor.contracts import EndpointStore, OutcomeSink, SettingsStore
from endpoint_monitor.domain import Endpoint, HttpMethod, PathAssertion, ProbeOutcome

# Module logger
logger = logging.getLogger(__name__)

ENDPOINT_COLUMNS = """
                   id,
                   name,
                   url,
                   method,
                   headers,
                   expected_status_codes,
                   json_path_assertions,
                   response_time_threshold,
                   schedule_type,
                   check_frequency,
                   cron_schedule,
                   timeout,
                   is_active
                   """

FIND_ALL_ENDPOINTS_QUERY = f"SELECT {ENDPOINT_COLUMNS} FROM endpoints ORDER BY created_at DESC"

FIND_ENDPOINT_BY_ID_QUERY = f"SELECT {ENDPOINT_COLUMNS} FROM endpoints WHERE id = $1"

INSERT_CHECK_RESULT_QUERY = """
                            INSERT INTO check_results (endpoint_id, timestamp, is_healthy,
                                                       status_code, response_body,
                                                       response_time, error_message)
                            VALUES ($1, $2, $3, $4, $5, $6, $7);
                            """

LOAD_SETTINGS_QUERY = "SELECT key, value FROM settings"

DEFAULT_TIMEOUT_MS = 30000


def _json_value(value: Any) -> Any:
    """Accepts both decoded JSON columns and raw JSON text."""
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def _map_assertions(raw: Optional[Iterable[Dict[str, Any]]]) -> Tuple[PathAssertion, ...]:
    if not raw:
        return ()
    return tuple(
        PathAssertion(
            path=str(item.get("path", "")),
            operator=str(item.get("operator", "")),
            value=item.get("value"),
        )
        for item in raw
    )


def map_endpoint(record: Record) -> Endpoint:
    """
    Converts a database record to an Endpoint domain object.

    Args:
        record: A row of the 'endpoints' table.

    Returns:
        Endpoint: A domain object representing the monitored endpoint.
    """
    headers = _json_value(record["headers"]) or {}
    status_codes = _json_value(record["expected_status_codes"]) or [200]
    assertions = _json_value(record["json_path_assertions"])

    return Endpoint(
        id=record["id"],
        name=record["name"],
        url=record["url"],
        method=HttpMethod((record["method"] or "GET").upper()),
        headers={str(key): str(value) for key, value in headers.items()},
        timeout_ms=record["timeout"] or DEFAULT_TIMEOUT_MS,
        expected_status_codes=tuple(int(code) for code in status_codes),
        response_time_threshold_ms=record["response_time_threshold"],
        path_assertions=_map_assertions(assertions),
        schedule_type=record["schedule_type"],
        check_frequency=record["check_frequency"],
        cron_schedule=record["cron_schedule"],
        is_active=bool(record["is_active"]),
    )


class PostgresEndpointStore(EndpointStore):
    """Reads endpoint definitions from the 'endpoints' table."""

    def __init__(self, pool: Pool) -> None:
        self._pool: Pool = pool

    async def find_all(self) -> List[Endpoint]:
        """
        Loads every endpoint definition.

        Rows that cannot be mapped, such as an unknown HTTP method or broken
        JSON, are logged and skipped.

        Returns:
            List[Endpoint]: All mappable endpoint definitions.
        """
        async with self._pool.acquire() as conn:
            records = await conn.fetch(FIND_ALL_ENDPOINTS_QUERY)
        logger.debug(f"Loaded {len(records)} endpoint definitions.")

        endpoints: List[Endpoint] = []
        for record in records:
            try:
                endpoints.append(map_endpoint(record))
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(f"Skipping endpoint {record['id']}: invalid definition ({e})")
        return endpoints

    async def find_by_id(self, endpoint_id: str) -> Optional[Endpoint]:
        async with self._pool.acquire() as conn:
            record = await conn.fetchrow(FIND_ENDPOINT_BY_ID_QUERY, endpoint_id)
        return map_endpoint(record) if record is not None else None


class PostgresOutcomeSink(OutcomeSink):
    """
    Writes every outcome as one row of the 'check_results' table.

    Each call issues its own INSERT as soon as the check completes. Database
    errors propagate to the caller, which logs them.
    """

    def __init__(self, pool: Pool, acquire_timeout: float = 10.0) -> None:
        """
        Initializes the sink.

        Args:
            pool: The asyncpg connection pool.
            acquire_timeout: Seconds to wait for a free connection.
        """
        self._pool: Pool = pool
        self._acquire_timeout: float = acquire_timeout

    async def record(self, outcome: ProbeOutcome) -> None:
        async with self._pool.acquire(timeout=self._acquire_timeout) as conn:
            await conn.execute(
                INSERT_CHECK_RESULT_QUERY,
                outcome.endpoint_id,
                outcome.started_at,
                outcome.healthy,
                outcome.status_code,
                outcome.response_body,
                outcome.latency_ms,
                outcome.error_message,
            )


class PostgresSettingsStore(SettingsStore):
    """Reads the key/value 'settings' table into a dictionary."""

    def __init__(self, pool: Pool) -> None:
        self._pool: Pool = pool

    async def load(self) -> Dict[str, str]:
        async with self._pool.acquire() as conn:
            records = await conn.fetch(LOAD_SETTINGS_QUERY)
        return {record["key"]: record["value"] for record in records}
