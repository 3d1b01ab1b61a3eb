"""
Log-based notification sink.

Reports failed checks through the logging system. It honours the
'notifications_enabled' setting so that alerting can be switched off at
runtime without touching the scheduler.
"""

import logging
from typing import Dict

from endpoint_monitor.contracts import NotificationSink
from endpoint_monitor.domain import Endpoint, NotificationResult, ProbeOutcome

# Module logger
logger = logging.getLogger(__name__)

NOTIFICATIONS_ENABLED_KEY = "notifications_enabled"


class LoggingNotificationSink(NotificationSink):
    """Emits one warning per failed check when notifications are enabled."""

    async def notify(
        self, endpoint: Endpoint, outcome: ProbeOutcome, settings: Dict[str, str]
    ) -> NotificationResult:
        if settings.get(NOTIFICATIONS_ENABLED_KEY, "false").lower() != "true":
            return NotificationResult(sent=False, reason="Notifications disabled")

        status = outcome.status_code if outcome.status_code is not None else "N/A"
        logger.warning(
            f"Health check failed: {endpoint.name} [{endpoint.method.value} {endpoint.url}] "
            f"status={status} latency={outcome.latency_ms}ms "
            f"at={outcome.started_at.isoformat()} error={outcome.error_message}"
        )
        return NotificationResult(sent=True)
