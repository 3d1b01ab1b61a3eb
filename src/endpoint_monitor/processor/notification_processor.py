"""
Failure notification processor.

Unhealthy outcomes are forwarded to a notification sink together with the
current settings bundle. Whether a notification is actually delivered is the
sink's business; this processor only logs what the sink reports.
"""

import logging

from endpoint_monitor.contracts import NotificationSink, OutcomeProcessor, SettingsStore
from endpoint_monitor.domain import Endpoint, ProbeOutcome

# Module logger
logger = logging.getLogger(__name__)


class FailureNotificationProcessor(OutcomeProcessor):
    """
    Notifies about failed checks.

    Healthy outcomes are ignored. For unhealthy ones the settings are loaded
    fresh on every call, so toggling notifications takes effect without a
    restart.
    """

    def __init__(
        self, instance_id: str, sink: NotificationSink, settings_store: SettingsStore
    ) -> None:
        """
        Initializes the processor.

        Args:
            instance_id: A unique identifier for this monitor instance.
            sink: The notification channel.
            settings_store: Source of the settings bundle passed to the sink.
        """
        self._instance_id: str = instance_id
        self._sink: NotificationSink = sink
        self._settings_store: SettingsStore = settings_store

    async def process(self, endpoint: Endpoint, outcome: ProbeOutcome) -> None:
        """
        Sends a failure notification for unhealthy outcomes.

        Args:
            endpoint: The endpoint definition the check ran with.
            outcome: The outcome of the check.

        Returns:
            None
        """
        if outcome.healthy:
            return

        try:
            settings = await self._settings_store.load()
            result = await self._sink.notify(endpoint, outcome, settings)
        except Exception as e:
            logger.error(f"Error sending failure notification for endpoint {endpoint.id}: {e}")
            return

        if result.sent:
            logger.info(f"Failure notification sent for endpoint {endpoint.name}")
        else:
            logger.debug(
                f"No failure notification for endpoint {endpoint.name}: {result.reason}"
            )
