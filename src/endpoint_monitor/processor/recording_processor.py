"""
Outcome recording processor.

Hands every outcome to the outcome sink exactly once. There is no buffering
and no retry: a failed write is logged and the outcome is considered handled.
"""

import logging

from endpoint_monitor.contracts import OutcomeProcessor, OutcomeSink
from endpoint_monitor.domain import Endpoint, ProbeOutcome

# Module logger
logger = logging.getLogger(__name__)


class RecordingProcessor(OutcomeProcessor):
    """Persists each outcome through an OutcomeSink."""

    def __init__(self, instance_id: str, sink: OutcomeSink) -> None:
        """
        Initializes the processor.

        Args:
            instance_id: A unique identifier for this monitor instance.
            sink: Where outcomes are persisted.
        """
        self._instance_id: str = instance_id
        self._sink: OutcomeSink = sink

    async def process(self, endpoint: Endpoint, outcome: ProbeOutcome) -> None:
        try:
            await self._sink.record(outcome)
        except Exception as e:
            logger.error(
                f"Recording outcome for endpoint {endpoint.id} failed: {e}. The outcome is lost."
            )
            return
        logger.debug(
            f"Recorded outcome for endpoint {endpoint.id} "
            f"(healthy={outcome.healthy}, status={outcome.status_code})"
        )
