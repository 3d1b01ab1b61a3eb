"""
Sequential outcome processor implementation.

This module provides a composite implementation of the OutcomeProcessor interface
that hands an outcome to several child processors one after the other. It ensures
that a failure in one processor neither skips the remaining ones nor escapes into
the scheduler.
"""

import logging
from typing import List

from endpoint_monitor.contracts import OutcomeProcessor
from endpoint_monitor.domain import Endpoint, ProbeOutcome

# Module logger
logger = logging.getLogger(__name__)


class SequentialOutcomeProcessor(OutcomeProcessor):
    """
    A concrete implementation of OutcomeProcessor that follows the Composite pattern.

    Children are awaited strictly in order, so an outcome is persisted before
    any notification about it goes out. Every child runs even if an earlier
    one raised.
    """

    def __init__(self, instance_id: str, processors: List[OutcomeProcessor]) -> None:
        """
        Initializes the composite with the processors to run, in order.

        Args:
            instance_id: A unique identifier for this monitor instance.
            processors: Objects adhering to the OutcomeProcessor interface.
        """
        self._instance_id: str = instance_id
        self._processors: List[OutcomeProcessor] = processors

    async def _process_with_one(
        self, processor: OutcomeProcessor, endpoint: Endpoint, outcome: ProbeOutcome
    ) -> None:
        """
        A helper method to safely run a single processor.

        All exceptions are caught and logged, but not propagated.

        Args:
            processor: The individual processor to run.
            endpoint: The endpoint the outcome belongs to.
            outcome: The outcome to be processed.

        Returns:
            None
        """
        try:
            await processor.process(endpoint, outcome)
        except Exception as e:
            logger.exception(
                f"Processor '{type(processor).__name__}' failed for endpoint {endpoint.url} with error: {e}",
            )

    async def process(self, endpoint: Endpoint, outcome: ProbeOutcome) -> None:
        """
        Processes a single ProbeOutcome by running every child processor in order.

        Args:
            endpoint: The endpoint the outcome belongs to.
            outcome: The outcome to be processed by all child processors.

        Returns:
            None
        """
        for processor in self._processors:
            await self._process_with_one(processor, endpoint, outcome)
