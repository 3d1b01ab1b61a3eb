"""
Core interfaces for the endpoint monitoring system.

This module defines the abstract base classes that form the seams of the
scheduling engine: where endpoint definitions come from, who performs a
check, and where the outcome of a check goes afterwards. Concrete adapters
live in the executor, processor, store and notifier packages.
"""

import abc
from typing import Dict, List, Optional

from .domain import Endpoint, NotificationResult, ProbeOutcome


class EndpointStore(abc.ABC):
    """
    Abstract interface for the source of endpoint definitions.

    Implementations must reflect the latest committed definition; the
    scheduler trusts whatever it reads.
    """

    @abc.abstractmethod
    async def find_all(self) -> List[Endpoint]:
        """
        Returns every stored endpoint, active or not.

        Returns:
            List[Endpoint]: All endpoint definitions, possibly empty.
        """
        pass

    @abc.abstractmethod
    async def find_by_id(self, endpoint_id: str) -> Optional[Endpoint]:
        """
        Returns a single endpoint definition.

        Args:
            endpoint_id: The identifier of the endpoint to look up.

        Returns:
            Optional[Endpoint]: The endpoint, or None if it does not exist.
        """
        pass


class SettingsStore(abc.ABC):
    """Abstract interface for the key/value settings bundle."""

    @abc.abstractmethod
    async def load(self) -> Dict[str, str]:
        """Returns all settings as a plain dictionary."""
        pass


class OutcomeSink(abc.ABC):
    """
    Abstract interface for outcome persistence.

    The engine calls 'record' exactly once per firing and never retries;
    a raised exception is treated as a failed acknowledgement and logged.
    """

    @abc.abstractmethod
    async def record(self, outcome: ProbeOutcome) -> None:
        """
        Persists a single probe outcome.

        Args:
            outcome: The outcome to persist.

        Raises:
            Exception: Any storage failure; the caller logs it.
        """
        pass


class NotificationSink(abc.ABC):
    """
    Abstract interface for failure notifications.

    Enabling/disabling and delivery failures are entirely the sink's concern;
    the engine only logs what it returns.
    """

    @abc.abstractmethod
    async def notify(
        self, endpoint: Endpoint, outcome: ProbeOutcome, settings: Dict[str, str]
    ) -> NotificationResult:
        """
        Notifies about an unhealthy outcome.

        Args:
            endpoint: The definition of the endpoint that failed.
            outcome: The unhealthy outcome.
            settings: The current settings bundle.

        Returns:
            NotificationResult: Whether a notification went out, and why not.
        """
        pass


class ProbeExecutor(abc.ABC):
    """
    Abstract interface for a component that performs the check for a single endpoint.

    Its responsibility is to encapsulate the network I/O for a given Endpoint
    and return a structured outcome.
    """

    @abc.abstractmethod
    async def execute(self, endpoint: Endpoint) -> ProbeOutcome:
        """
        Performs one HTTP check of the given endpoint.

        Args:
            endpoint: The fully-resolved endpoint definition.

        Returns:
            ProbeOutcome: The outcome of the check, healthy or not.

        Raises:
            Exception: Implementations should fold transport errors into the
                outcome rather than raising them.
        """
        pass


class OutcomeProcessor(abc.ABC):
    """
    Abstract interface for a component that processes a probe outcome.

    This enables a pipeline pattern where multiple processors act on the
    outcome of a check, e.g. persisting it or sending notifications.
    """

    @abc.abstractmethod
    async def process(self, endpoint: Endpoint, outcome: ProbeOutcome) -> None:
        """
        Processes a single ProbeOutcome.

        Args:
            endpoint: The endpoint definition the check was run with.
            outcome: The result of the check.

        Returns:
            None
        """
        pass
