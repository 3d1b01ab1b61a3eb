"""
In-memory registry of active endpoint schedules.

The registry is the single source of truth for "is this endpoint currently
scheduled". It holds at most one handle per endpoint id; installing a new
handle always stops the previous one first. All mutations and iteration are
serialized by a lock so that a shutdown-time clear() can never interleave
with a late install().
"""

import logging
import threading
from typing import Dict, List, Optional

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError

# Module logger
logger = logging.getLogger(__name__)


class ScheduleHandle:
    """
    Engine-private reference to one timer registration.

    Wraps an APScheduler job. Stopping cancels every future firing of the job;
    a firing already in flight is not affected.
    """

    def __init__(self, endpoint_id: str, job: Job, description: str) -> None:
        self.endpoint_id: str = endpoint_id
        self.description: str = description
        self._job: Job = job
        self._stopped: bool = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """Removes the underlying job; safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        try:
            self._job.remove()
        except JobLookupError:
            # The scheduler was shut down or the job already removed itself
            logger.debug(f"Job for endpoint {self.endpoint_id} was already gone.")

    def __repr__(self) -> str:
        return f"ScheduleHandle(endpoint_id={self.endpoint_id!r}, {self.description})"


class ScheduleRegistry:
    """
    Maps endpoint ids to their single live ScheduleHandle.
    """

    def __init__(self) -> None:
        self._handles: Dict[str, ScheduleHandle] = {}
        self._lock = threading.Lock()

    def install(self, endpoint_id: str, handle: ScheduleHandle) -> None:
        """
        Stores a handle, stopping and discarding any existing one for the id.

        Args:
            endpoint_id: The endpoint the handle belongs to.
            handle: The freshly created handle.
        """
        with self._lock:
            previous = self._handles.pop(endpoint_id, None)
            if previous is not None:
                logger.debug(f"Replacing schedule for endpoint {endpoint_id}.")
                previous.stop()
            self._handles[endpoint_id] = handle

    def remove(self, endpoint_id: str) -> bool:
        """
        Stops and discards the handle for an id, if any.

        Args:
            endpoint_id: The endpoint to unschedule.

        Returns:
            bool: True if a handle was removed, False if none existed.
        """
        with self._lock:
            handle = self._handles.pop(endpoint_id, None)
            if handle is None:
                return False
            handle.stop()
            return True

    def clear(self) -> int:
        """
        Stops and discards every handle.

        Returns:
            int: The number of handles that were stopped.
        """
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
            for handle in handles:
                handle.stop()
            return len(handles)

    def get(self, endpoint_id: str) -> Optional[ScheduleHandle]:
        with self._lock:
            return self._handles.get(endpoint_id)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._handles)

    def __contains__(self, endpoint_id: object) -> bool:
        with self._lock:
            return endpoint_id in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
