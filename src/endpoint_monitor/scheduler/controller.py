"""
Scheduler controller for the endpoint monitoring system.

This module provides the SchedulerController class, which keeps exactly one
timer per active endpoint in the schedule registry and runs a check each time
a timer fires. Timers come from APScheduler: interval triggers for periodic
endpoints and cron triggers for calendar driven ones.

Each firing is dispatched as its own asyncio task, so firings of different
endpoints run concurrently and a slow check may overlap the next firing of
the same endpoint. A semaphore bounds how many probes run at once.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from endpoint_monitor.contracts import EndpointStore, OutcomeProcessor, ProbeExecutor
from endpoint_monitor.domain import Endpoint, ProbeOutcome, ScheduleMode
from endpoint_monitor.scheduler.cron import build_cron_trigger
from endpoint_monitor.scheduler.registry import ScheduleHandle, ScheduleRegistry

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_CHECKS = 10


class SchedulerController:
    """
    Orchestrates endpoint schedules in response to lifecycle events.

    A single instance is owned by the process bootstrap and handed to whatever
    needs to trigger reschedules after an endpoint is created, updated or
    deleted.
    """

    def __init__(
        self,
        store: EndpointStore,
        executor: ProbeExecutor,
        processor: OutcomeProcessor,
        scheduler: Optional[AsyncIOScheduler] = None,
        max_concurrent_checks: int = DEFAULT_MAX_CONCURRENT_CHECKS,
        timezone_name: Optional[str] = None,
    ) -> None:
        """
        Initializes a new SchedulerController instance.

        Args:
            store: Source of endpoint definitions.
            executor: Component that performs a single check.
            processor: Pipeline receiving every outcome.
            scheduler: The APScheduler instance providing timers; a new
                AsyncIOScheduler is created when omitted.
            max_concurrent_checks: Upper bound on probes running at once.
            timezone_name: Timezone cron expressions are evaluated in; host
                local time when omitted.

        Raises:
            ValueError: If max_concurrent_checks is not a positive integer.
        """
        if not isinstance(max_concurrent_checks, int) or max_concurrent_checks < 1:
            raise ValueError("max_concurrent_checks must be a positive integer.")

        self._store: EndpointStore = store
        self._executor: ProbeExecutor = executor
        self._processor: OutcomeProcessor = processor
        self._timezone_name: Optional[str] = timezone_name or None
        self._scheduler: AsyncIOScheduler = scheduler or AsyncIOScheduler(
            timezone=self._timezone_name
        )
        self._registry: ScheduleRegistry = ScheduleRegistry()
        self._semaphore = asyncio.Semaphore(max_concurrent_checks)
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def scheduled_count(self) -> int:
        """Number of endpoints currently holding a schedule."""
        return len(self._registry)

    def is_scheduled(self, endpoint_id: str) -> bool:
        return endpoint_id in self._registry

    async def start(self) -> None:
        """
        Starts the timer backend and schedules every active stored endpoint.

        Returns:
            None

        Raises:
            Exception: If the endpoint store cannot be read. This is fatal
                for the process.
        """
        logger.info("Starting scheduler controller...")
        if not self._scheduler.running:
            self._scheduler.start()

        endpoints = await self._store.find_all()
        for endpoint in endpoints:
            if endpoint.is_active:
                self.schedule_endpoint(endpoint)

        logger.info(f"Scheduler started with {self.scheduled_count} active checks")

    def schedule_endpoint(self, endpoint: Endpoint) -> None:
        """
        Installs the schedule for an endpoint, replacing any previous one.

        Inactive endpoints and invalid schedule configurations end up
        unscheduled; neither is an error for the controller. Must be called
        from the event loop thread, since interval endpoints are checked
        immediately.

        Args:
            endpoint: The current definition of the endpoint.

        Returns:
            None
        """
        self.unschedule_endpoint(endpoint.id)

        if not endpoint.is_active:
            return

        schedule_type = endpoint.schedule_type or ScheduleMode.INTERVAL.value

        if schedule_type == ScheduleMode.CRON and endpoint.cron_schedule:
            self._schedule_cron(endpoint)
        elif (
            schedule_type == ScheduleMode.INTERVAL
            and endpoint.check_frequency is not None
            and endpoint.check_frequency > 0
        ):
            self._schedule_interval(endpoint)
        else:
            logger.warning(
                f"Endpoint {endpoint.name} ({endpoint.id}) has invalid scheduling configuration: "
                f"type={schedule_type}, frequency={endpoint.check_frequency}, "
                f"cron={endpoint.cron_schedule}"
            )

    def _schedule_cron(self, endpoint: Endpoint) -> None:
        try:
            trigger = build_cron_trigger(endpoint.cron_schedule, timezone=self._timezone_name)
            job = self._scheduler.add_job(
                self._dispatch,
                trigger=trigger,
                args=(endpoint,),
                name=f"cron-check-{endpoint.id}",
                misfire_grace_time=None,
            )
        except ValueError as e:
            logger.error(
                f"Error scheduling cron for {endpoint.name} ({endpoint.id}) "
                f"with '{endpoint.cron_schedule}': {e}"
            )
            return

        self._registry.install(
            endpoint.id, ScheduleHandle(endpoint.id, job, f"cron={endpoint.cron_schedule}")
        )
        logger.info(f"Scheduled cron check for {endpoint.name}: {endpoint.cron_schedule}")

    def _schedule_interval(self, endpoint: Endpoint) -> None:
        # The first check runs right away instead of after one full interval
        self._spawn(endpoint)

        job = self._scheduler.add_job(
            self._dispatch,
            trigger=IntervalTrigger(minutes=endpoint.check_frequency),
            args=(endpoint,),
            name=f"interval-check-{endpoint.id}",
            misfire_grace_time=None,
        )
        self._registry.install(
            endpoint.id,
            ScheduleHandle(endpoint.id, job, f"every={endpoint.check_frequency}m"),
        )
        logger.info(
            f"Scheduled interval check for {endpoint.name}: "
            f"every {endpoint.check_frequency} minutes"
        )

    def unschedule_endpoint(self, endpoint_id: str) -> None:
        """
        Cancels future firings for an endpoint. Safe for unknown ids.

        Args:
            endpoint_id: The endpoint to unschedule.

        Returns:
            None
        """
        if self._registry.remove(endpoint_id):
            logger.debug(f"Unscheduled endpoint {endpoint_id}")

    async def reschedule_endpoint(self, endpoint_id: str) -> None:
        """
        Re-reads an endpoint definition and schedules it afresh.

        If the endpoint was deleted in the meantime nothing happens.

        Args:
            endpoint_id: The endpoint to reschedule.

        Returns:
            None
        """
        endpoint = await self._store.find_by_id(endpoint_id)
        if endpoint is not None:
            self.schedule_endpoint(endpoint)

    async def check_now(self, endpoint_id: str) -> Optional[ProbeOutcome]:
        """
        Runs one check on demand and returns its outcome.

        The latest definition is read from the store, and the check goes
        through the same bounded pipeline as a timer firing, so the outcome
        is recorded and notified as usual. Schedules are left untouched.

        Args:
            endpoint_id: The endpoint to check.

        Returns:
            Optional[ProbeOutcome]: The outcome, or None if the endpoint no
                longer exists.
        """
        endpoint = await self._store.find_by_id(endpoint_id)
        if endpoint is None:
            logger.debug(f"On-demand check skipped, endpoint {endpoint_id} not found")
            return None
        logger.info(f"Running on-demand check for {endpoint.name} ({endpoint.id})")
        return await self._run_check(endpoint)

    def stop_all(self) -> None:
        """Cancels every schedule. Safe to call multiple times."""
        logger.info(f"Stopping all scheduled tasks: {self._registry.ids()}")
        stopped = self._registry.clear()
        logger.info(f"All tasks stopped ({stopped} schedules removed)")

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Waits for in-flight checks to finish.

        Args:
            timeout: Maximum number of seconds to wait; None waits forever.

        Returns:
            None
        """
        pending = set(self._in_flight)
        if not pending:
            return
        logger.info(f"Waiting for {len(pending)} in-flight checks to complete...")
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        if still_running:
            logger.warning(f"{len(still_running)} checks still running after {timeout}s")

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Gracefully stops the controller.

        Cancels all schedules, lets in-flight checks finish within the timeout
        and stops the timer backend.

        Args:
            timeout: Maximum number of seconds to wait for in-flight checks.

        Returns:
            None
        """
        self.stop_all()
        await self.drain(timeout)
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("Scheduler controller shutdown complete")

    async def _dispatch(self, endpoint: Endpoint) -> None:
        # Returns immediately so APScheduler never holds back an overlapping firing
        logger.debug(f"Timer fired for endpoint {endpoint.name} ({endpoint.id})")
        self._spawn(endpoint)

    def _spawn(self, endpoint: Endpoint) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._run_check(endpoint), name=f"check-{endpoint.id}"
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _run_check(self, endpoint: Endpoint) -> ProbeOutcome:
        """
        Runs one check: probe, then outcome pipeline. Returns the outcome.

        Nothing raised here may escape, otherwise the owning timer would log
        an unhandled task error for every tick.
        """
        async with self._semaphore:
            try:
                outcome = await self._executor.execute(endpoint)
            except Exception as e:
                logger.exception(f"Check failed unexpectedly for endpoint {endpoint.id}: {e}")
                outcome = ProbeOutcome(
                    endpoint_id=endpoint.id,
                    started_at=datetime.now(timezone.utc),
                    latency_ms=0,
                    status_code=None,
                    response_body=None,
                    healthy=False,
                    error_message=str(e) or type(e).__name__,
                )

        try:
            await self._processor.process(endpoint, outcome)
        except Exception as e:
            logger.exception(f"Processing outcome failed for endpoint {endpoint.id}: {e}")
        return outcome
