"""
Main entry point for the endpoint monitoring application.

This module initializes and runs the monitoring system. It sets up logging,
creates database and HTTP connections, wires the scheduler controller to its
collaborators, and shuts everything down when the process receives SIGINT or
SIGTERM.
"""

import asyncio
import logging
import signal
import sys

import aiohttp
import asyncpg

from endpoint_monitor.config import MonitoringContext, get_context
from endpoint_monitor.config.db_config import initiate_db_pool
from endpoint_monitor.config.http_config import get_http_session
from endpoint_monitor.config.logging_config import configure_logging
from endpoint_monitor.executor.aiohttp_executor import AiohttpProbeExecutor
from endpoint_monitor.notifier.log_notifier import LoggingNotificationSink
from endpoint_monitor.processor.notification_processor import FailureNotificationProcessor
from endpoint_monitor.processor.recording_processor import RecordingProcessor
from endpoint_monitor.processor.sequential_processor import SequentialOutcomeProcessor
from endpoint_monitor.scheduler.controller import SchedulerController
from endpoint_monitor.store.postgres_store import (
    PostgresEndpointStore,
    PostgresOutcomeSink,
    PostgresSettingsStore,
)


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    """
    Makes SIGINT and SIGTERM set the stop event instead of killing the process.

    Args:
        stop_event: The event the main coroutine waits on.
    """
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers; Ctrl+C still
            # surfaces as KeyboardInterrupt.
            logging.getLogger(__name__).debug(f"Signal handler for {sig.name} not supported.")


async def main(context: MonitoringContext) -> None:
    """
    Set up and run the endpoint monitoring application.

    This function initializes all components of the monitoring system:
    1. Creates an HTTP session for making requests
    2. Establishes the database connection pool
    3. Creates the executor, the outcome pipeline and the scheduler controller
    4. Schedules every active endpoint and waits for a shutdown signal
    5. Stops all schedules and releases resources

    Args:
        context: Configuration context containing all application settings.

    Returns:
        None

    Raises:
        Exception: If the database is unreachable or the initial endpoint
            load fails.
    """
    logger: logging.Logger = logging.getLogger(__name__)
    logger.info("Starting application...")
    instance_id: str = context.instance_id
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    http_session: aiohttp.ClientSession = get_http_session(context)
    logger.info("configured: http_session")

    db_pool: asyncpg.pool.Pool = None
    controller: SchedulerController = None
    try:
        db_pool = await initiate_db_pool(context)
        logger.info("initialized: db_pool")

        controller = SchedulerController(
            store=PostgresEndpointStore(db_pool),
            executor=AiohttpProbeExecutor(instance_id=instance_id, session=http_session),
            processor=SequentialOutcomeProcessor(
                instance_id,
                [
                    RecordingProcessor(instance_id, PostgresOutcomeSink(db_pool)),
                    FailureNotificationProcessor(
                        instance_id, LoggingNotificationSink(), PostgresSettingsStore(db_pool)
                    ),
                ],
            ),
            max_concurrent_checks=context.max_concurrent_checks,
            timezone_name=context.timezone,
        )

        await controller.start()
        logger.info("Controller started. Waiting for shutdown signal...")
        await stop_event.wait()
        logger.info("Application shutdown requested.")

    finally:
        # Ensure all resources are properly closed during shutdown
        logger.info("Shutting down resources...")
        if controller:
            await controller.shutdown(timeout=context.shutdown_grace_period)
        await http_session.close()
        if db_pool:
            await db_pool.close()
        logger.info("Shutdown complete.")


def run() -> None:
    """Console script entry point."""
    try:
        # Parse command-line arguments and environment variables
        monitoring_context: MonitoringContext = get_context()

        # Configure logging based on the context
        configure_logging(monitoring_context)

        asyncio.run(main(monitoring_context))
    except KeyboardInterrupt:
        logging.info("Shutdown initiated by user (Ctrl+C).")
    except Exception:
        logging.getLogger(__name__).exception("Endpoint monitor failed to run.")
        sys.exit(1)


if __name__ == "__main__":
    run()
