"""
Configuration context for the endpoint monitoring system.

This module defines a data structure that holds all configuration parameters
for the monitoring system. It serves as a central point for passing configuration
throughout the application.
"""

from typing import NamedTuple


class MonitoringContext(NamedTuple):
    """
    A data structure containing all configuration parameters for the monitoring system.

    This class is immutable and provides a type-safe way to pass configuration
    throughout the application. It is created by parsing command-line arguments
    and environment variables.

    Attributes:
        dsn: Database connection string for PostgreSQL.
        instance_id: Unique identifier for this monitor instance, added to every log record.
        logging_type: Type of logging configuration to use (dev, prod, or custom).
        logging_config_file: Path to custom logging configuration file (if logging_type is 'custom').
        db_pool_size: Maximum number of connections in the database connection pool.
        max_concurrent_checks: Maximum number of probes running at the same time.
        timezone: Timezone cron expressions are evaluated in; empty means host local time.
        shutdown_grace_period: Seconds to wait for in-flight checks during shutdown.
    """

    dsn: str
    instance_id: str
    logging_type: str
    logging_config_file: str
    db_pool_size: int
    max_concurrent_checks: int
    timezone: str
    shutdown_grace_period: int
