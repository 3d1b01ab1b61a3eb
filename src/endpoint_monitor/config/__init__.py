"""
Configuration module for the endpoint monitoring system.

This module provides functionality to parse command-line arguments and environment
variables to create a configuration context for the monitoring system. It defines
default values and help text for all configurable parameters.
"""

import argparse
import os
import uuid
from typing import Any, List, Optional

from endpoint_monitor.config.constants import (
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DSN,
    DEFAULT_INSTANCE_ID_PREFIX,
    DEFAULT_LOGGING_CONFIG_FILE,
    DEFAULT_LOGGING_TYPE,
    DEFAULT_MAX_CONCURRENT_CHECKS,
    DEFAULT_SHUTDOWN_GRACE_PERIOD,
    DEFAULT_TIMEZONE,
)
from endpoint_monitor.config.monitoring_context import MonitoringContext


def get_context(argv: Optional[List[str]] = None) -> MonitoringContext:
    """
    Parse command-line arguments and environment variables to create a configuration context.

    For each option, the command-line argument wins, then the environment
    variable, and finally the default value.

    Args:
        argv: Arguments to parse; sys.argv[1:] when omitted.

    Returns:
        MonitoringContext: A configuration context object containing all parsed settings.

    Raises:
        ValueError: If a numeric setting is not a positive integer.
    """
    parser = argparse.ArgumentParser(
        description="Schedules and runs HTTP health checks for the configured endpoints."
    )

    parser.add_argument(
        "-dsn",
        type=str,
        default=os.getenv("ENDPOINT_MONITOR_DSN", DEFAULT_DSN),
        help="Specifies the DSN (connection string) for the PostgreSQL database.\n"
        "If not provided, the value is read from the ENDPOINT_MONITOR_DSN environment variable.\n"
        f"If that is also absent, a default value for a local database is used: {DEFAULT_DSN}",
    )

    parser.add_argument(
        "-iid",
        "--instance-id",
        type=str,
        default=os.getenv("ENDPOINT_MONITOR_INSTANCE_ID", f"{DEFAULT_INSTANCE_ID_PREFIX}{uuid.uuid4()}"),
        help="Specifies the identifier of this monitor instance, added to every log record.\n"
        "If not provided, the value is read from the ENDPOINT_MONITOR_INSTANCE_ID environment variable.\n"
        f"If that is also absent, the default value will be {DEFAULT_INSTANCE_ID_PREFIX}uuid4().",
    )

    parser.add_argument(
        "-ps",
        "--db-pool-size",
        type=int,
        default=int(os.getenv("ENDPOINT_MONITOR_DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE)),
        help="Specifies the maximum number of connections in the database connection pool.\n"
        "If not provided, the value is read from the ENDPOINT_MONITOR_DB_POOL_SIZE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_DB_POOL_SIZE} is used.",
    )

    parser.add_argument(
        "-mc",
        "--max-concurrent-checks",
        type=int,
        default=int(
            os.getenv("ENDPOINT_MONITOR_MAX_CONCURRENT_CHECKS", DEFAULT_MAX_CONCURRENT_CHECKS)
        ),
        help="Specifies the maximum number of health checks running at the same time.\n"
        "If not provided, the value is read from the ENDPOINT_MONITOR_MAX_CONCURRENT_CHECKS environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_MAX_CONCURRENT_CHECKS} is used.",
    )

    parser.add_argument(
        "-tz",
        "--timezone",
        type=str,
        default=os.getenv("ENDPOINT_MONITOR_TIMEZONE", DEFAULT_TIMEZONE),
        help="Specifies the timezone cron expressions are evaluated in (e.g. Europe/Rome).\n"
        "If not provided, the value is read from the ENDPOINT_MONITOR_TIMEZONE environment variable.\n"
        "If that is also absent, the host local time is used.",
    )

    parser.add_argument(
        "-sg",
        "--shutdown-grace-period",
        type=int,
        default=int(
            os.getenv("ENDPOINT_MONITOR_SHUTDOWN_GRACE_PERIOD", DEFAULT_SHUTDOWN_GRACE_PERIOD)
        ),
        help="Specifies how many seconds in-flight checks may run on during shutdown.\n"
        "If not provided, the value is read from the ENDPOINT_MONITOR_SHUTDOWN_GRACE_PERIOD environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_SHUTDOWN_GRACE_PERIOD} is used.",
    )

    parser.add_argument(
        "-lt",
        "--logging-type",
        type=str,
        default=os.getenv("ENDPOINT_MONITOR_LOGGING_TYPE", DEFAULT_LOGGING_TYPE),
        help="Specifies the logging configuration type to use.\n"
        "Allowed values: dev, prod, custom (case insensitive).\n"
        "For 'dev' and 'prod', system will use built-in configurations.\n"
        "For 'custom', the --logging-config-file argument is required.",
    )

    parser.add_argument(
        "-lcf",
        "--logging-config-file",
        type=str,
        default=os.getenv("ENDPOINT_MONITOR_LOGGING_CONFIG_FILE", DEFAULT_LOGGING_CONFIG_FILE),
        help="Path to custom logging configuration file.\n"
        "Required when --logging-type is set to 'custom'.",
    )

    # Parse the command-line arguments
    args: Any = parser.parse_args(argv)

    for name in ("db_pool_size", "max_concurrent_checks"):
        if getattr(args, name) < 1:
            raise ValueError(f"{name} must be a positive integer.")
    if args.shutdown_grace_period < 0:
        raise ValueError("shutdown_grace_period must not be negative.")

    # Create and return a MonitoringContext with the parsed settings
    return MonitoringContext(
        dsn=args.dsn,
        instance_id=args.instance_id,
        logging_type=args.logging_type,
        logging_config_file=args.logging_config_file,
        db_pool_size=args.db_pool_size,
        max_concurrent_checks=args.max_concurrent_checks,
        timezone=args.timezone,
        shutdown_grace_period=args.shutdown_grace_period,
    )
