"""
Five-field cron expression support on top of APScheduler's CronTrigger.

APScheduler numbers weekdays from Monday (0) while standard crontab numbers
them from Sunday (0, and 7 again). Numeric day-of-week tokens are therefore
expanded to weekday names before the trigger is built.
"""

import logging
from typing import List, Optional

from apscheduler.triggers.cron import CronTrigger

# Module logger
logger = logging.getLogger(__name__)

# Index is the standard crontab weekday number
CRONTAB_WEEKDAYS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


def _expand_weekday_token(token: str) -> List[str]:
    """
    Expands one comma-separated day-of-week token into weekday names.

    Args:
        token: e.g. "1", "1-5", "0-6/2", "*/2" or a name like "mon".

    Returns:
        List[str]: Weekday names, or the token unchanged when it is not numeric.

    Raises:
        ValueError: If a numeric token is out of range or inverted.
    """
    base, _, step_text = token.partition("/")
    step = 1
    if step_text:
        if not step_text.isdigit() or int(step_text) < 1:
            raise ValueError(f"Invalid day-of-week step: {token}")
        step = int(step_text)

    if base == "*":
        if not step_text:
            return [token]
        first, last = 0, 6
    elif "-" in base:
        first_text, _, last_text = base.partition("-")
        if not (first_text.isdigit() and last_text.isdigit()):
            return [token]
        first, last = int(first_text), int(last_text)
    elif base.isdigit():
        first = int(base)
        last = 6 if step_text else first
    else:
        return [token]

    if not 0 <= first <= 7 or not 0 <= last <= 7 or first > last:
        raise ValueError(f"Invalid day-of-week value: {token}")

    return [CRONTAB_WEEKDAYS[day % 7] for day in range(first, last + 1, step)]


def translate_day_of_week(field: str) -> str:
    """
    Rewrites a crontab day-of-week field into APScheduler's notation.

    Args:
        field: The fifth field of a crontab expression.

    Returns:
        str: An equivalent field using weekday names.
    """
    names: List[str] = []
    for token in field.lower().split(","):
        for name in _expand_weekday_token(token):
            if name not in names:
                names.append(name)
    return ",".join(names)


def build_cron_trigger(expression: str, timezone: Optional[str] = None) -> CronTrigger:
    """
    Builds an APScheduler trigger from a standard five-field cron expression.

    Args:
        expression: minute, hour, day-of-month, month and day-of-week fields.
        timezone: Optional timezone name; host local time otherwise.

    Returns:
        CronTrigger: A trigger firing at the times the expression describes.

    Raises:
        ValueError: If the expression is malformed or holds invalid values.
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(
            f"Wrong number of fields in cron expression '{expression}': got {len(fields)}, expected 5"
        )

    minute, hour, day, month, day_of_week = fields
    translated = translate_day_of_week(day_of_week)
    logger.debug(f"Cron day-of-week '{day_of_week}' translated to '{translated}'")

    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=translated,
        timezone=timezone,
    )
