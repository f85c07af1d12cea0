"""Timestamp normalization for chat-log messages.

Chat logs carry timestamps in several shapes: epoch numbers (seconds or
milliseconds), ISO 8601 strings, and "humanized" strings such as
``"May 3, 2024 @ 2:30pm"``.  Everything is normalized to a naive
``datetime`` in local time, or ``None`` when the value cannot be read.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

# Epoch values at or above this are treated as milliseconds.
MILLISECONDS_THRESHOLD = 10**12

# Record fields holding a message time, highest priority first.
TIMESTAMP_FIELDS = ("send_date", "gen_finished", "gen_started")

_MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

_ISO_PREFIX = re.compile(r"^\s*\d{4}-\d{2}-\d{2}")
_HUMANIZED = re.compile(
    r"^(\w+)\s+(\d+),?\s*(\d{4})?\s*@?\s*(\d{1,2}):(\d{2})\s*(am|pm)?",
    re.IGNORECASE,
)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _to_local_naive(value: datetime) -> datetime | None:
    """Convert an aware datetime to naive local time; naive values pass through.

    Returns None when the local equivalent falls outside the supported
    datetime range.
    """
    if value.tzinfo is None:
        return value
    try:
        return value.astimezone().replace(tzinfo=None)
    except (OverflowError, OSError, ValueError):
        return None


def _from_epoch(value: float) -> datetime | None:
    """Interpret *value* as seconds or milliseconds since the epoch."""
    try:
        if not math.isfinite(value):
            return None
        seconds = value / 1000 if abs(value) >= MILLISECONDS_THRESHOLD else value
        return datetime.fromtimestamp(seconds)
    except (OverflowError, OSError, ValueError):
        return None


def _from_iso(text: str) -> datetime | None:
    if not _ISO_PREFIX.match(text):
        return None
    try:
        return _to_local_naive(datetime.fromisoformat(text.strip()))
    except (OverflowError, OSError, ValueError):
        return None


def _from_humanized(text: str, now: datetime | None = None) -> datetime | None:
    """Parse ``Month Day[, Year][ @ ]Hour:Minute[am|pm]``.

    A missing year defaults to the year of *now* (the current year when
    *now* is not given).
    """
    match = _HUMANIZED.match(text.strip())
    if match is None:
        return None

    month_name, day, year, hour, minute, meridiem = match.groups()
    month_name = month_name.lower()
    if month_name not in _MONTHS:
        return None

    if year is None:
        year = (now or datetime.now()).year
    hour = int(hour)
    meridiem = (meridiem or "").lower()
    if meridiem == "pm" and hour != 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    try:
        return datetime(
            int(year), _MONTHS.index(month_name) + 1, int(day), hour, int(minute)
        )
    except ValueError:
        return None


def _from_leading_number(text: str) -> datetime | None:
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    try:
        number = int(match.group(1))
    except ValueError:
        return None
    return _from_epoch(number)


def normalize_timestamp(value: Any, now: datetime | None = None) -> datetime | None:
    """Normalize a raw timestamp value to a naive local datetime.

    Accepted inputs, checked in order:

    - a ``datetime`` (aware values are converted to local time)
    - an ``int``/``float`` epoch, seconds below 10**12 and milliseconds
      otherwise
    - an ISO 8601 string (``YYYY-MM-DD...``)
    - a humanized ``Month Day[, Year][ @ ]H:MM[am|pm]`` string
    - any string starting with digits, read as an epoch

    Args:
        value: The raw value from a log record.  ``None``, ``0`` and the
            empty string count as absent.
        now: Reference time used for the implied year of humanized
            strings.  Defaults to the current local time.

    Returns:
        The normalized datetime, or ``None`` if *value* is absent or
        cannot be parsed.  Never raises.
    """
    if not value or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _to_local_naive(value)

    if isinstance(value, (int, float)):
        return _from_epoch(value)

    if isinstance(value, str):
        return (
            _from_iso(value)
            or _from_humanized(value, now)
            or _from_leading_number(value)
        )

    logger.debug("Unsupported timestamp type: %s", type(value).__name__)
    return None


def first_timestamp(record: dict) -> Any:
    """Return the first truthy timestamp field of a raw log record, or None."""
    for field in TIMESTAMP_FIELDS:
        value = record.get(field)
        if value:
            return value
    return None


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Return the inclusive local start and end of calendar *year*."""
    return (
        datetime(year, 1, 1, 0, 0, 0, 0),
        datetime(year, 12, 31, 23, 59, 59, 999999),
    )
