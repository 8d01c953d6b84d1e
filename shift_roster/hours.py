"""Time arithmetic for shift durations and punch intervals."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for a ``HH:mm`` string.

    Raises ``ValueError`` when the string is not a valid 24-hour time.
    """

    hours_text, sep, minutes_text = value.strip().partition(":")
    if not sep:
        raise ValueError(f"invalid time {value!r}")
    hours = int(hours_text)
    # tolerate "HH:mm:ss" as stored by some backends
    minutes = int(minutes_text.split(":")[0])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"invalid time {value!r}")
    return hours * 60 + minutes


def effective_hours(
    start: str,
    end: str,
    pause_hours: float = 0,
    *,
    allow_overnight: bool = False,
) -> float:
    """Return the decimal hours between ``start`` and ``end`` minus the pause.

    A negative gross duration is clamped to zero unless ``allow_overnight`` is
    set, in which case the end time is read as falling on the next day.
    Unparsable input yields ``0.0``.
    """

    try:
        start_minutes = parse_hhmm(start)
        end_minutes = parse_hhmm(end)
        pause = float(pause_hours or 0)
    except (AttributeError, TypeError, ValueError):
        logger.debug("Cannot compute hours for %r-%r (pause %r)", start, end, pause_hours)
        return 0.0

    delta = end_minutes - start_minutes
    if delta < 0:
        delta = delta + MINUTES_PER_DAY if allow_overnight else 0
    gross = delta / 60
    return max(0.0, gross - pause)


def format_hours(value: float, places: int = 2) -> str:
    """Render decimal hours as a fixed-point string."""

    return f"{value:.{places}f}"


def worked_duration(check_in: Optional[datetime], check_out: Optional[datetime]) -> str | None:
    """Return the punch interval as ``"<h>h <m>m"``, or ``None`` while open."""

    if check_in is None or check_out is None:
        return None
    total_minutes = int((check_out - check_in).total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"


def worked_hours(check_in: Optional[datetime], check_out: Optional[datetime]) -> float:
    if check_in is None or check_out is None:
        return 0.0
    total_minutes = int((check_out - check_in).total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return hours + minutes / 60


__all__ = [
    "parse_hhmm",
    "effective_hours",
    "format_hours",
    "worked_duration",
    "worked_hours",
]
