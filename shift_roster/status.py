"""Attendance status classification and summary figures."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Optional

from .hours import parse_hhmm, worked_hours

COMPLETED = "completed"
IN_PROGRESS = "in_progress"
MISSED = "missed"
SCHEDULED = "scheduled"
STATUSES = (SCHEDULED, IN_PROGRESS, COMPLETED, MISSED)


@dataclass(slots=True)
class AttendanceSummary:
    """Figures shown above the attendance history."""

    total_shifts: int
    total_hours: int
    completion_rate: int


def shift_datetime(day: date, start_time: Optional[str] = None) -> datetime:
    """Combine a shift date with its start time; midnight when unknown."""

    if start_time:
        try:
            minutes = parse_hhmm(start_time)
        except ValueError:
            return datetime.combine(day, time.min)
        return datetime.combine(day, time(minutes // 60, minutes % 60))
    return datetime.combine(day, time.min)


def classify_status(
    shift_at: datetime,
    check_in: Optional[datetime],
    check_out: Optional[datetime],
    now: datetime,
) -> str:
    """Return the attendance status of a punch pair.

    Precedence: no check-in on an elapsed shift is ``missed``; both punches is
    ``completed``; a check-in alone is ``in_progress``; no check-in on a shift
    that has not started yet is ``scheduled``.
    """

    if check_in is None and shift_at < now:
        return MISSED
    if check_in is not None and check_out is not None:
        return COMPLETED
    if check_in is None:
        return SCHEDULED
    return IN_PROGRESS


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def attendance_summary(entries: Iterable) -> AttendanceSummary:
    """Count completed shifts, their worked hours and the completion rate."""

    entries = list(entries)
    completed = [entry for entry in entries if entry.status == COMPLETED]
    hours = sum(
        worked_hours(entry.checkin.check_in_time, entry.checkin.check_out_time)
        for entry in completed
    )
    rate = _round_half_up(len(completed) / len(entries) * 100) if entries else 0
    return AttendanceSummary(
        total_shifts=len(completed),
        total_hours=_round_half_up(hours),
        completion_rate=rate,
    )


__all__ = [
    "COMPLETED",
    "IN_PROGRESS",
    "MISSED",
    "SCHEDULED",
    "STATUSES",
    "AttendanceSummary",
    "shift_datetime",
    "classify_status",
    "attendance_summary",
]
