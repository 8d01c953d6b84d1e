"""Sorting and filtering of slot rows, day aggregates and attendance entries."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar

from .aggregation import TABLE_PLACES, slot_billed_hours
from .hours import format_hours
from .models import SlotRow

T = TypeVar("T")

SORT_KEYS = ("date", "start_time", "end_time", "activity_type", "operator", "hours")
SORT_KEY_ALIASES = {
    "startTime": "start_time",
    "endTime": "end_time",
    "activityType": "activity_type",
    "operatorDisplayName": "operator",
    "operator_display_name": "operator",
}
ASCENDING = "asc"
DESCENDING = "desc"
STATUS_ALL = "all"
PRESET_WEEK = "week"
PRESET_MONTH = "month"
PRESET_NEXT_30_DAYS = "30days"
DATE_PRESETS = (PRESET_WEEK, PRESET_MONTH, PRESET_NEXT_30_DAYS)


def normalize_sort_key(key: str) -> str:
    normalized = SORT_KEY_ALIASES.get(key, key)
    if normalized not in SORT_KEYS:
        raise ValueError(f"unsupported sort key {key!r}; expected one of {', '.join(SORT_KEYS)}")
    return normalized


@dataclass(frozen=True, slots=True)
class SortState:
    """Current column and direction of a sortable table."""

    key: str = "date"
    direction: str = ASCENDING

    def toggle(self, key: str) -> "SortState":
        """Same key flips the direction, a new key starts ascending."""

        key = normalize_sort_key(key)
        if key == self.key:
            flipped = DESCENDING if self.direction == ASCENDING else ASCENDING
            return SortState(key, flipped)
        return SortState(key, ASCENDING)


def row_sort_value(
    row: SlotRow,
    key: str,
    *,
    lexical_hours: bool = False,
    allow_overnight: bool = False,
) -> Any:
    if key == "date":
        return row.date.isoformat()
    if key == "start_time":
        return row.start_time
    if key == "end_time":
        return row.end_time
    if key == "activity_type":
        return row.activity_type or ""
    if key == "operator":
        return row.operator_name if row.is_assigned else ""
    if key == "hours":
        hours = slot_billed_hours(row, allow_overnight=allow_overnight)
        # string comparison puts "10.0" before "9.0"
        return format_hours(hours, TABLE_PLACES) if lexical_hours else hours
    raise ValueError(f"unsupported sort key {key!r}")


def sort_rows(
    rows: Iterable[SlotRow],
    key: str = "date",
    direction: str = ASCENDING,
    *,
    lexical_hours: bool = False,
    allow_overnight: bool = False,
) -> List[SlotRow]:
    """Return a new list of rows ordered by ``key``.

    Descending order is the exact reverse of the ascending order, ties
    included.
    """

    key = normalize_sort_key(key)
    if direction not in (ASCENDING, DESCENDING):
        raise ValueError(f"unsupported sort direction {direction!r}")
    ordered = sorted(
        rows,
        key=lambda row: row_sort_value(
            row, key, lexical_hours=lexical_hours, allow_overnight=allow_overnight
        ),
    )
    if direction == DESCENDING:
        ordered.reverse()
    return ordered


def filter_by_date_range(
    items: Iterable[T],
    start: Optional[date] = None,
    end: Optional[date] = None,
    *,
    date_of: Callable[[T], date] = lambda item: item.date,  # type: ignore[attr-defined]
) -> List[T]:
    """Keep items whose date lies in ``[start, end]``; a missing bound is open."""

    items = list(items)
    if start is None and end is None:
        return items
    selected: List[T] = []
    for item in items:
        day = date_of(item)
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        selected.append(item)
    return selected


def preset_range(preset: str, today: date) -> Tuple[date, date]:
    """Resolve a named day-view window around ``today``.

    ``week`` is Monday to Sunday of the current week, ``month`` the current
    calendar month and ``30days`` today plus the next thirty days.
    """

    if preset == PRESET_WEEK:
        monday = today - timedelta(days=today.weekday())
        return monday, monday + timedelta(days=6)
    if preset == PRESET_MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)
    if preset == PRESET_NEXT_30_DAYS:
        return today, today + timedelta(days=30)
    raise ValueError(f"unsupported date preset {preset!r}; expected one of {', '.join(DATE_PRESETS)}")


def filter_by_status(records: Iterable[T], status: str = STATUS_ALL) -> List[T]:
    if status == STATUS_ALL:
        return list(records)
    return [record for record in records if record.status == status]  # type: ignore[attr-defined]


__all__ = [
    "SORT_KEYS",
    "ASCENDING",
    "DESCENDING",
    "STATUS_ALL",
    "SortState",
    "normalize_sort_key",
    "row_sort_value",
    "sort_rows",
    "DATE_PRESETS",
    "preset_range",
    "filter_by_date_range",
    "filter_by_status",
]
