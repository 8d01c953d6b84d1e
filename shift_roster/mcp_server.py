"""MCP server exposing read-only shift roster tools."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .aggregation import day_aggregate_as_dict
from .config import load_settings
from .db import Database
from .notifier import Notifier
from .service import RosterService
from .sorting import SortState, STATUS_ALL, normalize_sort_key

mcp = FastMCP("shift-roster")

_settings = load_settings()
_database = Database(_settings.database_path)
_notifier = Notifier(_settings.notify_webhook_url)
_service = RosterService(_settings, _database, _notifier)


def _ensure_date(day_str: Optional[str] = None):
    if not day_str:
        return None
    return datetime.strptime(day_str, "%Y-%m-%d").date()


@mcp.tool()
async def get_day_summary(start: Optional[str] = None, end: Optional[str] = None) -> dict:
    """Return per-day and per-event operator counts and billed hours."""

    days = _service.day_view(_ensure_date(start), _ensure_date(end))
    return {
        "days": [
            day_aggregate_as_dict(day, allow_overnight=_settings.allow_overnight) for day in days
        ]
    }


@mcp.tool()
async def get_event_shifts(event_id: str, sort: str = "date", direction: str = "asc") -> dict:
    """Return the slot table of an event with its hour totals."""

    return _service.event_detail(event_id, SortState(normalize_sort_key(sort), direction))


@mcp.tool()
async def get_attendance(
    operator_id: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    status: str = STATUS_ALL,
) -> dict:
    """Return an operator's attendance summary for the period."""

    first, last = _service.attendance_range(_ensure_date(start), _ensure_date(end))
    entries = _service.attendance_history(operator_id, first, last, status)
    summary = _service.attendance_summary(entries)
    return {
        "start": first.isoformat(),
        "end": last.isoformat(),
        "total_shifts": summary.total_shifts,
        "total_hours": summary.total_hours,
        "completion_rate": summary.completion_rate,
        "records": [
            {
                "shift_id": entry.shift.id,
                "date": entry.shift.date.isoformat(),
                "event": entry.event.title if entry.event else None,
                "status": entry.status,
            }
            for entry in entries
        ],
    }


__all__ = [
    "mcp",
    "get_day_summary",
    "get_event_shifts",
    "get_attendance",
]
