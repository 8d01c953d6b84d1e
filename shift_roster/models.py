"""Dataclasses representing the shift roster domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


@dataclass(slots=True)
class Client:
    id: str
    name: str


@dataclass(slots=True)
class Brand:
    id: str
    name: str


@dataclass(slots=True)
class Operator:
    id: str
    name: str
    phone: str | None = None
    email: str | None = None


@dataclass(slots=True)
class Event:
    id: str
    title: str
    address: str = ""
    client_id: str | None = None
    brand_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(slots=True)
class Shift:
    """A scheduled work block inside an event.

    ``operator_ids`` holds one entry per slot; an empty string marks an
    unassigned slot. Its length, not ``required_operators``, is the slot count.
    """

    id: str
    event_id: str
    date: date
    start_time: str
    end_time: str
    pause_hours: float = 0.0
    operator_ids: List[str] = field(default_factory=list)
    required_operators: int = 1
    activity_type: str = ""
    role: str = ""
    notes: str | None = None
    team_leader_id: str | None = None


@dataclass(slots=True)
class SlotOverride:
    """Per-slot start/end/pause/notes; ``None`` falls back to the shift's value."""

    shift_id: str
    slot_index: int
    start_time: str | None = None
    end_time: str | None = None
    pause_hours: float | None = None
    notes: str | None = None


@dataclass(slots=True)
class SlotRow:
    """One (shift, slot index) pair of the flattened shift table."""

    shift: Shift
    slot_index: int
    operator_id: str
    is_assigned: bool
    operator_name: str = ""
    override: SlotOverride | None = None

    @property
    def shift_id(self) -> str:
        return self.shift.id

    @property
    def date(self) -> date:
        return self.shift.date

    @property
    def start_time(self) -> str:
        if self.override is not None and self.override.start_time:
            return self.override.start_time
        return self.shift.start_time

    @property
    def end_time(self) -> str:
        if self.override is not None and self.override.end_time:
            return self.override.end_time
        return self.shift.end_time

    @property
    def pause_hours(self) -> float:
        if self.override is not None and self.override.pause_hours is not None:
            return self.override.pause_hours
        return self.shift.pause_hours

    @property
    def notes(self) -> str | None:
        if self.override is not None and self.override.notes:
            return self.override.notes
        return self.shift.notes

    @property
    def activity_type(self) -> str:
        return self.shift.activity_type

    @property
    def is_team_leader(self) -> bool:
        return bool(self.is_assigned and self.shift.team_leader_id == self.operator_id)


@dataclass(slots=True)
class CheckIn:
    id: str
    shift_id: str
    operator_id: str
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    location_lat: float | None = None
    location_lng: float | None = None
    notes: str | None = None


@dataclass(slots=True)
class AttendanceEntry:
    """A check-in joined with its shift and event, plus the derived status."""

    checkin: CheckIn
    shift: Shift
    event: Optional[Event]
    client_name: str
    brand_name: str
    status: str


@dataclass(slots=True)
class ExportRecord:
    """One row of the attendance CSV export."""

    event_title: str
    client_name: str
    brand_name: str
    shift_date: date
    start_time: str
    end_time: str
    address: str
    check_in_time: datetime | None
    check_in_lat: float | None
    check_in_lng: float | None
    check_out_time: datetime | None
    check_out_lat: float | None
    check_out_lng: float | None
    worked_hours: str | None
    status: str
    notes: str | None


@dataclass(slots=True)
class EventAggregate:
    event_id: str
    title: str
    committente: str
    shifts: List[Shift]
    total_operators: int
    billed_hours: float
    assigned_hours: float


@dataclass(slots=True)
class DayAggregate:
    date: date
    events: List[EventAggregate]
    total_operators: int
    billed_hours: float

    @property
    def total_events(self) -> int:
        return len(self.events)


__all__ = [
    "Client",
    "Brand",
    "Operator",
    "Event",
    "Shift",
    "SlotOverride",
    "SlotRow",
    "CheckIn",
    "AttendanceEntry",
    "ExportRecord",
    "EventAggregate",
    "DayAggregate",
]
