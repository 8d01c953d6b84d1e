"""Hour roll-ups per shift, per event and per day."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .hours import effective_hours, format_hours
from .models import Client, Brand, DayAggregate, Event, EventAggregate, Shift, SlotRow
from .slots import occupied_slot_count

# Day/event summaries show two decimals, the event-detail table totals one.
SUMMARY_PLACES = 2
TABLE_PLACES = 1


@dataclass(slots=True)
class SlotTableTotals:
    total_hours: float
    assigned_hours: float

    def as_dict(self) -> Dict[str, str]:
        return {
            "total_hours": format_hours(self.total_hours, TABLE_PLACES),
            "assigned_hours": format_hours(self.assigned_hours, TABLE_PLACES),
        }


def shift_billed_hours(shift: Shift, *, allow_overnight: bool = False) -> float:
    """Effective hours of a shift, counted once whatever its headcount."""

    return effective_hours(
        shift.start_time,
        shift.end_time,
        shift.pause_hours,
        allow_overnight=allow_overnight,
    )


def slot_billed_hours(row: SlotRow, *, allow_overnight: bool = False) -> float:
    """Effective hours of one slot, honouring its start/end/pause overrides."""

    return effective_hours(
        row.start_time,
        row.end_time,
        row.pause_hours,
        allow_overnight=allow_overnight,
    )


def shift_assigned_hours(
    shift: Shift,
    operator_names: Optional[Mapping[str, str]] = None,
    *,
    allow_overnight: bool = False,
) -> float:
    """Billed hours multiplied by the number of filled slots."""

    billed = shift_billed_hours(shift, allow_overnight=allow_overnight)
    return billed * occupied_slot_count(shift, operator_names)


def event_billed_hours(shifts: Iterable[Shift], *, allow_overnight: bool = False) -> float:
    return sum(
        (shift_billed_hours(shift, allow_overnight=allow_overnight) for shift in shifts), 0.0
    )


def event_assigned_hours(
    shifts: Iterable[Shift],
    operator_names: Optional[Mapping[str, str]] = None,
    *,
    allow_overnight: bool = False,
) -> float:
    return sum(
        (
            shift_assigned_hours(shift, operator_names, allow_overnight=allow_overnight)
            for shift in shifts
        ),
        0.0,
    )


def committente_label(client: Optional[Client], brand: Optional[Brand]) -> str:
    """Return "client - brand", whichever of the two is known, or an em dash."""

    client_name = client.name if client else ""
    brand_name = brand.name if brand else ""
    if client_name and brand_name:
        return f"{client_name} - {brand_name}"
    return client_name or brand_name or "—"


def aggregate_event(
    event: Event,
    shifts: Sequence[Shift],
    committente: str = "",
    operator_names: Optional[Mapping[str, str]] = None,
    *,
    allow_overnight: bool = False,
) -> EventAggregate:
    ordered = sorted(shifts, key=lambda shift: shift.start_time)
    return EventAggregate(
        event_id=event.id,
        title=event.title,
        committente=committente,
        shifts=ordered,
        total_operators=sum(occupied_slot_count(shift, operator_names) for shift in ordered),
        billed_hours=event_billed_hours(ordered, allow_overnight=allow_overnight),
        assigned_hours=event_assigned_hours(
            ordered, operator_names, allow_overnight=allow_overnight
        ),
    )


def build_day_aggregates(
    events: Iterable[Event],
    shifts: Iterable[Shift],
    committenti: Optional[Mapping[str, str]] = None,
    operator_names: Optional[Mapping[str, str]] = None,
    *,
    allow_overnight: bool = False,
) -> List[DayAggregate]:
    """Group shifts by calendar day, then by event, in chronological order.

    ``committenti`` maps event ids to their client/brand label. Shifts whose
    event is unknown are ignored.
    """

    events_by_id = {event.id: event for event in events}
    labels = committenti or {}
    by_day: Dict[date, Dict[str, List[Shift]]] = defaultdict(dict)
    for shift in shifts:
        if shift.event_id not in events_by_id:
            continue
        by_day[shift.date].setdefault(shift.event_id, []).append(shift)

    days: List[DayAggregate] = []
    for day in sorted(by_day):
        event_aggregates = [
            aggregate_event(
                events_by_id[event_id],
                day_shifts,
                labels.get(event_id, ""),
                operator_names,
                allow_overnight=allow_overnight,
            )
            for event_id, day_shifts in by_day[day].items()
        ]
        days.append(
            DayAggregate(
                date=day,
                events=event_aggregates,
                total_operators=day_operator_count(event_aggregates),
                billed_hours=day_billed_hours(event_aggregates),
            )
        )
    return days


def day_billed_hours(events: Iterable[EventAggregate]) -> float:
    return sum((event.billed_hours for event in events), 0.0)


def day_operator_count(events: Iterable[EventAggregate]) -> int:
    return sum(event.total_operators for event in events)


def slot_table_totals(
    rows: Iterable[SlotRow], *, allow_overnight: bool = False
) -> SlotTableTotals:
    """Sum per-slot hours for the event-detail table.

    Every slot counts towards ``total_hours``; only filled slots count towards
    ``assigned_hours``.
    """

    total = 0.0
    assigned = 0.0
    for row in rows:
        hours = slot_billed_hours(row, allow_overnight=allow_overnight)
        total += hours
        if row.is_assigned:
            assigned += hours
    return SlotTableTotals(total_hours=total, assigned_hours=assigned)


def event_aggregate_as_dict(
    aggregate: EventAggregate, *, allow_overnight: bool = False
) -> Dict[str, object]:
    return {
        "event_id": aggregate.event_id,
        "title": aggregate.title,
        "committente": aggregate.committente,
        "total_operators": aggregate.total_operators,
        "total_billed_hours": format_hours(aggregate.billed_hours, SUMMARY_PLACES),
        "total_assigned_hours": format_hours(aggregate.assigned_hours, SUMMARY_PLACES),
        "shifts": [
            {
                "id": shift.id,
                "start_time": shift.start_time,
                "end_time": shift.end_time,
                "activity_type": shift.activity_type,
                "role": shift.role,
                "pause_hours": shift.pause_hours,
                "slots": len(shift.operator_ids),
                "effective_hours": format_hours(
                    shift_billed_hours(shift, allow_overnight=allow_overnight), SUMMARY_PLACES
                ),
            }
            for shift in aggregate.shifts
        ],
    }


def day_aggregate_as_dict(
    aggregate: DayAggregate, *, allow_overnight: bool = False
) -> Dict[str, object]:
    return {
        "date": aggregate.date.isoformat(),
        "total_events": aggregate.total_events,
        "total_operators": aggregate.total_operators,
        "total_billed_hours": format_hours(aggregate.billed_hours, SUMMARY_PLACES),
        "events": [
            event_aggregate_as_dict(event, allow_overnight=allow_overnight)
            for event in aggregate.events
        ],
    }


__all__ = [
    "SlotTableTotals",
    "shift_billed_hours",
    "slot_billed_hours",
    "shift_assigned_hours",
    "event_billed_hours",
    "event_assigned_hours",
    "committente_label",
    "aggregate_event",
    "build_day_aggregates",
    "day_billed_hours",
    "day_operator_count",
    "slot_table_totals",
    "event_aggregate_as_dict",
    "day_aggregate_as_dict",
]
