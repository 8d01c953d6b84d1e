from datetime import date

import pytest

from shift_roster.aggregation import (
    aggregate_event,
    build_day_aggregates,
    committente_label,
    day_aggregate_as_dict,
    event_assigned_hours,
    event_billed_hours,
    shift_assigned_hours,
    shift_billed_hours,
    slot_table_totals,
)
from shift_roster.models import Brand, Client, Event, SlotOverride
from shift_roster.slots import flatten_shifts, occupied_slot_count

from conftest import make_shift

JUNE_10 = date(2025, 6, 10)
JUNE_11 = date(2025, 6, 11)


@pytest.fixture
def events():
    return [Event(id="e1", title="Concerto"), Event(id="e2", title="Fiera")]


@pytest.fixture
def shifts():
    return [
        make_shift("s2", "e1", JUNE_10, "18:00", "22:00", 0, ["op3"]),
        make_shift("s1", "e1", JUNE_10, "09:00", "17:00", 1, ["op1", "op2", ""]),
        make_shift("s3", "e2", JUNE_10, "08:00", "12:30", 0, ["", ""]),
        make_shift("s4", "e1", JUNE_11, "22:00", "02:00", 0, ["op1"]),
    ]


class TestShiftHours:
    """Billed and assigned hours of a single shift"""

    def test_billed_counts_once(self, shifts):
        by_id = {shift.id: shift for shift in shifts}
        assert shift_billed_hours(by_id["s1"]) == 7.0
        assert shift_billed_hours(by_id["s3"]) == 4.5

    def test_assigned_multiplies_filled_slots(self, shifts):
        by_id = {shift.id: shift for shift in shifts}
        assert shift_assigned_hours(by_id["s1"]) == 14.0
        assert shift_assigned_hours(by_id["s3"]) == 0.0

    def test_assigned_equals_billed_times_occupied(self, shifts):
        for shift in shifts:
            expected = shift_billed_hours(shift) * occupied_slot_count(shift)
            assert shift_assigned_hours(shift) == expected

    def test_overnight_policy(self, shifts):
        overnight = shifts[3]
        assert shift_billed_hours(overnight) == 0.0
        assert shift_billed_hours(overnight, allow_overnight=True) == 4.0

    def test_event_totals(self, shifts):
        event_shifts = [shift for shift in shifts if shift.event_id == "e1" and shift.date == JUNE_10]
        assert event_billed_hours(event_shifts) == 11.0
        assert event_assigned_hours(event_shifts) == 18.0
        assert event_billed_hours([]) == 0.0


class TestDayAggregates:
    """Grouping by day and by event"""

    def test_days_are_chronological(self, events, shifts):
        days = build_day_aggregates(events, shifts)
        assert [day.date for day in days] == [JUNE_10, JUNE_11]

    def test_day_figures(self, events, shifts):
        first = build_day_aggregates(events, shifts)[0]
        by_event = {event.event_id: event for event in first.events}

        assert first.total_events == 2
        assert by_event["e1"].billed_hours == 11.0
        assert by_event["e1"].assigned_hours == 18.0
        assert by_event["e1"].total_operators == 3
        assert by_event["e2"].billed_hours == 4.5
        assert by_event["e2"].total_operators == 0
        assert first.billed_hours == 15.5
        assert first.total_operators == 3

    def test_day_sum_matches_event_and_shift_sums(self, events, shifts):
        for day in build_day_aggregates(events, shifts):
            day_shifts = [shift for shift in shifts if shift.date == day.date]
            assert day.billed_hours == sum(event.billed_hours for event in day.events)
            assert day.billed_hours == sum(shift_billed_hours(shift) for shift in day_shifts)

    def test_shifts_within_event_sorted_by_start(self, events, shifts):
        first = build_day_aggregates(events, shifts)[0]
        concerto = next(event for event in first.events if event.event_id == "e1")
        assert [shift.id for shift in concerto.shifts] == ["s1", "s2"]

    def test_unknown_event_is_ignored(self, events):
        orphan = make_shift("s9", "missing", JUNE_10, operator_ids=["op1"])
        assert build_day_aggregates(events, [orphan]) == []

    def test_summary_rendering_uses_two_decimals(self, events, shifts):
        rendered = day_aggregate_as_dict(build_day_aggregates(events, shifts)[0])
        assert rendered["date"] == "2025-06-10"
        assert rendered["total_billed_hours"] == "15.50"
        concerto = rendered["events"][0]
        assert concerto["total_billed_hours"] == "11.00"
        assert concerto["total_assigned_hours"] == "18.00"
        assert concerto["shifts"][0]["effective_hours"] == "7.00"

    def test_aggregate_event_committente(self, events, shifts):
        aggregate = aggregate_event(events[1], [shifts[2]], "Acme - Beta")
        assert aggregate.committente == "Acme - Beta"
        assert aggregate.title == "Fiera"


class TestCommittente:
    def test_labels(self):
        acme = Client(id="c1", name="Acme")
        beta = Brand(id="b1", name="Beta")
        assert committente_label(acme, beta) == "Acme - Beta"
        assert committente_label(acme, None) == "Acme"
        assert committente_label(None, beta) == "Beta"
        assert committente_label(None, None) == "—"


class TestSlotTableTotals:
    """Event-detail table totals, one decimal"""

    def test_every_slot_counts_towards_total(self, shifts):
        rows = flatten_shifts([shifts[1], shifts[0]])
        totals = slot_table_totals(rows)
        assert totals.total_hours == 25.0
        assert totals.assigned_hours == 18.0
        assert totals.as_dict() == {"total_hours": "25.0", "assigned_hours": "18.0"}

    def test_slot_overrides_feed_totals(self, shifts):
        overrides = {
            ("s1", 0): SlotOverride("s1", 0, pause_hours=0),
            ("s1", 2): SlotOverride("s1", 2, start_time="13:00", pause_hours=0),
        }
        totals = slot_table_totals(flatten_shifts([shifts[1]], overrides=overrides))
        # 8h + 7h for the filled slots, 4h for the empty one
        assert totals.total_hours == 19.0
        assert totals.assigned_hours == 15.0

    def test_placeholder_ids_are_not_counted(self, events):
        shift = make_shift("s9", "e1", JUNE_10, "09:00", "13:00", 0, ["Da assegnare", "op1"])
        day = build_day_aggregates(events, [shift])[0]
        assert day.total_operators == 1
        assert day.events[0].assigned_hours == 4.0
