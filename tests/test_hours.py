from datetime import datetime

from shift_roster.hours import (
    effective_hours,
    format_hours,
    parse_hhmm,
    worked_duration,
    worked_hours,
)


class TestEffectiveHours:
    """Shift duration minus pause"""

    def test_pause_is_subtracted(self):
        assert effective_hours("09:00", "17:00", 1) == 7.0

    def test_no_pause(self):
        assert effective_hours("09:00", "17:00", 0) == 8.0
        assert effective_hours("09:00", "17:00") == 8.0

    def test_minutes_are_fractional_hours(self):
        assert effective_hours("09:15", "17:45", 0.5) == 8.0

    def test_end_before_start_is_clamped(self):
        assert effective_hours("17:00", "09:00", 0) == 0

    def test_overnight_flag_wraps_midnight(self):
        assert effective_hours("20:00", "03:00", allow_overnight=True) == 7.0
        assert effective_hours("20:00", "03:00", 1, allow_overnight=True) == 6.0

    def test_pause_longer_than_shift(self):
        assert effective_hours("09:00", "10:00", 2) == 0.0

    def test_seconds_suffix_is_tolerated(self):
        assert effective_hours("09:00:00", "17:30:00") == 8.5

    def test_malformed_input_yields_zero(self):
        assert effective_hours("xx", "17:00") == 0.0
        assert effective_hours("9", "17:00") == 0.0
        assert effective_hours("25:00", "26:00") == 0.0
        assert effective_hours(None, "17:00") == 0.0
        assert effective_hours("09:00", "17:00", "abc") == 0.0


class TestFormatting:
    def test_parse_hhmm(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("23:59") == 23 * 60 + 59

    def test_format_hours(self):
        assert format_hours(8) == "8.00"
        assert format_hours(7.5, 1) == "7.5"
        assert format_hours(0.0, 2) == "0.00"


class TestWorkedDuration:
    """Interval between check-in and check-out"""

    def test_closed_interval(self):
        check_in = datetime(2025, 6, 10, 9, 0)
        check_out = datetime(2025, 6, 10, 17, 30)
        assert worked_duration(check_in, check_out) == "8h 30m"
        assert worked_hours(check_in, check_out) == 8.5

    def test_seconds_are_truncated(self):
        check_in = datetime(2025, 6, 10, 9, 0, 0)
        check_out = datetime(2025, 6, 10, 9, 45, 59)
        assert worked_duration(check_in, check_out) == "0h 45m"

    def test_open_interval(self):
        assert worked_duration(datetime(2025, 6, 10, 9, 0), None) is None
        assert worked_hours(None, None) == 0.0
