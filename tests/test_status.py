from datetime import date, datetime
from types import SimpleNamespace

from shift_roster.status import (
    COMPLETED,
    IN_PROGRESS,
    MISSED,
    SCHEDULED,
    attendance_summary,
    classify_status,
    shift_datetime,
)

NOW = datetime(2025, 6, 15, 10, 0)
PAST = datetime(2025, 6, 10)
FUTURE = datetime(2025, 6, 20)
PUNCH_IN = datetime(2025, 6, 10, 8, 55)
PUNCH_OUT = datetime(2025, 6, 10, 17, 5)


class TestClassifyStatus:
    """Status derived from the punches and the shift date"""

    def test_missed(self):
        assert classify_status(PAST, None, None, NOW) == MISSED

    def test_in_progress(self):
        assert classify_status(FUTURE, PUNCH_IN, None, NOW) == IN_PROGRESS
        assert classify_status(PAST, PUNCH_IN, None, NOW) == IN_PROGRESS

    def test_completed_regardless_of_date(self):
        assert classify_status(PAST, PUNCH_IN, PUNCH_OUT, NOW) == COMPLETED
        assert classify_status(FUTURE, PUNCH_IN, PUNCH_OUT, NOW) == COMPLETED

    def test_future_without_check_in_is_scheduled(self):
        assert classify_status(FUTURE, None, None, NOW) == SCHEDULED

    def test_shift_datetime(self):
        assert shift_datetime(date(2025, 6, 10)) == datetime(2025, 6, 10)
        assert shift_datetime(date(2025, 6, 10), "19:30") == datetime(2025, 6, 10, 19, 30)
        assert shift_datetime(date(2025, 6, 10), "bad") == datetime(2025, 6, 10)


def entry(status, check_in=None, check_out=None):
    return SimpleNamespace(
        status=status,
        checkin=SimpleNamespace(check_in_time=check_in, check_out_time=check_out),
    )


class TestAttendanceSummary:
    def test_figures(self):
        entries = [
            entry(COMPLETED, datetime(2025, 6, 1, 9, 0), datetime(2025, 6, 1, 17, 30)),
            entry(COMPLETED, datetime(2025, 6, 2, 9, 0), datetime(2025, 6, 2, 13, 0)),
            entry(MISSED),
        ]
        summary = attendance_summary(entries)
        assert summary.total_shifts == 2
        # 12.5 hours rounds up
        assert summary.total_hours == 13
        assert summary.completion_rate == 67

    def test_empty(self):
        summary = attendance_summary([])
        assert (summary.total_shifts, summary.total_hours, summary.completion_rate) == (0, 0, 0)
