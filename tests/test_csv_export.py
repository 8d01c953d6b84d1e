from datetime import date, datetime

import pytest

from shift_roster.csv_export import (
    EXPORT_HEADERS,
    export_filename,
    format_coordinates,
    format_date,
    serialize,
)
from shift_roster.models import ExportRecord


def make_record(**overrides):
    values = dict(
        event_title="Concerto",
        client_name="Acme",
        brand_name="Beta",
        shift_date=date(2025, 6, 10),
        start_time="19:00",
        end_time="22:00",
        address="Via Padova 10",
        check_in_time=datetime(2025, 6, 10, 18, 55),
        check_in_lat=45.5013,
        check_in_lng=9.2352,
        check_out_time=datetime(2025, 6, 10, 22, 5),
        check_out_lat=45.5013,
        check_out_lng=9.2352,
        worked_hours="3h 10m",
        status="completed",
        notes=None,
    )
    values.update(overrides)
    return ExportRecord(**values)


def decode(payload):
    assert payload.startswith(b"\xef\xbb\xbf")
    return payload.decode("utf-8-sig")


class TestSerialize:
    """Attendance CSV payload"""

    def test_header_has_thirteen_columns(self):
        text = decode(serialize([]))
        assert text == ",".join(EXPORT_HEADERS)
        assert len(EXPORT_HEADERS) == 13

    def test_full_record(self):
        lines = decode(serialize([make_record()])).split("\n")
        assert lines[1] == (
            "10/06/2025,Concerto,Acme,Beta,Via Padova 10,19:00 - 22:00,"
            '10/06/2025 18:55,"45.5013, 9.2352",10/06/2025 22:05,"45.5013, 9.2352",'
            "3h 10m,completed,-"
        )

    def test_no_trailing_newline(self):
        assert not serialize([make_record()]).endswith(b"\n")

    def test_comma_in_notes_is_quoted(self):
        lines = decode(serialize([make_record(notes="Arrived late, left early")])).split("\n")
        assert lines[1].endswith(',"Arrived late, left early"')

    def test_quotes_are_doubled(self):
        lines = decode(serialize([make_record(notes='Said "ok"')])).split("\n")
        assert lines[1].endswith(',"Said ""ok"""')

    def test_newline_is_quoted(self):
        text = decode(serialize([make_record(notes="first\nsecond")]))
        assert text.endswith(',"first\nsecond"')

    def test_empty_optional_fields(self):
        record = make_record(
            check_in_time=None,
            check_in_lat=None,
            check_in_lng=None,
            check_out_time=None,
            check_out_lat=None,
            check_out_lng=None,
            worked_hours=None,
            status="missed",
            notes=None,
        )
        fields = decode(serialize([record])).split("\n")[1].split(",")
        assert fields[6:11] == ["-", "-", "-", "-", "-"]
        assert fields[11:] == ["missed", "-"]

    def test_aware_timestamps_are_shown_in_local_time(self):
        aware = datetime(2025, 6, 10, 18, 55).astimezone()
        lines = decode(serialize([make_record(check_in_time=aware)])).split("\n")
        assert "10/06/2025 18:55" in lines[1]


class TestFormatting:
    def test_dates(self):
        assert format_date(date(2025, 6, 1)) == "01/06/2025"
        assert format_date("2025-06-01") == "01/06/2025"
        assert format_date("not a date") == "not a date"

    @pytest.mark.parametrize(
        "lat,lng,expected",
        [
            (45.5013, 9.2352, "45.5013, 9.2352"),
            (45.0, 9.0, "45, 9"),
            (0.0, 9.5, "0, 9.5"),
            (None, 9.2, "-"),
            (45.5, None, "-"),
        ],
    )
    def test_coordinates(self, lat, lng, expected):
        assert format_coordinates(lat, lng) == expected

    def test_filename(self):
        assert (
            export_filename("Mario De Rossi", date(2025, 6, 1), date(2025, 6, 30))
            == "presenze_Mario_De_Rossi_01/06/2025_30/06/2025.csv"
        )
        assert (
            export_filename("Anna Bianchi", "2025-06-01", "2025-06-30")
            == "presenze_Anna_Bianchi_01/06/2025_30/06/2025.csv"
        )
