"""CSV export of an operator's attendance history."""

from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime
from typing import Iterable, List, Optional

from .models import ExportRecord

EXPORT_HEADERS = [
    "Data",
    "Evento",
    "Cliente",
    "Brand",
    "Indirizzo",
    "Orario Programmato",
    "Check-in",
    "Coordinate Check-in",
    "Check-out",
    "Coordinate Check-out",
    "Ore Lavorate",
    "Stato",
    "Note",
]
MISSING = "-"
BOM = "\ufeff"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def format_date(value: date | str) -> str:
    """Render a date as ``dd/MM/yyyy``; an unparsable string is echoed back."""

    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


def format_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%d/%m/%Y %H:%M")


def _format_number(value: float) -> str:
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def format_coordinates(lat: Optional[float], lng: Optional[float]) -> str:
    if lat is None or lng is None:
        return MISSING
    return f"{_format_number(lat)}, {_format_number(lng)}"


def record_to_row(record: ExportRecord) -> List[str]:
    return [
        format_date(record.shift_date),
        record.event_title,
        record.client_name,
        record.brand_name,
        record.address,
        f"{record.start_time} - {record.end_time}",
        format_datetime(record.check_in_time) if record.check_in_time else MISSING,
        format_coordinates(record.check_in_lat, record.check_in_lng),
        format_datetime(record.check_out_time) if record.check_out_time else MISSING,
        format_coordinates(record.check_out_lat, record.check_out_lng),
        record.worked_hours or MISSING,
        record.status,
        record.notes or MISSING,
    ]


def serialize(records: Iterable[ExportRecord]) -> bytes:
    """Render records as a UTF-8 CSV payload prefixed with a byte-order mark.

    Fields are quoted only when they contain a comma, a double quote or a
    line break; rows are separated by ``\\n`` with no trailing newline.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for record in records:
        writer.writerow(record_to_row(record))
    content = buffer.getvalue()[: -len("\n")]
    return (BOM + content).encode("utf-8")


def export_filename(operator_name: str, start: date | str, end: date | str) -> str:
    safe_name = re.sub(r"\s", "_", operator_name)
    return f"presenze_{safe_name}_{format_date(start)}_{format_date(end)}.csv"


__all__ = [
    "EXPORT_HEADERS",
    "CSV_MEDIA_TYPE",
    "format_date",
    "format_datetime",
    "format_coordinates",
    "record_to_row",
    "serialize",
    "export_filename",
]
