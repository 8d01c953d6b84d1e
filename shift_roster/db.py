"""SQLite persistence layer for the shift roster."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .models import Brand, CheckIn, Client, Event, Operator, Shift, SlotOverride

Connection = sqlite3.Connection
Row = sqlite3.Row


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class Database:
    """Repository over SQLite for events, shifts, operators and check-ins."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS clients (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS brands (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS operators (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    phone TEXT,
                    email TEXT
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS events (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    address TEXT NOT NULL DEFAULT '',
                    client_id TEXT,
                    brand_id TEXT,
                    start_date TEXT,
                    end_date TEXT,
                    FOREIGN KEY(client_id) REFERENCES clients(id),
                    FOREIGN KEY(brand_id) REFERENCES brands(id)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS shifts (
                    id TEXT PRIMARY KEY,
                    event_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    start_time TEXT NOT NULL,
                    end_time TEXT NOT NULL,
                    pause_hours REAL NOT NULL DEFAULT 0,
                    operator_ids TEXT NOT NULL DEFAULT '[]',
                    required_operators INTEGER NOT NULL DEFAULT 1,
                    activity_type TEXT NOT NULL DEFAULT '',
                    role TEXT NOT NULL DEFAULT '',
                    notes TEXT,
                    team_leader_id TEXT,
                    FOREIGN KEY(event_id) REFERENCES events(id)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS slot_overrides (
                    shift_id TEXT NOT NULL,
                    slot_index INTEGER NOT NULL,
                    start_time TEXT,
                    end_time TEXT,
                    pause_hours REAL,
                    notes TEXT,
                    PRIMARY KEY(shift_id, slot_index),
                    FOREIGN KEY(shift_id) REFERENCES shifts(id)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS checkins (
                    id TEXT PRIMARY KEY,
                    shift_id TEXT NOT NULL,
                    operator_id TEXT NOT NULL,
                    check_in_time TEXT,
                    check_out_time TEXT,
                    location_lat REAL,
                    location_lng REAL,
                    notes TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(shift_id, operator_id),
                    FOREIGN KEY(shift_id) REFERENCES shifts(id),
                    FOREIGN KEY(operator_id) REFERENCES operators(id)
                )
                """
            )
            conn.commit()

    # region Clients and brands
    def upsert_client(self, client: Client) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO clients (id, name) VALUES (:id, :name)
                ON CONFLICT(id) DO UPDATE SET name=excluded.name
                """,
                {"id": client.id, "name": client.name},
            )
            conn.commit()

    def get_client(self, client_id: Optional[str]) -> Optional[Client]:
        if not client_id:
            return None
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
            return Client(id=row["id"], name=row["name"]) if row else None

    def upsert_brand(self, brand: Brand) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO brands (id, name) VALUES (:id, :name)
                ON CONFLICT(id) DO UPDATE SET name=excluded.name
                """,
                {"id": brand.id, "name": brand.name},
            )
            conn.commit()

    def get_brand(self, brand_id: Optional[str]) -> Optional[Brand]:
        if not brand_id:
            return None
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM brands WHERE id = ?", (brand_id,)).fetchone()
            return Brand(id=row["id"], name=row["name"]) if row else None

    # endregion

    # region Operators
    def upsert_operator(self, operator: Operator) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO operators (id, name, phone, email)
                VALUES (:id, :name, :phone, :email)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    phone=excluded.phone,
                    email=excluded.email
                """,
                {
                    "id": operator.id,
                    "name": operator.name,
                    "phone": operator.phone,
                    "email": operator.email,
                },
            )
            conn.commit()

    def get_operator(self, operator_id: str) -> Optional[Operator]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM operators WHERE id = ?", (operator_id,)).fetchone()
            return _row_to_operator(row) if row else None

    def get_operators(self) -> List[Operator]:
        with self.connect() as conn:
            cursor = conn.execute("SELECT * FROM operators ORDER BY name")
            return [_row_to_operator(row) for row in cursor.fetchall()]

    # endregion

    # region Events
    def upsert_event(self, event: Event) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO events (id, title, address, client_id, brand_id, start_date, end_date)
                VALUES (:id, :title, :address, :client_id, :brand_id, :start_date, :end_date)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    address=excluded.address,
                    client_id=excluded.client_id,
                    brand_id=excluded.brand_id,
                    start_date=excluded.start_date,
                    end_date=excluded.end_date
                """,
                {
                    "id": event.id,
                    "title": event.title,
                    "address": event.address,
                    "client_id": event.client_id,
                    "brand_id": event.brand_id,
                    "start_date": _iso(event.start_date),
                    "end_date": _iso(event.end_date),
                },
            )
            conn.commit()

    def get_event(self, event_id: str) -> Optional[Event]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
            return _row_to_event(row) if row else None

    def get_events(self) -> List[Event]:
        with self.connect() as conn:
            cursor = conn.execute("SELECT * FROM events ORDER BY start_date, title")
            return [_row_to_event(row) for row in cursor.fetchall()]

    # endregion

    # region Shifts
    def save_shift(self, shift: Shift) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO shifts (
                    id, event_id, date, start_time, end_time, pause_hours, operator_ids,
                    required_operators, activity_type, role, notes, team_leader_id
                )
                VALUES (
                    :id, :event_id, :date, :start_time, :end_time, :pause_hours, :operator_ids,
                    :required_operators, :activity_type, :role, :notes, :team_leader_id
                )
                ON CONFLICT(id) DO UPDATE SET
                    date=excluded.date,
                    start_time=excluded.start_time,
                    end_time=excluded.end_time,
                    pause_hours=excluded.pause_hours,
                    operator_ids=excluded.operator_ids,
                    required_operators=excluded.required_operators,
                    activity_type=excluded.activity_type,
                    role=excluded.role,
                    notes=excluded.notes,
                    team_leader_id=excluded.team_leader_id
                """,
                _shift_to_record(shift),
            )
            conn.commit()

    def get_shift(self, shift_id: str) -> Optional[Shift]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM shifts WHERE id = ?", (shift_id,)).fetchone()
            return _row_to_shift(row) if row else None

    def get_shifts_by_event(self, event_id: str) -> List[Shift]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM shifts WHERE event_id = ? ORDER BY date, start_time, rowid",
                (event_id,),
            )
            return [_row_to_shift(row) for row in cursor.fetchall()]

    def get_shifts_between(self, start_day: Optional[date], end_day: Optional[date]) -> List[Shift]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM shifts
                WHERE date >= COALESCE(?, date) AND date <= COALESCE(?, date)
                ORDER BY date, start_time, rowid
                """,
                (_iso(start_day), _iso(end_day)),
            )
            return [_row_to_shift(row) for row in cursor.fetchall()]

    def save_slot_override(self, override: SlotOverride) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO slot_overrides (
                    shift_id, slot_index, start_time, end_time, pause_hours, notes
                )
                VALUES (:shift_id, :slot_index, :start_time, :end_time, :pause_hours, :notes)
                ON CONFLICT(shift_id, slot_index) DO UPDATE SET
                    start_time=excluded.start_time,
                    end_time=excluded.end_time,
                    pause_hours=excluded.pause_hours,
                    notes=excluded.notes
                """,
                {
                    "shift_id": override.shift_id,
                    "slot_index": override.slot_index,
                    "start_time": override.start_time,
                    "end_time": override.end_time,
                    "pause_hours": override.pause_hours,
                    "notes": override.notes,
                },
            )
            conn.commit()

    def get_slot_override(self, shift_id: str, slot_index: int) -> Optional[SlotOverride]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM slot_overrides WHERE shift_id = ? AND slot_index = ?",
                (shift_id, slot_index),
            ).fetchone()
            return _row_to_slot_override(row) if row else None

    def get_slot_overrides_for_event(self, event_id: str) -> Dict[Tuple[str, int], SlotOverride]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT o.* FROM slot_overrides o
                JOIN shifts s ON s.id = o.shift_id
                WHERE s.event_id = ?
                """,
                (event_id,),
            )
            overrides = [_row_to_slot_override(row) for row in cursor.fetchall()]
        return {(item.shift_id, item.slot_index): item for item in overrides}

    # endregion

    # region Check-ins
    def save_checkin(self, checkin: CheckIn) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO checkins (
                    id, shift_id, operator_id, check_in_time, check_out_time,
                    location_lat, location_lng, notes
                )
                VALUES (
                    :id, :shift_id, :operator_id, :check_in_time, :check_out_time,
                    :location_lat, :location_lng, :notes
                )
                ON CONFLICT(id) DO UPDATE SET
                    check_in_time=excluded.check_in_time,
                    check_out_time=excluded.check_out_time,
                    location_lat=excluded.location_lat,
                    location_lng=excluded.location_lng,
                    notes=excluded.notes
                """,
                {
                    "id": checkin.id,
                    "shift_id": checkin.shift_id,
                    "operator_id": checkin.operator_id,
                    "check_in_time": _iso(checkin.check_in_time),
                    "check_out_time": _iso(checkin.check_out_time),
                    "location_lat": checkin.location_lat,
                    "location_lng": checkin.location_lng,
                    "notes": checkin.notes,
                },
            )
            conn.commit()

    def get_checkin_for(self, shift_id: str, operator_id: str) -> Optional[CheckIn]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM checkins WHERE shift_id = ? AND operator_id = ?",
                (shift_id, operator_id),
            ).fetchone()
            return _row_to_checkin(row) if row else None

    def delete_pending_checkin(self, shift_id: str, operator_id: str) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                DELETE FROM checkins
                WHERE shift_id = ? AND operator_id = ? AND check_in_time IS NULL
                """,
                (shift_id, operator_id),
            )
            conn.commit()

    def get_checkins_for_operator(self, operator_id: str) -> List[CheckIn]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM checkins
                WHERE operator_id = ?
                ORDER BY check_in_time IS NULL, check_in_time DESC
                """,
                (operator_id,),
            )
            return [_row_to_checkin(row) for row in cursor.fetchall()]

    # endregion


def _row_to_operator(row: Row) -> Operator:
    return Operator(id=row["id"], name=row["name"], phone=row["phone"], email=row["email"])


def _row_to_event(row: Row) -> Event:
    return Event(
        id=row["id"],
        title=row["title"],
        address=row["address"] or "",
        client_id=row["client_id"],
        brand_id=row["brand_id"],
        start_date=_parse_date(row["start_date"]),
        end_date=_parse_date(row["end_date"]),
    )


def _shift_to_record(shift: Shift) -> Dict[str, Any]:
    return {
        "id": shift.id,
        "event_id": shift.event_id,
        "date": shift.date.isoformat(),
        "start_time": shift.start_time,
        "end_time": shift.end_time,
        "pause_hours": shift.pause_hours,
        "operator_ids": json.dumps(shift.operator_ids),
        "required_operators": shift.required_operators,
        "activity_type": shift.activity_type,
        "role": shift.role,
        "notes": shift.notes,
        "team_leader_id": shift.team_leader_id,
    }


def _row_to_shift(row: Row) -> Shift:
    return Shift(
        id=row["id"],
        event_id=row["event_id"],
        date=date.fromisoformat(row["date"]),
        start_time=row["start_time"],
        end_time=row["end_time"],
        pause_hours=row["pause_hours"] or 0.0,
        operator_ids=[operator_id or "" for operator_id in json.loads(row["operator_ids"] or "[]")],
        required_operators=row["required_operators"],
        activity_type=row["activity_type"] or "",
        role=row["role"] or "",
        notes=row["notes"],
        team_leader_id=row["team_leader_id"],
    )


def _row_to_slot_override(row: Row) -> SlotOverride:
    return SlotOverride(
        shift_id=row["shift_id"],
        slot_index=row["slot_index"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        pause_hours=row["pause_hours"],
        notes=row["notes"],
    )


def _row_to_checkin(row: Row) -> CheckIn:
    return CheckIn(
        id=row["id"],
        shift_id=row["shift_id"],
        operator_id=row["operator_id"],
        check_in_time=_parse_datetime(row["check_in_time"]),
        check_out_time=_parse_datetime(row["check_out_time"]),
        location_lat=row["location_lat"],
        location_lng=row["location_lng"],
        notes=row["notes"],
    )


__all__ = ["Database"]
