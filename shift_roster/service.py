"""Core orchestration logic for the shift roster."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from .aggregation import (
    build_day_aggregates,
    committente_label,
    slot_billed_hours,
    slot_table_totals,
    TABLE_PLACES,
)
from .config import Settings
from .csv_export import export_filename, serialize
from .db import Database
from .errors import NotFoundError, ValidationError
from .hours import format_hours, parse_hhmm, worked_duration
from .models import (
    AttendanceEntry,
    Brand,
    CheckIn,
    Client,
    DayAggregate,
    Event,
    ExportRecord,
    Operator,
    Shift,
    SlotOverride,
    SlotRow,
)
from .notifier import NotificationError, Notifier
from .slots import flatten_shifts, is_assigned, operator_names_by_id
from .sorting import (
    SortState,
    filter_by_date_range,
    filter_by_status,
    preset_range,
    sort_rows,
    STATUS_ALL,
)
from .status import AttendanceSummary, attendance_summary, classify_status, shift_datetime

logger = logging.getLogger(__name__)

MIN_OPERATORS = 1
MAX_OPERATORS = 20
QUICK_WINDOWS = (7, 30, 90)
NOT_AVAILABLE = "N/A"


def new_id() -> str:
    return uuid.uuid4().hex


def local_naive(value: datetime) -> datetime:
    """Punches are stored as naive local time; aware values are converted."""

    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class RosterService:
    """High-level service over the roster repository and the notifier."""

    def __init__(
        self,
        settings: Settings,
        database: Database,
        notifier: Notifier,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.database = database
        self.notifier = notifier
        self.clock = clock

    # region Registry
    def create_client(self, name: str) -> Client:
        client = Client(id=new_id(), name=name)
        self.database.upsert_client(client)
        return client

    def create_brand(self, name: str) -> Brand:
        brand = Brand(id=new_id(), name=name)
        self.database.upsert_brand(brand)
        return brand

    def create_operator(
        self, name: str, phone: Optional[str] = None, email: Optional[str] = None
    ) -> Operator:
        if not name.strip():
            raise ValidationError({"name": "Inserisci il nome dell'operatore"})
        operator = Operator(id=new_id(), name=name.strip(), phone=phone, email=email)
        self.database.upsert_operator(operator)
        return operator

    def create_event(
        self,
        title: str,
        address: str = "",
        client_id: Optional[str] = None,
        brand_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Event:
        errors: Dict[str, str] = {}
        if not title.strip():
            errors["title"] = "Inserisci il titolo dell'evento"
        if client_id and self.database.get_client(client_id) is None:
            errors["client_id"] = "Cliente non trovato"
        if brand_id and self.database.get_brand(brand_id) is None:
            errors["brand_id"] = "Brand non trovato"
        if start_date and end_date and end_date < start_date:
            errors["end_date"] = "La data di fine deve essere successiva alla data di inizio"
        if errors:
            raise ValidationError(errors)
        event = Event(
            id=new_id(),
            title=title.strip(),
            address=address,
            client_id=client_id,
            brand_id=brand_id,
            start_date=start_date,
            end_date=end_date,
        )
        self.database.upsert_event(event)
        logger.info("Created event %s (%s)", event.id, event.title)
        return event

    # endregion

    # region Planning
    def plan_shift(self, event_id: str, values: Dict[str, Any]) -> Shift:
        """Validate a planning form submission and store the new shift.

        The shift starts with ``num_operators`` empty slots.
        """

        event = self._require_event(event_id)
        validate_shift_plan(values, event.start_date)
        count = int(values["num_operators"])
        shift = Shift(
            id=new_id(),
            event_id=event.id,
            date=values["date"],
            start_time=values["start_time"],
            end_time=values["end_time"],
            pause_hours=float(values.get("pause_hours") or 0),
            operator_ids=[""] * count,
            required_operators=count,
            activity_type=values["activity_type"],
            role=values["role"],
            notes=values.get("notes") or None,
        )
        self.database.save_shift(shift)
        logger.info("Planned shift %s for event %s with %s slots", shift.id, event.id, count)
        return shift

    def assign_operator(self, shift_id: str, slot_index: int, operator_id: str) -> Shift:
        """Fill (or clear, with an empty id) one slot of a shift."""

        shift = self._require_shift(shift_id)
        if not 0 <= slot_index < len(shift.operator_ids):
            raise NotFoundError("slot", f"{shift_id}/{slot_index}")
        operator_id = (operator_id or "").strip()
        if operator_id and self.database.get_operator(operator_id) is None:
            raise NotFoundError("operator", operator_id)
        if operator_id and operator_id in shift.operator_ids:
            if shift.operator_ids[slot_index] != operator_id:
                raise ValidationError({"operator_id": "Operatore già assegnato a questo turno"})

        previous = shift.operator_ids[slot_index]
        shift.operator_ids[slot_index] = operator_id
        if previous and previous == shift.team_leader_id and previous not in shift.operator_ids:
            shift.team_leader_id = None
        self.database.save_shift(shift)

        if previous and previous not in shift.operator_ids:
            self.database.delete_pending_checkin(shift.id, previous)
        if operator_id and self.database.get_checkin_for(shift.id, operator_id) is None:
            self.database.save_checkin(
                CheckIn(id=new_id(), shift_id=shift.id, operator_id=operator_id)
            )
        logger.info("Slot %s of shift %s set to %r", slot_index, shift.id, operator_id)
        return shift

    async def notify_assignment(
        self, shift: Shift, operator_id: str, slot_index: Optional[int] = None
    ) -> None:
        """Send the assignment notice; failures are logged, never raised.

        With a ``slot_index`` the notice carries that slot's own times and notes.
        """

        override = None
        if slot_index is not None:
            override = self.database.get_slot_override(shift.id, slot_index)
        slot = SlotRow(
            shift=shift,
            slot_index=slot_index or 0,
            operator_id=operator_id,
            is_assigned=True,
            override=override,
        )
        try:
            await self.notifier.send_assignment(
                operator_id,
                shift.id,
                date=shift.date.isoformat(),
                start_time=slot.start_time,
                end_time=slot.end_time,
                activity_type=shift.activity_type,
                notes=slot.notes,
            )
        except (NotificationError, httpx.HTTPError) as exc:
            logger.warning("Assignment notice for %s on %s failed: %s", operator_id, shift.id, exc)

    def set_team_leader(self, shift_id: str, operator_id: str) -> Shift:
        """Make ``operator_id`` the leader; naming the current leader clears it."""

        shift = self._require_shift(shift_id)
        operator_id = (operator_id or "").strip()
        if not operator_id or operator_id == shift.team_leader_id:
            shift.team_leader_id = None
        elif operator_id not in shift.operator_ids:
            raise ValidationError({"operator_id": "Il caposquadra deve essere assegnato al turno"})
        else:
            shift.team_leader_id = operator_id
        self.database.save_shift(shift)
        return shift

    def update_pause_hours(self, shift_id: str, pause_hours: float) -> Shift:
        if pause_hours < 0:
            raise ValidationError({"pause_hours": "Le ore di pausa non possono essere negative"})
        shift = self._require_shift(shift_id)
        shift.pause_hours = float(pause_hours)
        self.database.save_shift(shift)
        return shift

    def update_shift_notes(self, shift_id: str, notes: Optional[str]) -> Shift:
        shift = self._require_shift(shift_id)
        shift.notes = notes or None
        self.database.save_shift(shift)
        return shift

    def update_slot(
        self,
        shift_id: str,
        slot_index: int,
        *,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        pause_hours: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> SlotOverride:
        """Replace one slot's own times, pause and notes.

        Blank or missing values fall back to the shift's.
        """

        shift = self._require_shift(shift_id)
        if not 0 <= slot_index < len(shift.operator_ids):
            raise NotFoundError("slot", f"{shift_id}/{slot_index}")
        errors: Dict[str, str] = {}
        for name, value in (("start_time", start_time), ("end_time", end_time)):
            if not value:
                continue
            try:
                parse_hhmm(value)
            except ValueError:
                errors[name] = "Orario non valido (HH:mm)"
        if pause_hours is not None and pause_hours < 0:
            errors["pause_hours"] = "Le ore di pausa non possono essere negative"
        if errors:
            raise ValidationError(errors)
        override = SlotOverride(
            shift_id=shift.id,
            slot_index=slot_index,
            start_time=start_time or None,
            end_time=end_time or None,
            pause_hours=float(pause_hours) if pause_hours is not None else None,
            notes=notes or None,
        )
        self.database.save_slot_override(override)
        logger.info("Slot %s of shift %s updated", slot_index, shift.id)
        return override

    # endregion

    # region Punches
    def check_in(
        self,
        shift_id: str,
        operator_id: str,
        *,
        at: Optional[datetime] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> CheckIn:
        shift = self._require_shift(shift_id)
        operator_id = (operator_id or "").strip()
        if not is_assigned(operator_id) or operator_id not in shift.operator_ids:
            raise ValidationError({"operator_id": "Operatore non assegnato a questo turno"})
        checkin = self.database.get_checkin_for(shift.id, operator_id)
        if checkin is None:
            checkin = CheckIn(id=new_id(), shift_id=shift.id, operator_id=operator_id)
        if checkin.check_in_time is not None:
            raise ValidationError({"check_in_time": "Check-in già effettuato"})
        checkin.check_in_time = local_naive(at or self.clock())
        checkin.location_lat = lat
        checkin.location_lng = lng
        if notes:
            checkin.notes = notes
        self.database.save_checkin(checkin)
        logger.info("Operator %s checked in on shift %s", operator_id, shift.id)
        return checkin

    def check_out(
        self,
        shift_id: str,
        operator_id: str,
        *,
        at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> CheckIn:
        checkin = self.database.get_checkin_for(shift_id, operator_id)
        if checkin is None or checkin.check_in_time is None:
            raise ValidationError({"check_out_time": "Nessun check-in aperto per questo turno"})
        if checkin.check_out_time is not None:
            raise ValidationError({"check_out_time": "Check-out già effettuato"})
        check_out_time = local_naive(at or self.clock())
        if check_out_time < checkin.check_in_time:
            raise ValidationError({"check_out_time": "Il check-out precede il check-in"})
        checkin.check_out_time = check_out_time
        if notes:
            checkin.notes = notes
        self.database.save_checkin(checkin)
        logger.info("Operator %s checked out of shift %s", operator_id, shift_id)
        return checkin

    # endregion

    # region Views
    def day_view(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        preset: Optional[str] = None,
    ) -> List[DayAggregate]:
        """Day-by-day summary; a named ``preset`` replaces explicit bounds."""

        if preset:
            try:
                start, end = preset_range(preset, self.clock().date())
            except ValueError as exc:
                raise ValidationError({"preset": str(exc)}) from exc
        events = self.database.get_events()
        committenti = {
            event.id: committente_label(
                self.database.get_client(event.client_id),
                self.database.get_brand(event.brand_id),
            )
            for event in events
        }
        names = operator_names_by_id(self.database.get_operators())
        days = build_day_aggregates(
            events,
            self.database.get_shifts_between(start, end),
            committenti,
            names,
            allow_overnight=self.settings.allow_overnight,
        )
        return filter_by_date_range(days, start, end)

    def event_detail(self, event_id: str, sort: Optional[SortState] = None) -> Dict[str, Any]:
        event = self._require_event(event_id)
        sort = sort or SortState()
        shifts = self.database.get_shifts_by_event(event.id)
        names = operator_names_by_id(self.database.get_operators())
        overrides = self.database.get_slot_overrides_for_event(event.id)
        overnight = self.settings.allow_overnight
        rows = sort_rows(
            flatten_shifts(shifts, names, overrides),
            sort.key,
            sort.direction,
            lexical_hours=self.settings.lexical_hours_sort,
            allow_overnight=overnight,
        )
        totals = slot_table_totals(rows, allow_overnight=overnight)
        return {
            "event": {
                "id": event.id,
                "title": event.title,
                "address": event.address,
                "start_date": event.start_date.isoformat() if event.start_date else None,
                "end_date": event.end_date.isoformat() if event.end_date else None,
            },
            "sort": {"key": sort.key, "direction": sort.direction},
            "rows": [
                {
                    "shift_id": row.shift_id,
                    "slot_index": row.slot_index,
                    "date": row.date.isoformat(),
                    "start_time": row.start_time,
                    "end_time": row.end_time,
                    "activity_type": row.activity_type,
                    "role": row.shift.role,
                    "operator_id": row.operator_id,
                    "operator_name": row.operator_name,
                    "is_assigned": row.is_assigned,
                    "is_team_leader": row.is_team_leader,
                    "pause_hours": row.pause_hours,
                    "hours": format_hours(
                        slot_billed_hours(row, allow_overnight=overnight), TABLE_PLACES
                    ),
                    "notes": row.notes,
                }
                for row in rows
            ],
            "totals": totals.as_dict(),
        }

    # endregion

    # region Attendance
    def attendance_range(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        days: Optional[int] = None,
    ) -> Tuple[date, date]:
        """Resolve the history window; defaults to the last N days up to today."""

        today = self.clock().date()
        if days is not None:
            if days not in QUICK_WINDOWS:
                raise ValidationError(
                    {"days": f"Finestra non valida; usa {', '.join(map(str, QUICK_WINDOWS))}"}
                )
            return today - timedelta(days=days), today
        window = self.settings.attendance_default_days
        start = start or (today - timedelta(days=window))
        end = end or today
        if end < start:
            raise ValidationError({"end": "La data di fine precede la data di inizio"})
        return start, end

    def attendance_history(
        self,
        operator_id: str,
        start: date,
        end: date,
        status: str = STATUS_ALL,
    ) -> List[AttendanceEntry]:
        self._require_operator(operator_id)
        now = local_naive(self.clock())
        shifts = {shift.id: shift for shift in self.database.get_shifts_between(start, end)}
        entries: List[AttendanceEntry] = []
        for checkin in self.database.get_checkins_for_operator(operator_id):
            shift = shifts.get(checkin.shift_id)
            if shift is None:
                continue
            event = self.database.get_event(shift.event_id)
            client = self.database.get_client(event.client_id) if event else None
            brand = self.database.get_brand(event.brand_id) if event else None
            entries.append(
                AttendanceEntry(
                    checkin=checkin,
                    shift=shift,
                    event=event,
                    client_name=client.name if client else NOT_AVAILABLE,
                    brand_name=brand.name if brand else NOT_AVAILABLE,
                    status=classify_status(
                        shift_datetime(shift.date),
                        checkin.check_in_time,
                        checkin.check_out_time,
                        now,
                    ),
                )
            )
        return filter_by_status(entries, status)

    def attendance_summary(self, entries: List[AttendanceEntry]) -> AttendanceSummary:
        return attendance_summary(entries)

    def export_attendance(
        self,
        operator_id: str,
        start: date,
        end: date,
        status: str = STATUS_ALL,
    ) -> Tuple[str, bytes]:
        """Return the CSV filename and payload of an operator's history."""

        operator = self._require_operator(operator_id)
        entries = self.attendance_history(operator_id, start, end, status)
        records = [entry_to_export_record(entry) for entry in entries if entry.event is not None]
        if not records:
            raise ValidationError({"records": "Nessun dato da esportare"})
        logger.info("Exporting %s attendance records for %s", len(records), operator_id)
        return export_filename(operator.name, start, end), serialize(records)

    # endregion

    def _require_event(self, event_id: str) -> Event:
        event = self.database.get_event(event_id)
        if event is None:
            raise NotFoundError("event", event_id)
        return event

    def _require_shift(self, shift_id: str) -> Shift:
        shift = self.database.get_shift(shift_id)
        if shift is None:
            raise NotFoundError("shift", shift_id)
        return shift

    def _require_operator(self, operator_id: str) -> Operator:
        operator = self.database.get_operator(operator_id)
        if operator is None:
            raise NotFoundError("operator", operator_id)
        return operator


def validate_shift_plan(values: Dict[str, Any], event_start: Optional[date] = None) -> None:
    """Raise ``ValidationError`` with one message per offending field."""

    errors: Dict[str, str] = {}
    shift_date = values.get("date")
    if not isinstance(shift_date, date):
        errors["date"] = "Seleziona la data del turno"
    elif event_start is not None and shift_date < event_start:
        errors["date"] = (
            "La data del turno deve essere uguale o successiva alla data di inizio evento"
        )
    for name, message in (
        ("start_time", "Seleziona ora di inizio"),
        ("end_time", "Seleziona ora di fine"),
    ):
        value = values.get(name)
        if not value:
            errors[name] = message
            continue
        try:
            parse_hhmm(value)
        except ValueError:
            errors[name] = "Orario non valido (HH:mm)"
    if not values.get("activity_type"):
        errors["activity_type"] = "Seleziona tipologia attività"
    if not values.get("role"):
        errors["role"] = "Seleziona mansione"
    count = values.get("num_operators")
    if not isinstance(count, int) or count < MIN_OPERATORS:
        errors["num_operators"] = "Inserisci numero operatori"
    elif count > MAX_OPERATORS:
        errors["num_operators"] = f"Massimo {MAX_OPERATORS} operatori"
    pause = values.get("pause_hours") or 0
    if pause < 0:
        errors["pause_hours"] = "Le ore di pausa non possono essere negative"
    if errors:
        raise ValidationError(errors)


def entry_to_export_record(entry: AttendanceEntry) -> ExportRecord:
    checkin = entry.checkin
    event = entry.event
    return ExportRecord(
        event_title=event.title if event else "",
        client_name=entry.client_name,
        brand_name=entry.brand_name,
        shift_date=entry.shift.date,
        start_time=entry.shift.start_time,
        end_time=entry.shift.end_time,
        address=event.address if event else "",
        check_in_time=checkin.check_in_time,
        check_in_lat=checkin.location_lat,
        check_in_lng=checkin.location_lng,
        # punches share one recorded location
        check_out_time=checkin.check_out_time,
        check_out_lat=checkin.location_lat,
        check_out_lng=checkin.location_lng,
        worked_hours=worked_duration(checkin.check_in_time, checkin.check_out_time),
        status=entry.status,
        notes=checkin.notes,
    )


__all__ = [
    "RosterService",
    "validate_shift_plan",
    "entry_to_export_record",
    "local_naive",
    "new_id",
]
