"""FastAPI application exposing the shift roster REST API."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import (
    BackgroundTasks,
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Query,
    Request,
    Response,
    status,
)
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .aggregation import day_aggregate_as_dict
from .config import Settings, load_settings
from .csv_export import CSV_MEDIA_TYPE
from .db import Database
from .errors import NotFoundError, ValidationError
from .models import CheckIn, Shift, SlotOverride
from .notifier import Notifier
from .service import RosterService
from .sorting import (
    ASCENDING,
    DATE_PRESETS,
    DESCENDING,
    STATUS_ALL,
    SortState,
    normalize_sort_key,
)
from .status import STATUSES

logger = logging.getLogger(__name__)


class ClientIn(BaseModel):
    name: str


class OperatorIn(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


class EventIn(BaseModel):
    title: str
    address: str = ""
    client_id: Optional[str] = None
    brand_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ShiftPlanIn(BaseModel):
    shift_date: Optional[date] = Field(default=None, alias="date")
    start_time: str = ""
    end_time: str = ""
    activity_type: str = ""
    role: str = ""
    num_operators: int = 1
    pause_hours: float = 0
    notes: Optional[str] = None


class SlotAssignmentIn(BaseModel):
    operator_id: str = ""


class SlotDetailsIn(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    pause_hours: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class TeamLeaderIn(BaseModel):
    operator_id: str = ""


class PauseIn(BaseModel):
    pause_hours: float = Field(ge=0)


class NotesIn(BaseModel):
    notes: Optional[str] = None


class PunchIn(BaseModel):
    operator_id: str
    at: Optional[datetime] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    notes: Optional[str] = None


def shift_as_dict(shift: Shift) -> Dict[str, Any]:
    return {
        "id": shift.id,
        "event_id": shift.event_id,
        "date": shift.date.isoformat(),
        "start_time": shift.start_time,
        "end_time": shift.end_time,
        "pause_hours": shift.pause_hours,
        "operator_ids": list(shift.operator_ids),
        "required_operators": shift.required_operators,
        "activity_type": shift.activity_type,
        "role": shift.role,
        "notes": shift.notes,
        "team_leader_id": shift.team_leader_id,
    }


def checkin_as_dict(checkin: CheckIn) -> Dict[str, Any]:
    return {
        "id": checkin.id,
        "shift_id": checkin.shift_id,
        "operator_id": checkin.operator_id,
        "check_in_time": checkin.check_in_time.isoformat() if checkin.check_in_time else None,
        "check_out_time": checkin.check_out_time.isoformat() if checkin.check_out_time else None,
        "location_lat": checkin.location_lat,
        "location_lng": checkin.location_lng,
        "notes": checkin.notes,
    }


def slot_override_as_dict(override: SlotOverride) -> Dict[str, Any]:
    return {
        "shift_id": override.shift_id,
        "slot_index": override.slot_index,
        "start_time": override.start_time,
        "end_time": override.end_time,
        "pause_hours": override.pause_hours,
        "notes": override.notes,
    }


def parse_date_param(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD") from exc


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[RosterService] = None,
) -> FastAPI:
    settings = settings or load_settings()
    if service is None:
        database = Database(settings.database_path)
        notifier = Notifier(settings.notify_webhook_url)
        service = RosterService(settings, database, notifier)

    async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> None:
        if x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")

    app = FastAPI(title="Shift Roster API", version="1.0.0")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        await service.notifier.close()

    def get_service() -> RosterService:
        return service

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    # region Registry
    @app.post("/api/clients", status_code=201)
    async def create_client(
        body: ClientIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        client = svc.create_client(body.name)
        return {"id": client.id, "name": client.name}

    @app.post("/api/brands", status_code=201)
    async def create_brand(
        body: ClientIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        brand = svc.create_brand(body.name)
        return {"id": brand.id, "name": brand.name}

    @app.post("/api/operators", status_code=201)
    async def create_operator(
        body: OperatorIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        operator = svc.create_operator(body.name, body.phone, body.email)
        return {"id": operator.id, "name": operator.name}

    @app.post("/api/events", status_code=201)
    async def create_event(
        body: EventIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        event = svc.create_event(
            body.title,
            body.address,
            body.client_id,
            body.brand_id,
            body.start_date,
            body.end_date,
        )
        return {"id": event.id, "title": event.title}

    # endregion

    # region Planning
    @app.get("/api/days")
    async def get_days(
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        if preset and preset not in DATE_PRESETS:
            raise HTTPException(status_code=400, detail=f"Unknown preset {preset!r}")
        days = svc.day_view(parse_date_param(start), parse_date_param(end), preset)
        return {
            "days": [
                day_aggregate_as_dict(day, allow_overnight=settings.allow_overnight)
                for day in days
            ]
        }

    @app.get("/api/events/{event_id}/shifts")
    async def get_event_shifts(
        event_id: str,
        sort: str = "date",
        direction: str = ASCENDING,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        try:
            key = normalize_sort_key(sort)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if direction not in (ASCENDING, DESCENDING):
            raise HTTPException(status_code=400, detail="direction must be asc or desc")
        return svc.event_detail(event_id, SortState(key, direction))

    @app.post("/api/events/{event_id}/shifts", status_code=201)
    async def plan_shift(
        event_id: str,
        body: ShiftPlanIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        values = body.model_dump(exclude={"shift_date"})
        values["date"] = body.shift_date
        shift = svc.plan_shift(event_id, values)
        return shift_as_dict(shift)

    @app.put("/api/shifts/{shift_id}/slots/{slot_index}")
    async def assign_slot(
        shift_id: str,
        slot_index: int,
        body: SlotAssignmentIn,
        background_tasks: BackgroundTasks,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        shift = svc.assign_operator(shift_id, slot_index, body.operator_id)
        if body.operator_id.strip():
            background_tasks.add_task(
                svc.notify_assignment, shift, body.operator_id.strip(), slot_index
            )
        return shift_as_dict(shift)

    @app.put("/api/shifts/{shift_id}/slots/{slot_index}/details")
    async def update_slot_details(
        shift_id: str,
        slot_index: int,
        body: SlotDetailsIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        override = svc.update_slot(
            shift_id,
            slot_index,
            start_time=body.start_time,
            end_time=body.end_time,
            pause_hours=body.pause_hours,
            notes=body.notes,
        )
        return slot_override_as_dict(override)

    @app.put("/api/shifts/{shift_id}/team-leader")
    async def set_team_leader(
        shift_id: str,
        body: TeamLeaderIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        return shift_as_dict(svc.set_team_leader(shift_id, body.operator_id))

    @app.put("/api/shifts/{shift_id}/pause")
    async def update_pause(
        shift_id: str,
        body: PauseIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        return shift_as_dict(svc.update_pause_hours(shift_id, body.pause_hours))

    @app.put("/api/shifts/{shift_id}/notes")
    async def update_notes(
        shift_id: str,
        body: NotesIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        return shift_as_dict(svc.update_shift_notes(shift_id, body.notes))

    # endregion

    # region Attendance
    @app.post("/api/shifts/{shift_id}/checkin")
    async def check_in(
        shift_id: str,
        body: PunchIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        checkin = svc.check_in(
            shift_id, body.operator_id, at=body.at, lat=body.lat, lng=body.lng, notes=body.notes
        )
        return checkin_as_dict(checkin)

    @app.post("/api/shifts/{shift_id}/checkout")
    async def check_out(
        shift_id: str,
        body: PunchIn,
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        return checkin_as_dict(svc.check_out(shift_id, body.operator_id, at=body.at, notes=body.notes))

    def attendance_query(
        start: Optional[str] = None,
        end: Optional[str] = None,
        days: Optional[int] = None,
        status_filter: str = Query(STATUS_ALL, alias="status"),
    ) -> Dict[str, Any]:
        if status_filter != STATUS_ALL and status_filter not in STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown status {status_filter!r}")
        window = service.attendance_range(parse_date_param(start), parse_date_param(end), days)
        return {"start": window[0], "end": window[1], "status": status_filter}

    @app.get("/api/operators/{operator_id}/attendance")
    async def get_attendance(
        operator_id: str,
        query: Dict[str, Any] = Depends(attendance_query),
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> dict[str, object]:
        entries = svc.attendance_history(operator_id, query["start"], query["end"], query["status"])
        summary = svc.attendance_summary(entries)
        return {
            "start": query["start"].isoformat(),
            "end": query["end"].isoformat(),
            "summary": {
                "total_shifts": summary.total_shifts,
                "total_hours": summary.total_hours,
                "completion_rate": summary.completion_rate,
            },
            "records": [
                {
                    **checkin_as_dict(entry.checkin),
                    "status": entry.status,
                    "shift_date": entry.shift.date.isoformat(),
                    "start_time": entry.shift.start_time,
                    "end_time": entry.shift.end_time,
                    "event_title": entry.event.title if entry.event else None,
                    "address": entry.event.address if entry.event else None,
                    "client_name": entry.client_name,
                    "brand_name": entry.brand_name,
                }
                for entry in entries
            ],
        }

    @app.get("/api/operators/{operator_id}/attendance.csv")
    async def export_attendance(
        operator_id: str,
        query: Dict[str, Any] = Depends(attendance_query),
        _: None = Depends(verify_api_key),
        svc: RosterService = Depends(get_service),
    ) -> Response:
        filename, payload = svc.export_attendance(
            operator_id, query["start"], query["end"], query["status"]
        )
        return Response(
            content=payload,
            media_type=CSV_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
        )

    # endregion

    return app


__all__ = [
    "create_app",
    "shift_as_dict",
    "checkin_as_dict",
    "slot_override_as_dict",
    "parse_date_param",
]
