from datetime import date, datetime

import pytest

from shift_roster.config import Settings
from shift_roster.db import Database
from shift_roster.models import Shift
from shift_roster.notifier import Notifier
from shift_roster.service import RosterService

NOW = datetime(2025, 6, 15, 10, 0)


def make_shift(
    shift_id="s1",
    event_id="e1",
    day=date(2025, 6, 10),
    start="09:00",
    end="17:00",
    pause=0.0,
    operator_ids=None,
    **extra,
):
    return Shift(
        id=shift_id,
        event_id=event_id,
        date=day,
        start_time=start,
        end_time=end,
        pause_hours=pause,
        operator_ids=list(operator_ids if operator_ids is not None else [""]),
        **extra,
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(api_key="test-key", database_path=tmp_path / "roster.db")


@pytest.fixture
def database(settings):
    return Database(settings.database_path)


@pytest.fixture
def service(settings, database):
    return RosterService(settings, database, Notifier(None), clock=lambda: NOW)


@pytest.fixture
def roster(service):
    """A client, a brand, two operators and one event starting on 1 June 2025."""

    client = service.create_client("Acme")
    brand = service.create_brand("Beta")
    mario = service.create_operator("Mario Rossi")
    anna = service.create_operator("Anna Bianchi")
    event = service.create_event(
        "Concerto",
        address="Via Padova 10",
        client_id=client.id,
        brand_id=brand.id,
        start_date=date(2025, 6, 1),
        end_date=date(2025, 6, 30),
    )
    return {"client": client, "brand": brand, "mario": mario, "anna": anna, "event": event}
