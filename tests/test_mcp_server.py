import asyncio
import importlib
import sys
from datetime import date

import pytest

from shift_roster.config import Settings
from shift_roster.db import Database
from shift_roster.notifier import Notifier
from shift_roster.service import RosterService


@pytest.fixture
def mcp_module(monkeypatch, tmp_path):
    db_path = tmp_path / "mcp.db"
    monkeypatch.setenv("API_KEY", "test-key")
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.delitem(sys.modules, "shift_roster.mcp_server", raising=False)
    module = importlib.import_module("shift_roster.mcp_server")
    yield module
    sys.modules.pop("shift_roster.mcp_server", None)


class TestTools:
    """MCP tools read the same roster as the API"""

    def test_day_summary_and_event_shifts(self, mcp_module):
        settings = Settings(api_key="test-key", database_path=mcp_module._settings.database_path)
        service = RosterService(settings, Database(settings.database_path), Notifier(None))
        event = service.create_event("Fiera", start_date=date(2025, 6, 1))
        service.plan_shift(
            event.id,
            {
                "date": date(2025, 6, 3),
                "start_time": "10:00",
                "end_time": "14:00",
                "activity_type": "Accoglienza",
                "role": "Hostess",
                "num_operators": 2,
            },
        )

        summary = asyncio.run(mcp_module.get_day_summary("2025-06-01", "2025-06-30"))
        assert summary["days"][0]["total_billed_hours"] == "4.00"
        assert summary["days"][0]["total_operators"] == 0

        detail = asyncio.run(mcp_module.get_event_shifts(event.id, sort="hours"))
        assert detail["totals"] == {"total_hours": "8.0", "assigned_hours": "0.0"}
