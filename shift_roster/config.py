"""Configuration helpers for the shift roster service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

HOURS_SORT_MODES = ("numeric", "lexical")
TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    api_key: str
    database_path: Path
    notify_webhook_url: Optional[str] = None
    allow_overnight: bool = False
    hours_sort: str = "numeric"
    attendance_default_days: int = 30

    @property
    def lexical_hours_sort(self) -> bool:
        return self.hours_sort == "lexical"


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    db_path = Path(os.getenv("DATABASE_PATH", "shift_roster.db")).expanduser()

    api_key = os.getenv("API_KEY")
    if not api_key:
        raise RuntimeError("API_KEY must be configured")

    hours_sort = os.getenv("HOURS_SORT", "numeric").strip().lower()
    if hours_sort not in HOURS_SORT_MODES:
        raise RuntimeError(f"HOURS_SORT must be one of: {', '.join(HOURS_SORT_MODES)}")

    try:
        default_days = int(os.getenv("ATTENDANCE_DEFAULT_DAYS", "30"))
    except ValueError as exc:
        raise RuntimeError("ATTENDANCE_DEFAULT_DAYS must be an integer") from exc

    return Settings(
        api_key=api_key,
        database_path=db_path,
        notify_webhook_url=os.getenv("NOTIFY_WEBHOOK_URL") or None,
        allow_overnight=os.getenv("ALLOW_OVERNIGHT", "false").strip().lower() in TRUE_VALUES,
        hours_sort=hours_sort,
        attendance_default_days=default_days,
    )


__all__ = ["Settings", "load_settings"]
