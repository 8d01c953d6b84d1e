"""Entrypoint for running the shift roster API via `python -m shift_roster.main`."""

from __future__ import annotations

import logging
import os

import uvicorn

from .api import create_app
from .config import load_settings


def run() -> None:
    log_level = os.getenv("LOG_LEVEL", "info")
    logging.basicConfig(level=log_level.upper(), handlers=[logging.StreamHandler()])
    env_file = os.getenv("SHIFT_ROSTER_ENV")
    settings = load_settings(env_file)
    if not settings.notify_webhook_url:
        logging.getLogger("shift_roster").warning(
            "NOTIFY_WEBHOOK_URL is not set. Assignment notices will only be logged."
        )
    app = create_app(settings)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        log_level=log_level,
    )


if __name__ == "__main__":  # pragma: no cover
    run()
