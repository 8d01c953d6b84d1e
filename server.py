# Deploy: set API_KEY (and optionally DATABASE_PATH, NOTIFY_WEBHOOK_URL) and run
# 'uvicorn server:app --host=0.0.0.0 --port=8000'
import logging
import os

from dotenv import load_dotenv

from shift_roster.api import create_app
from shift_roster.config import load_settings

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "info").upper(), handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("shift_roster")

settings = load_settings()
if not settings.notify_webhook_url:
    logger.warning("NOTIFY_WEBHOOK_URL is not set. Assignment notices will only be logged.")

app = create_app(settings)
