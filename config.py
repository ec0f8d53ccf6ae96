"""
Configuration
=============
Environment loading and settings for the canteen API.
Reads a .env file when present, then the process environment.
"""

import os
import logging
from datetime import timezone, tzinfo
from pathlib import Path
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


def load_environment():
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)


load_environment()


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "smartCanteenDB")
CANTEEN_TIMEZONE = os.getenv("CANTEEN_TIMEZONE", "Asia/Kolkata")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def canteen_timezone() -> tzinfo:
    """Timezone used to decide which calendar day an order belongs to."""
    try:
        return ZoneInfo(CANTEEN_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown CANTEEN_TIMEZONE {CANTEEN_TIMEZONE!r}, falling back to UTC")
        return timezone.utc


def configure_logging(level: str = None):
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
