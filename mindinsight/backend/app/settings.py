from __future__ import annotations

import logging
import os
from datetime import date, datetime, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

APP_VERSION = "1.0.0"
REPO_ROOT = Path(__file__).resolve().parents[3]
load_dotenv(REPO_ROOT / ".env")

TRUTHY = {"1", "true", "yes", "on"}
DEFAULT_HEATMAP_DAYS = 90

logger = logging.getLogger("mindinsight.settings")


def env_flag(*names: str) -> bool:
    return any(os.getenv(name, "").strip().lower() in TRUTHY for name in names)


def is_dev_mode() -> bool:
    return env_flag("MINDINSIGHT_DEV_MODE", "DEV_MODE")


def log_level() -> str:
    value = (os.getenv("MINDINSIGHT_LOG_LEVEL") or "INFO").strip().upper()
    return value if isinstance(logging.getLevelName(value), int) else "INFO"


def heatmap_days() -> int:
    raw = (os.getenv("MINDINSIGHT_HEATMAP_DAYS") or "").strip()
    try:
        days = int(raw) if raw else DEFAULT_HEATMAP_DAYS
    except ValueError:
        logger.warning("Ignoring non-numeric MINDINSIGHT_HEATMAP_DAYS=%r", raw)
        days = DEFAULT_HEATMAP_DAYS
    return max(7, min(366, days))


def local_timezone() -> Optional[tzinfo]:
    """Zone whose local midnight defines a day bucket. None means host local."""
    name = (os.getenv("MINDINSIGHT_TIMEZONE") or "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown MINDINSIGHT_TIMEZONE=%r, using host local time", name)
        return None


def local_now() -> datetime:
    zone = local_timezone()
    if zone is None:
        return datetime.now()
    return datetime.now(zone).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def configure_logging() -> None:
    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
