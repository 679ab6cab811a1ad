# backend/trip_planner/utils/time_utils.py

import re
from datetime import date, datetime, timezone
from typing import Optional

import pytz

from trip_planner.core.config_loader import settings


_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HHMM = re.compile(r"^(\d{1,2}):(\d{2})")


def local_today(tz_name: Optional[str] = None) -> date:
    """Calendar day at the destination, not the server's."""
    tz = pytz.timezone(tz_name or settings.timezone)
    return datetime.now(tz).date()


def parse_day(text: str) -> date:
    """
    Accepts only YYYY-MM-DD and returns a plain calendar date.

    Program dates are never routed through a datetime/UTC conversion, which
    is what shifts a day backwards for users west of Greenwich.
    """
    text = (text or "").strip()
    if not _ISO_DAY.match(text):
        raise ValueError(f"Expected a YYYY-MM-DD date, got {text!r}")
    return date.fromisoformat(text)


def is_valid_day(text: Optional[str]) -> bool:
    try:
        parse_day(text or "")
        return True
    except ValueError:
        return False


def format_br_date(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def parse_hhmm(text: Optional[str]) -> Optional[int]:
    """'09:30' -> 570 minutes after midnight; None when not parseable."""
    if not text:
        return None
    match = _HHMM.match(text.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59:
        return None
    return hours * 60 + minutes


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
