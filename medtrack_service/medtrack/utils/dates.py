# medtrack/utils/dates.py
from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from medtrack.core.settings import MEDTRACK_TIMEZONE

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_HHMM_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")


def _local_zone():
    if MEDTRACK_TIMEZONE:
        try:
            return ZoneInfo(MEDTRACK_TIMEZONE)
        except ZoneInfoNotFoundError:
            return None
    return None


def to_local_naive(dt: datetime) -> datetime:
    """Aware datetimes are moved to the local wall clock; naive ones pass through."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(_local_zone()).replace(tzinfo=None)


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        return to_local_naive(datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")))
    except ValueError:
        return None


def parse_day(value: Any) -> Optional[date]:
    """Day-granularity parse: times are stripped, garbage gives None."""
    if isinstance(value, datetime):
        return to_local_naive(value).date()
    if isinstance(value, date):
        return value
    dt = parse_datetime(value)
    return dt.date() if dt else None


def normalize_hhmm(value: Any) -> Optional[str]:
    m = _HHMM_RE.match(str(value or ""))
    if not m:
        return None
    h, mm = int(m.group(1)), int(m.group(2))
    if not (0 <= h <= 23 and 0 <= mm <= 59):
        return None
    return f"{h:02d}:{mm:02d}"


def format_hhmm(dt: Optional[datetime]) -> str:
    return dt.strftime("%H:%M") if dt else ""


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def compose(day: date, hhmm: str) -> datetime:
    """Scheduled timestamp for a dose: the calendar day at the entry's wall-clock time."""
    t = normalize_hhmm(hhmm)
    if t is None:
        raise ValueError(f"Invalid time of day: {hhmm!r}")
    h, m = map(int, t.split(":"))
    return datetime.combine(day, time(hour=h, minute=m))


def effective_datetime(log: Any) -> Optional[datetime]:
    """takenAt, falling back to scheduledTime, falling back to createdAt."""
    for value in (log.taken_at, log.scheduled_time, log.created_at):
        if value is not None:
            return value
    return None


def effective_date(log: Any) -> Optional[date]:
    dt = effective_datetime(log)
    return dt.date() if dt else None


def is_active_for(med: Any, day: date) -> bool:
    if med.start_date is not None and med.start_date > day:
        return False
    return med.end_date is None or med.end_date >= day


def is_ended_for(med: Any, day: date) -> bool:
    return med.end_date is not None and med.end_date < day


def day_key(day: date) -> str:
    return day.isoformat()
