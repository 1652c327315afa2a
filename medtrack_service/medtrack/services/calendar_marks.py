from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from medtrack.core.settings import CALENDAR_DAYS_AFTER, CALENDAR_DAYS_BEFORE
from medtrack.schemas.models import AdherenceLog, MarkInfo, Medication
from medtrack.services.day_resolver import doses_for_date
from medtrack.utils.dates import day_key, effective_date
from medtrack.utils.single_flight import SingleFlight


def window_dates(
    center: date,
    days_before: int = CALENDAR_DAYS_BEFORE,
    days_after: int = CALENDAR_DAYS_AFTER,
) -> List[date]:
    start = center - timedelta(days=days_before)
    return [start + timedelta(days=i) for i in range(days_before + days_after + 1)]


def _logs_by_date(logs: Sequence[AdherenceLog]) -> Dict[date, List[AdherenceLog]]:
    out: Dict[date, List[AdherenceLog]] = {}
    for log in logs:
        d = effective_date(log)
        if d is not None:
            out.setdefault(d, []).append(log)
    return out


def marks_for_window(
    center: date,
    medications: Sequence[Medication],
    logs: Sequence[AdherenceLog],
    today: Optional[date] = None,
) -> Dict[str, MarkInfo]:
    """Sparse per-date marks for the calendar window around `center` (the selected date)."""
    today = today or date.today()
    by_date = _logs_by_date(logs)

    marks: Dict[str, MarkInfo] = {}
    for d in window_dates(center):
        day_logs = by_date.get(d, [])
        has_activity = bool(doses_for_date(d, medications, day_logs))
        confirmed = bool(day_logs)
        selected = d == center
        if not (has_activity or confirmed or selected):
            continue
        marks[day_key(d)] = MarkInfo(
            has_activity=has_activity,
            confirmed=confirmed,
            is_past=d < today,
            selected=selected,
        )
    return marks


class CalendarMarker:
    """Memoized marks_for_window; recompute storms collapse into one run."""

    def __init__(self):
        # pure function of its inputs, so an equal key never goes stale
        self._flight: SingleFlight[Dict[str, MarkInfo]] = SingleFlight(cooldown_s=float("inf"))

    def marks(
        self,
        center: date,
        medications: Sequence[Medication],
        logs: Sequence[AdherenceLog],
        today: Optional[date] = None,
    ) -> Dict[str, MarkInfo]:
        today = today or date.today()
        key = (center, today, medications, logs)
        result = self._flight.run(key, lambda: marks_for_window(center, medications, logs, today))
        return result if result is not None else {}
