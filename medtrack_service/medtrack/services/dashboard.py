from datetime import datetime, timedelta
from typing import List, Sequence

from medtrack.core.settings import RECENT_DAYS, UPCOMING_HORIZON_DAYS, UPCOMING_LIMIT
from medtrack.schemas.models import AdherenceLog, DashboardResponse, Medication, UpcomingDose
from medtrack.services.adherence import summarize
from medtrack.services.next_dose import next_dose, upcoming_doses


def recent_medications(
    meds: Sequence[Medication],
    now: datetime,
    days: int = RECENT_DAYS,
    limit: int = UPCOMING_LIMIT,
) -> List[Medication]:
    cutoff = now - timedelta(days=days)
    return [m for m in meds if m.created_at is not None and m.created_at >= cutoff][:limit]


def past_medications(
    meds: Sequence[Medication],
    now: datetime,
    horizon_days: int = UPCOMING_HORIZON_DAYS,
    limit: int = UPCOMING_LIMIT,
) -> List[Medication]:
    """Ended, or with no next dose inside the horizon."""
    horizon = now + timedelta(days=horizon_days)
    out: List[Medication] = []
    for m in meds:
        if m.end_date is not None and m.end_date < now.date():
            out.append(m)
            continue
        nxt = next_dose(m, now)
        if nxt is None or nxt > horizon:
            out.append(m)
    return out[:limit]


def build_dashboard(
    meds: Sequence[Medication],
    logs: Sequence[AdherenceLog],
    now: datetime,
) -> DashboardResponse:
    upcoming = upcoming_doses(meds, now, limit=UPCOMING_LIMIT, horizon=timedelta(days=UPCOMING_HORIZON_DAYS))
    return DashboardResponse(
        recent=recent_medications(meds, now),
        upcoming=[UpcomingDose(medication=m, next_dose=nxt) for m, nxt in upcoming],
        past=past_medications(meds, now),
        stats=summarize(list(logs)),
    )
