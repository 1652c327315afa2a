import logging
from datetime import datetime, time, timedelta
from typing import List, Optional, Sequence, Tuple

from medtrack.core.settings import UPCOMING_LIMIT
from medtrack.schemas.models import Medication

logger = logging.getLogger(__name__)


def next_dose(med: Medication, now: datetime) -> Optional[datetime]:
    """
    Rough next-due timestamp from frequency alone.
    Schedule entries are not consulted; None means "no known next dose".
    """
    try:
        # no start date -> already running
        if med.start_date is not None:
            start = datetime.combine(med.start_date, time.min)
            if now < start:
                return start

        return now + med.frequency_kind.interval()
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug("next_dose failed for %s: %s", med.id, e)
        return None


def upcoming_doses(
    meds: Sequence[Medication],
    now: datetime,
    limit: int = UPCOMING_LIMIT,
    horizon: Optional[timedelta] = None,
) -> List[Tuple[Medication, datetime]]:
    out: List[Tuple[Medication, datetime]] = []
    for m in meds:
        nxt = next_dose(m, now)
        if nxt is None or nxt <= now:
            continue
        if horizon is not None and nxt > now + horizon:
            continue
        out.append((m, nxt))

    out.sort(key=lambda pair: pair[1])
    return out[:limit]
