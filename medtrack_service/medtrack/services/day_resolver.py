# medtrack/services/day_resolver.py
from __future__ import annotations

from datetime import date
from typing import Dict, List, Sequence

from medtrack.schemas.models import AdherenceLog, DoseInstance, DoseSource, Medication, ScheduleEntry
from medtrack.utils.dates import (
    effective_date,
    effective_datetime,
    format_hhmm,
    is_active_for,
    is_ended_for,
    weekday_name,
)

UNKNOWN_MEDICATION_NAME = "Unknown medication"


def bucket_logs_for_date(day: date, logs: Sequence[AdherenceLog]) -> Dict[str, List[AdherenceLog]]:
    """Logs whose effective occurrence date is `day`, keyed by medication id (insertion ordered)."""
    buckets: Dict[str, List[AdherenceLog]] = {}
    for log in logs:
        if effective_date(log) != day:
            continue
        buckets.setdefault(str(log.medication.id), []).append(log)
    return buckets


def placeholder_medication(log: AdherenceLog) -> Medication:
    ref = log.medication
    return Medication(
        id=str(ref.id),
        name=ref.name or UNKNOWN_MEDICATION_NAME,
        dosage=ref.dosage or "",
        schedule=[],
        is_active=False,
        reminder_enabled=False,
        is_placeholder=True,
    )


def _entries_for_day(med: Medication, day_name: str) -> List[ScheduleEntry]:
    # an empty days list never matches here; only a log can surface it
    return [e for e in med.schedule if day_name in e.days]


def _log_times(log: AdherenceLog) -> List[str]:
    times = [format_hhmm(log.scheduled_time), format_hhmm(effective_datetime(log))]
    return [t for t in times if t]


def _coincides(entry_time: str, log: AdherenceLog) -> bool:
    return any(entry_time in t or t in entry_time for t in _log_times(log))


def _rows_for_medication(
    med: Medication,
    day: date,
    entries: List[ScheduleEntry],
    logs: List[AdherenceLog],
) -> List[DoseInstance]:
    ended = is_ended_for(med, day)
    can_log = (not med.is_placeholder) and is_active_for(med, day)

    rows: List[DoseInstance] = []
    consumed = set()
    for entry in entries:
        confirming = next(
            (g for g in logs if g.id not in consumed and _coincides(entry.time, g)),
            None,
        )
        if confirming is not None:
            consumed.add(confirming.id)
        rows.append(DoseInstance(
            medication=med,
            day=day,
            time=entry.time,
            source=DoseSource.SCHEDULED,
            entry=entry,
            log=confirming,
            can_log=can_log,
            ended=ended,
        ))

    entry_times = [e.time for e in entries]
    for log in logs:
        if log.id in consumed or any(_coincides(t, log) for t in entry_times):
            continue
        rows.append(DoseInstance(
            medication=med,
            day=day,
            time=format_hhmm(effective_datetime(log)) or None,
            source=DoseSource.LOGGED,
            log=log,
            can_log=False,
            ended=ended,
        ))
    return rows


def doses_for_date(
    day: date,
    medications: Sequence[Medication],
    logs: Sequence[AdherenceLog],
) -> List[DoseInstance]:
    """
    Merge each medication's recurring schedule with the logs attributed to `day`.

    Medications with neither a matching entry nor a log are left out. Logs whose
    medication is unknown are surfaced under a placeholder medication.
    """
    day_name = weekday_name(day)
    buckets = bucket_logs_for_date(day, logs)

    rows: List[DoseInstance] = []
    known = set()
    for med in medications:
        mid = str(med.id)
        known.add(mid)

        # not started yet: hidden even with a matching weekday
        if med.start_date is not None and med.start_date > day:
            continue

        entries = _entries_for_day(med, day_name)
        med_logs = buckets.get(mid, [])
        if not entries and not med_logs:
            continue
        rows.extend(_rows_for_medication(med, day, entries, med_logs))

    for mid, orphan_logs in buckets.items():
        if mid in known:
            continue
        placeholder = placeholder_medication(orphan_logs[0])
        rows.extend(_rows_for_medication(placeholder, day, [], orphan_logs))

    return rows
