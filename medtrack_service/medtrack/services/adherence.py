from datetime import date, timedelta
from typing import Any, List

from medtrack.core.settings import SUMMARY_WINDOW_DAYS
from medtrack.schemas.models import AdherenceLog, AdherenceStats, AdherenceSummary, LogStatus
from medtrack.services.ingest import parse_log
from medtrack.utils.dates import effective_date


def _coerce_logs(payload: Any) -> List[AdherenceLog]:
    # a non-list payload from the log store counts as zero logs
    if not isinstance(payload, (list, tuple)):
        return []
    return [g for g in (parse_log(raw) for raw in payload) if g is not None]


def summarize(payload: Any) -> AdherenceSummary:
    logs = _coerce_logs(payload)

    taken = sum(1 for g in logs if g.status == LogStatus.TAKEN)
    missed = sum(1 for g in logs if g.status == LogStatus.MISSED)
    skipped = sum(1 for g in logs if g.status == LogStatus.SKIPPED)
    pending = sum(1 for g in logs if g.status == LogStatus.PENDING)
    total = len(logs)
    rate = (taken / total) if total else 0.0

    return AdherenceSummary(
        total=total,
        taken=taken,
        missed=missed,
        skipped=skipped,
        pending=pending,
        rate=rate,
    )


def logs_in_window(payload: Any, start: date, end: date) -> List[AdherenceLog]:
    out = []
    for g in _coerce_logs(payload):
        d = effective_date(g)
        if d is not None and start <= d <= end:
            out.append(g)
    return out


def summarize_window(payload: Any, start: date, end: date) -> AdherenceSummary:
    return summarize(logs_in_window(payload, start, end))


def summarize_recent(payload: Any, today: date, days: int = SUMMARY_WINDOW_DAYS) -> AdherenceSummary:
    return summarize_window(payload, today - timedelta(days=days), today)


def to_stats(summary: AdherenceSummary) -> AdherenceStats:
    return AdherenceStats(
        total=summary.total,
        taken=summary.taken,
        missed=summary.missed,
        adherence_rate=summary.rate,
    )
