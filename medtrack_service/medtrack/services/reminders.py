import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Protocol, Sequence, Set

from medtrack.core.settings import REMINDER_WINDOW_MINUTES
from medtrack.schemas.models import DueReminder, Medication, ReminderRecord
from medtrack.utils.dates import compose, is_active_for, weekday_name

logger = logging.getLogger(__name__)


class ReminderScheduler(Protocol):
    def schedule_reminder(self, medication_name: str, fire_time: str) -> str:
        ...


def _handle() -> str:
    return "rem_" + uuid.uuid4().hex[:8]


def _log_fire(reminder: ReminderRecord) -> None:
    logger.info("Reminder: take %s at %s", reminder.medication_name, reminder.fire_time)


class InMemoryReminderScheduler:
    """Daily reminders kept in process; fire_due() is the external trigger."""

    def __init__(self, on_fire: Optional[Callable[[ReminderRecord], None]] = None):
        self.on_fire = on_fire or _log_fire
        self.reminders: List[ReminderRecord] = []
        self._fired_on: Optional[date] = None
        self._fired: Set[str] = set()

    def schedule_reminder(self, medication_name: str, fire_time: str) -> str:
        # same medication and time -> same reminder
        for existing in self.reminders:
            if (existing.medication_name, existing.fire_time) == (medication_name, fire_time):
                return existing.handle
        rec = ReminderRecord(handle=_handle(), medication_name=medication_name, fire_time=fire_time)
        self.reminders.append(rec)
        return rec.handle

    def fire_due(self, now: datetime, window_minutes: int = REMINDER_WINDOW_MINUTES) -> List[ReminderRecord]:
        today = now.date()
        if self._fired_on != today:
            self._fired_on = today
            self._fired = set()

        fired: List[ReminderRecord] = []
        for rec in self.reminders:
            if rec.handle in self._fired:
                continue
            try:
                at = compose(today, rec.fire_time)
            except ValueError:
                continue
            if now <= at <= now + timedelta(minutes=window_minutes):
                self._fired.add(rec.handle)
                self.on_fire(rec)
                fired.append(rec)
        return fired


def sync_reminders(medications: Sequence[Medication], scheduler: ReminderScheduler) -> List[str]:
    """One schedule_reminder call per schedule entry per medication; duplicates are the scheduler's concern."""
    handles: List[str] = []
    for med in medications:
        for entry in med.schedule:
            handles.append(scheduler.schedule_reminder(med.name, entry.time))
    return handles


def due_reminders(
    medications: Sequence[Medication],
    now: datetime,
    window_minutes: int = REMINDER_WINDOW_MINUTES,
) -> List[DueReminder]:
    today = now.date()
    day_name = weekday_name(today)
    out: List[DueReminder] = []
    for med in medications:
        if not (med.reminder_enabled and med.is_active) or not is_active_for(med, today):
            continue
        for entry in med.schedule:
            if day_name not in entry.days:
                continue
            at = compose(today, entry.time)
            diff_min = (at - now).total_seconds() / 60
            if 0 <= diff_min <= window_minutes:
                out.append(DueReminder(
                    medication_id=med.id,
                    medication_name=med.name,
                    dosage=med.dosage,
                    time=entry.time,
                    fire_at=at,
                ))
    out.sort(key=lambda r: r.fire_at)
    return out
