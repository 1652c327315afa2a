import logging
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple

from medtrack.core.settings import RECOMPUTE_COOLDOWN_S
from medtrack.schemas.models import (
    AdherenceLog,
    AdherenceStats,
    AdherenceSummary,
    DoseInstance,
    MarkInfo,
    Medication,
)
from medtrack.services.adherence import summarize_recent
from medtrack.services.calendar_marks import CalendarMarker, window_dates
from medtrack.services.day_resolver import doses_for_date
from medtrack.services.dose_actions import DoseActionController
from medtrack.services.records_client import CredentialProvider, RecordsClient, RecordStoreError
from medtrack.services.reminders import ReminderScheduler, sync_reminders
from medtrack.utils.single_flight import SingleFlight

logger = logging.getLogger(__name__)


class PatientSession:
    """
    Client-resident state for one patient: medications, logs (calendar window) and stats.

    Every refresh step replaces its value wholesale; a failed step keeps the
    previous value so partial refreshes never roll anything back.
    """

    def __init__(
        self,
        client: RecordsClient,
        credentials: CredentialProvider,
        reminders: Optional[ReminderScheduler] = None,
        clock: Callable[[], datetime] = datetime.now,
        selected_day: Optional[date] = None,
    ):
        self.client = client
        self.credentials = credentials
        self.reminders = reminders
        self.clock = clock
        self.selected_day = selected_day or clock().date()

        self.medications: Tuple[Medication, ...] = ()
        self.logs: Tuple[AdherenceLog, ...] = ()
        self.stats: Optional[AdherenceStats] = None
        self.reminder_handles: List[str] = []

        self.actions = DoseActionController(client, credentials, on_change=self.refresh, clock=clock)
        self._marker = CalendarMarker()
        self._day_flight: SingleFlight[List[DoseInstance]] = SingleFlight(cooldown_s=RECOMPUTE_COOLDOWN_S)

    # ---------------------------
    # Refresh
    # ---------------------------
    def log_window(self) -> Tuple[date, date]:
        days = window_dates(self.selected_day)
        return days[0], days[-1]

    def _token(self) -> Optional[str]:
        ctx = self.credentials.get_context()
        return ctx.token if ctx else None

    def refresh_medications(self) -> bool:
        token = self._token()
        if token is None:
            return False
        try:
            meds = tuple(self.client.fetch_medications(token))
        except RecordStoreError as e:
            logger.warning("Medication refresh failed: %s", e)
            self.actions.show_notice("ERROR", "Could not load medications.")
            return False

        changed = meds != self.medications
        self.medications = meds
        if changed and self.reminders is not None:
            self.reminder_handles = sync_reminders(meds, self.reminders)
        return True

    def refresh_logs(self) -> bool:
        token = self._token()
        if token is None:
            return False
        start, end = self.log_window()
        try:
            self.logs = tuple(self.client.fetch_logs(token, start, end))
        except RecordStoreError as e:
            logger.warning("Adherence log refresh failed: %s", e)
            self.actions.show_notice("ERROR", "Could not load dose logs.")
            return False
        return True

    def refresh_stats(self) -> bool:
        token = self._token()
        if token is None:
            return False
        try:
            self.stats = self.client.fetch_stats(token)
        except RecordStoreError as e:
            logger.warning("Adherence stats refresh failed: %s", e)
            self.actions.show_notice("ERROR", "Could not load adherence stats.")
            return False
        return True

    def refresh(self) -> Dict[str, bool]:
        # independent steps; order carries no meaning
        return {
            "medications": self.refresh_medications(),
            "logs": self.refresh_logs(),
            "stats": self.refresh_stats(),
        }

    # ---------------------------
    # Views
    # ---------------------------
    def select_day(self, day: date) -> None:
        old_window = self.log_window()
        self.selected_day = day
        if self.log_window() != old_window:
            self.refresh_logs()

    def calendar_marks(self) -> Dict[str, MarkInfo]:
        return self._marker.marks(self.selected_day, self.medications, self.logs, today=self.clock().date())

    def doses_for_selected_day(self) -> List[DoseInstance]:
        day, meds, logs = self.selected_day, self.medications, self.logs
        result = self._day_flight.run((day, meds, logs), lambda: doses_for_date(day, meds, logs))
        return result or []

    def summary_all_time(self) -> AdherenceStats:
        # resident logs only span the calendar window; the store counts everything
        return self.stats if self.stats is not None else AdherenceStats()

    def summary_recent(self) -> AdherenceSummary:
        return summarize_recent(list(self.logs), self.clock().date())
