import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from medtrack.core.settings import NOTICE_SECONDS
from medtrack.schemas.models import LogStatus, NoticeLevel
from medtrack.services.records_client import CredentialProvider, RecordsClient, RecordStoreError
from medtrack.utils.dates import compose

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "You are not signed in. Please log in again."


class ActionState(str, Enum):
    IDLE = "IDLE"
    LOGGING = "LOGGING"
    LOGGED = "LOGGED"
    UNDOING = "UNDOING"
    FAILED = "FAILED"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    shown_at: datetime
    duration_s: float = NOTICE_SECONDS

    @property
    def expires_at(self) -> datetime:
        return self.shown_at + timedelta(seconds=self.duration_s)

    def visible(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class LastLog:
    log_id: str
    medication_id: str
    day: date


class DoseActionController:
    """
    Logs taken doses and undoes the most recent one.

    Only one log is remembered for undo; every successful log_dose overwrites it.
    Notices are advisory and never gate the next action.
    """

    def __init__(
        self,
        client: RecordsClient,
        credentials: CredentialProvider,
        on_change: Optional[Callable[[], None]] = None,
        clock: Callable[[], datetime] = datetime.now,
        notice_s: float = NOTICE_SECONDS,
    ):
        self.client = client
        self.credentials = credentials
        self.on_change = on_change
        self.clock = clock
        self.notice_s = notice_s

        self._last_log: Optional[LastLog] = None
        self._notice: Optional[Notice] = None
        self._states: Dict[Tuple[str, date], ActionState] = {}

    # ---------------------------
    # State
    # ---------------------------
    @property
    def last_log(self) -> Optional[LastLog]:
        return self._last_log

    def state(self, medication_id: str, day: date) -> ActionState:
        return self._states.get((str(medication_id), day), ActionState.IDLE)

    def notice(self, now: Optional[datetime] = None) -> Optional[Notice]:
        n = self._notice
        if n is None or not n.visible(now or self.clock()):
            return None
        return n

    def dismiss_notice(self) -> None:
        self._notice = None

    def _set_state(self, medication_id: str, day: date, state: ActionState) -> None:
        key = (str(medication_id), day)
        # IDLE is the default; only non-idle slots are kept
        if state == ActionState.IDLE:
            self._states.pop(key, None)
        else:
            self._states[key] = state

    def show_notice(self, level: NoticeLevel, message: str) -> None:
        self._notice = Notice(level=level, message=message, shown_at=self.clock(), duration_s=self.notice_s)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    # ---------------------------
    # Actions
    # ---------------------------
    def log_dose(self, medication_id: str, day: date, hhmm: str) -> Optional[str]:
        ctx = self.credentials.get_context()
        if ctx is None:
            self._set_state(medication_id, day, ActionState.FAILED)
            self.show_notice("ERROR", NOT_SIGNED_IN)
            return None

        try:
            scheduled = compose(day, hhmm)
        except ValueError as e:
            self._set_state(medication_id, day, ActionState.FAILED)
            self.show_notice("ERROR", str(e))
            return None

        self._set_state(medication_id, day, ActionState.LOGGING)
        try:
            log_id = self.client.create_log(
                ctx.token,
                medication_id=str(medication_id),
                scheduled_time=scheduled,
                taken_at=self.clock(),
                status=LogStatus.TAKEN,
                patient_id=ctx.patient_id,
            )
        except RecordStoreError as e:
            logger.warning("Logging dose for %s on %s failed: %s", medication_id, day, e)
            self._set_state(medication_id, day, ActionState.FAILED)
            self.show_notice("ERROR", "Could not log dose. Please try again.")
            return None

        self._last_log = LastLog(log_id=log_id, medication_id=str(medication_id), day=day)
        self._set_state(medication_id, day, ActionState.LOGGED)
        self.show_notice("SUCCESS", f"Dose logged for {hhmm}.")
        self._changed()
        return log_id

    def undo_last(self) -> bool:
        last = self._last_log
        if last is None:
            return False
        ctx = self.credentials.get_context()
        if ctx is None:
            return False

        self._set_state(last.medication_id, last.day, ActionState.UNDOING)
        try:
            self.client.delete_log(ctx.token, last.log_id)
        except RecordStoreError as e:
            # keep the slot so the user can retry
            logger.warning("Undo of log %s failed: %s", last.log_id, e)
            self._set_state(last.medication_id, last.day, ActionState.FAILED)
            self.show_notice("ERROR", "Could not undo the last dose.")
            return False

        self._last_log = None
        self._set_state(last.medication_id, last.day, ActionState.IDLE)
        self.show_notice("SUCCESS", "Last dose removed.")
        self._changed()
        return True
