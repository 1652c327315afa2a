from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pytest

from medtrack.schemas.models import AdherenceLog, AdherenceStats, LogStatus, Medication
from medtrack.services.adherence import logs_in_window, summarize, to_stats
from medtrack.services.ingest import parse_logs, parse_medications
from medtrack.services.records_client import AuthContext, RecordStoreError, StaticCredentialProvider


def make_med(med_id: str = "m1", **kw: Any) -> Medication:
    data: Dict[str, Any] = {
        "_id": med_id,
        "name": "Metformin",
        "dosage": "500mg",
        "frequency": "once-daily",
        "startDate": "2024-01-01",
        "schedule": [{"time": "08:00", "days": ["Saturday"]}],
    }
    data.update(kw)
    return Medication.model_validate(data)


def make_log(log_id: str = "l1", medication: Any = "m1", **kw: Any) -> AdherenceLog:
    data: Dict[str, Any] = {"_id": log_id, "medication": medication, "status": "taken"}
    data.update(kw)
    return AdherenceLog.model_validate(data)


class FakeRecords:
    """In-memory stand-in for RecordsClient."""

    def __init__(self, meds: Optional[List[Dict[str, Any]]] = None):
        self.meds: List[Dict[str, Any]] = list(meds or [])
        self.logs: List[Dict[str, Any]] = []
        self.fail_create = False
        self.fail_delete = False
        self.fail_logs = False
        self.fail_stats = False
        self.calls: List[str] = []
        self._seq = 0

    def fetch_medications(self, token) -> List[Medication]:
        self.calls.append("meds")
        return parse_medications(self.meds)

    def fetch_logs(self, token, start=None, end=None) -> List[AdherenceLog]:
        self.calls.append("logs")
        if self.fail_logs:
            raise RecordStoreError("503 unavailable")
        if start is not None and end is not None:
            return logs_in_window(self.logs, start, end)
        return parse_logs(self.logs)

    def fetch_stats(self, token) -> AdherenceStats:
        self.calls.append("stats")
        if self.fail_stats:
            raise RecordStoreError("503 unavailable")
        return to_stats(summarize(parse_logs(self.logs)))

    def create_log(self, token, medication_id, scheduled_time, taken_at=None,
                   status=LogStatus.TAKEN, patient_id=None, notes=None) -> str:
        self.calls.append("create")
        if self.fail_create:
            raise RecordStoreError("500 boom")
        self._seq += 1
        log_id = f"log_{self._seq}"
        self.logs.append({
            "id": log_id,
            "medicationId": medication_id,
            "scheduledTime": scheduled_time.isoformat(),
            "takenAt": taken_at.isoformat() if taken_at else None,
            "status": status.value,
        })
        return log_id

    def delete_log(self, token, log_id) -> None:
        self.calls.append("delete")
        if self.fail_delete:
            raise RecordStoreError("500 boom")
        self.logs = [g for g in self.logs if g["id"] != log_id]


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def saturday() -> date:
    return date(2024, 6, 15)  # a Saturday


@pytest.fixture
def signed_in() -> StaticCredentialProvider:
    return StaticCredentialProvider(AuthContext(token="t0ken", patient_id="p1"))


@pytest.fixture
def signed_out() -> StaticCredentialProvider:
    return StaticCredentialProvider(None)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 6, 15, 9, 30))
