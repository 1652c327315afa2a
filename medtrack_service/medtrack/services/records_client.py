import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol

import requests
from pydantic import ValidationError

from medtrack.core.settings import MEDTRACK_API_BASE, MEDTRACK_TIMEOUT_S
from medtrack.schemas.models import AdherenceLog, AdherenceStats, LogStatus, Medication
from medtrack.services.ingest import parse_logs, parse_medications

logger = logging.getLogger(__name__)


class RecordStoreError(RuntimeError):
    pass


# ---------------------------
# Credentials
# ---------------------------
@dataclass(frozen=True)
class AuthContext:
    token: str
    patient_id: Optional[str] = None


class CredentialProvider(Protocol):
    def get_context(self) -> Optional[AuthContext]:
        ...


class StaticCredentialProvider:
    def __init__(self, context: Optional[AuthContext] = None):
        self.context = context

    def get_context(self) -> Optional[AuthContext]:
        return self.context


class EnvCredentialProvider:
    """Reads the token at call time so a rotated config.env value is picked up."""

    def get_context(self) -> Optional[AuthContext]:
        token = os.getenv("MEDTRACK_API_TOKEN", "").strip()
        if not token:
            return None
        patient_id = os.getenv("MEDTRACK_PATIENT_ID", "").strip() or None
        return AuthContext(token=token, patient_id=patient_id)


# ---------------------------
# Client
# ---------------------------
class RecordsClient:
    def __init__(
        self,
        base_url: str = MEDTRACK_API_BASE,
        timeout_s: int = MEDTRACK_TIMEOUT_S,
        http: Any = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._http = http or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str],
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            r = self._http.request(
                method, url, headers=headers, params=params, json=payload, timeout=self.timeout_s
            )
        except requests.RequestException as e:
            raise RecordStoreError(f"{method} {path} failed: {e}") from e

        if r.status_code >= 400:
            raise RecordStoreError(f"{r.status_code} {r.text}")

        try:
            return r.json()
        except ValueError:
            return None  # empty/non-JSON body => normalized by callers

    def fetch_medications(self, token: Optional[str]) -> List[Medication]:
        return parse_medications(self._request("GET", "/medications", token))

    def fetch_logs(
        self,
        token: Optional[str],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[AdherenceLog]:
        params = {}
        if start is not None:
            params["start"] = start.isoformat()
        if end is not None:
            params["end"] = end.isoformat()
        return parse_logs(self._request("GET", "/adherence", token, params=params or None))

    def fetch_stats(self, token: Optional[str]) -> AdherenceStats:
        data = self._request("GET", "/adherence/stats", token)
        try:
            return AdherenceStats.model_validate(data if isinstance(data, dict) else {})
        except ValidationError:
            logger.warning("Malformed adherence stats payload, using zeros")
            return AdherenceStats()

    def create_log(
        self,
        token: Optional[str],
        medication_id: str,
        scheduled_time: datetime,
        taken_at: Optional[datetime] = None,
        status: LogStatus = LogStatus.TAKEN,
        patient_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "medicationId": medication_id,
            "scheduledTime": scheduled_time.isoformat(),
            "takenAt": taken_at.isoformat() if taken_at else None,
            "status": status.value,
        }
        if patient_id:
            payload["patientId"] = patient_id
        if notes:
            payload["notes"] = notes

        data = self._request("POST", "/adherence", token, payload=payload)
        log_id = (data or {}).get("id") if isinstance(data, dict) else None
        if not log_id:
            raise RecordStoreError(f"Log created without an id: {data!r}")
        return str(log_id)

    def delete_log(self, token: Optional[str], log_id: str) -> None:
        self._request("DELETE", f"/adherence/{log_id}", token)
