from datetime import date, datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from medtrack.services.frequency import Frequency, parse_frequency
from medtrack.utils.dates import normalize_hhmm, parse_datetime, parse_day

NoticeLevel = Literal["SUCCESS", "ERROR"]


class LogStatus(str, Enum):
    TAKEN = "taken"
    MISSED = "missed"
    SKIPPED = "skipped"
    PENDING = "pending"


class DoseSource(str, Enum):
    SCHEDULED = "scheduled"
    LOGGED = "logged"


class WireModel(BaseModel):
    # camelCase on the wire, snake_case in code; both accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _as_id(v: Any) -> Any:
    return str(v) if isinstance(v, (int, str)) else v


# ---------------------------
# Schedule model
# ---------------------------
class ScheduleEntry(WireModel):
    model_config = ConfigDict(frozen=True)

    time: str  # "HH:MM" local wall clock
    days: List[str] = Field(default_factory=list)

    @field_validator("time", mode="before")
    @classmethod
    def _time(cls, v: Any) -> str:
        t = normalize_hhmm(v)
        if t is None:
            raise ValueError(f"time must be HH:MM, got {v!r}")
        return t

    @field_validator("days", mode="before")
    @classmethod
    def _days(cls, v: Any) -> List[str]:
        if not v:
            return []
        return [str(d).strip().capitalize() for d in v if str(d).strip()]


class Medication(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    schedule: List[ScheduleEntry] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    instructions: str = ""
    patient_id: Optional[str] = None
    created_at: Optional[datetime] = None
    is_active: bool = True
    reminder_enabled: bool = True

    # synthetic medication built from an orphaned log
    is_placeholder: bool = False

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def _ids(cls, v: Any) -> Any:
        return _as_id(v)

    @field_validator("name", "dosage", "frequency", "instructions", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _day(cls, v: Any) -> Optional[date]:
        return parse_day(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def _created(cls, v: Any) -> Optional[datetime]:
        return parse_datetime(v)

    @field_validator("schedule", mode="before")
    @classmethod
    def _schedule(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        entries = []
        for raw in v:
            if isinstance(raw, ScheduleEntry):
                entries.append(raw)
                continue
            try:
                entries.append(ScheduleEntry.model_validate(raw))
            except ValidationError:
                continue  # one bad entry should not drop the whole medication
        return entries

    @property
    def frequency_kind(self) -> Frequency:
        return parse_frequency(self.frequency)


class MedicationRef(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    dosage: Optional[str] = None


class AdherenceLog(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    medication: MedicationRef
    status: LogStatus
    scheduled_time: Optional[datetime] = None
    taken_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    notes: Optional[str] = None
    patient_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _medication_ref(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw = data.get("medication")
        if raw is None:
            raw = data.get("medicationId", data.get("medication_id"))
        if isinstance(raw, MedicationRef):
            return data
        if isinstance(raw, dict):
            mid = raw.get("_id", raw.get("id"))
            data["medication"] = {
                "id": _as_id(mid),
                "name": raw.get("name"),
                "dosage": raw.get("dosage"),
            }
        elif raw is not None:
            data["medication"] = {
                "id": _as_id(raw),
                "name": data.get("medicationName"),
                "dosage": data.get("medicationDosage"),
            }
        return data

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def _ids(cls, v: Any) -> Any:
        return _as_id(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("scheduled_time", "taken_at", "created_at", mode="before")
    @classmethod
    def _ts(cls, v: Any) -> Optional[datetime]:
        return parse_datetime(v)

    @property
    def medication_id(self) -> str:
        return self.medication.id


# ---------------------------
# Record store requests / responses
# ---------------------------
class MedicationCreate(WireModel):
    patient_id: Optional[str] = None
    name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    schedule: Optional[List[ScheduleEntry]] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    instructions: Optional[str] = None
    prescribed_by: Optional[str] = None


class AdherenceLogCreate(WireModel):
    medication_id: Optional[str] = None
    scheduled_time: Optional[str] = None
    taken_at: Optional[str] = None
    status: Optional[LogStatus] = None
    notes: Optional[str] = None
    patient_id: Optional[str] = None


class Created(BaseModel):
    id: str
    message: str


class Message(BaseModel):
    message: str


class AdherenceStats(WireModel):
    total: int = 0
    taken: int = 0
    missed: int = 0
    adherence_rate: float = 0.0


class AdherenceSummary(WireModel):
    total: int = 0
    taken: int = 0
    missed: int = 0
    skipped: int = 0
    pending: int = 0
    rate: float = 0.0


# ---------------------------
# Calendar / dashboard views
# ---------------------------
class DoseInstance(WireModel):
    model_config = ConfigDict(frozen=True)

    medication: Medication
    day: date
    time: Optional[str] = None
    source: DoseSource
    entry: Optional[ScheduleEntry] = None
    log: Optional[AdherenceLog] = None
    can_log: bool = False
    ended: bool = False

    @property
    def confirmed(self) -> bool:
        return self.log is not None


class MarkInfo(WireModel):
    model_config = ConfigDict(frozen=True)

    has_activity: bool = False
    confirmed: bool = False
    is_past: bool = False
    selected: bool = False

    @property
    def tone(self) -> int:
        """Presentation priority: confirmed-past 4 > confirmed-future 3 > past 2 > future 1; unmarked 0."""
        if not (self.has_activity or self.confirmed):
            return 0
        if self.confirmed:
            return 4 if self.is_past else 3
        return 2 if self.is_past else 1


class UpcomingDose(WireModel):
    medication: Medication
    next_dose: datetime


class DashboardResponse(WireModel):
    recent: List[Medication]
    upcoming: List[UpcomingDose]
    past: List[Medication]
    stats: AdherenceSummary


class DueReminder(WireModel):
    medication_id: str
    medication_name: str
    dosage: str = ""
    time: str
    fire_at: datetime


class ReminderRecord(WireModel):
    handle: str
    medication_name: str
    fire_time: str
