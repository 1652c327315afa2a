from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from medtrack.schemas.models import DashboardResponse, DoseInstance, MarkInfo
from medtrack.services.calendar_marks import marks_for_window
from medtrack.services.dashboard import build_dashboard
from medtrack.services.day_resolver import doses_for_date
from medtrack.services.ingest import parse_logs, parse_medications
from medtrack.services.record_store import RecordStore, get_store

router = APIRouter(tags=["calendar"])


def _load(store: RecordStore, patient_id: Optional[str]):
    meds = parse_medications(store.list_medications(patient_id))
    logs = parse_logs(store.list_logs(patient_id=patient_id))
    return meds, logs


@router.get("/calendar/day", response_model=List[DoseInstance])
def calendar_day(
    day: date = Query(..., alias="date"),
    patient_id: Optional[str] = None,
    store: RecordStore = Depends(get_store),
):
    meds, logs = _load(store, patient_id)
    return doses_for_date(day, meds, logs)


@router.get("/calendar/marks", response_model=Dict[str, MarkInfo])
def calendar_marks(
    center: date,
    today: Optional[date] = None,
    patient_id: Optional[str] = None,
    store: RecordStore = Depends(get_store),
):
    meds, logs = _load(store, patient_id)
    return marks_for_window(center, meds, logs, today=today)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(patient_id: Optional[str] = None, store: RecordStore = Depends(get_store)):
    meds, logs = _load(store, patient_id)
    return build_dashboard(meds, logs, datetime.now())
