from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends

from medtrack.core.settings import REMINDER_WINDOW_MINUTES
from medtrack.schemas.models import DueReminder
from medtrack.services.ingest import parse_medications
from medtrack.services.record_store import RecordStore, get_store
from medtrack.services.reminders import due_reminders
from medtrack.utils.dates import to_local_naive

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("/due", response_model=List[DueReminder])
def due(
    window_minutes: int = REMINDER_WINDOW_MINUTES,
    at: Optional[datetime] = None,
    patient_id: Optional[str] = None,
    store: RecordStore = Depends(get_store),
):
    meds = parse_medications(store.list_medications(patient_id))
    now = to_local_naive(at) if at else datetime.now()
    return due_reminders(meds, now, window_minutes=window_minutes)
