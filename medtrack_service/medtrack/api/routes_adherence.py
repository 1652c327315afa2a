from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from medtrack.core.settings import SUMMARY_WINDOW_DAYS
from medtrack.schemas.models import AdherenceLogCreate, AdherenceStats, AdherenceSummary, Created, Message
from medtrack.services.adherence import summarize, summarize_recent, to_stats
from medtrack.services.ingest import parse_logs
from medtrack.services.record_store import RecordStore, get_store
from medtrack.services.security import verify_api_token
from medtrack.utils.dates import parse_datetime

router = APIRouter(prefix="/adherence", tags=["adherence"])


@router.post("", response_model=Created, status_code=201)
def log_adherence(
    req: AdherenceLogCreate,
    store: RecordStore = Depends(get_store),
    _=Depends(verify_api_token),
):
    if not req.medication_id or not req.scheduled_time or req.status is None:
        raise HTTPException(status_code=400, detail="Missing required fields")
    if parse_datetime(req.scheduled_time) is None:
        raise HTTPException(status_code=400, detail="scheduledTime is not a valid timestamp")

    doc = req.model_dump(by_alias=True, mode="json")
    doc["takenAt"] = req.taken_at or None
    log_id = store.create_log(doc)
    return Created(id=log_id, message="Adherence logged successfully")


@router.get("")
def list_logs(
    start: Optional[date] = None,
    end: Optional[date] = None,
    patient_id: Optional[str] = None,
    store: RecordStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    return store.list_logs(start=start, end=end, patient_id=patient_id)


@router.get("/stats", response_model=AdherenceStats)
def stats(patient_id: Optional[str] = None, store: RecordStore = Depends(get_store)):
    s = to_stats(summarize(parse_logs(store.list_logs(patient_id=patient_id))))
    return s.model_copy(update={"adherence_rate": round(s.adherence_rate, 3)})


@router.get("/summary", response_model=AdherenceSummary)
def summary(
    days: int = SUMMARY_WINDOW_DAYS,
    patient_id: Optional[str] = None,
    store: RecordStore = Depends(get_store),
):
    logs = parse_logs(store.list_logs(patient_id=patient_id))
    s = summarize_recent(logs, date.today(), days=days)
    return s.model_copy(update={"rate": round(s.rate, 3)})


@router.put("/{log_id}", response_model=Message)
def update_log(
    log_id: str,
    updates: Dict[str, Any] = Body(...),
    store: RecordStore = Depends(get_store),
    _=Depends(verify_api_token),
):
    if not store.update_log(log_id, updates):
        raise HTTPException(status_code=404, detail="Adherence log not found")
    return Message(message="Adherence log updated successfully")


@router.delete("/{log_id}", response_model=Message)
def delete_log(
    log_id: str,
    store: RecordStore = Depends(get_store),
    _=Depends(verify_api_token),
):
    if not store.delete_log(log_id):
        raise HTTPException(status_code=404, detail="Adherence log not found")
    return Message(message="Adherence log deleted successfully")
