from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from medtrack.schemas.models import Created, MedicationCreate, Message
from medtrack.services.record_store import RecordStore, get_store
from medtrack.services.security import verify_api_token

router = APIRouter(prefix="/medications", tags=["medications"])

_REQUIRED = ("patient_id", "name", "dosage", "frequency", "schedule", "start_date")


@router.post("", response_model=Created, status_code=201)
def create_medication(
    req: MedicationCreate,
    store: RecordStore = Depends(get_store),
    _=Depends(verify_api_token),
):
    if any(getattr(req, f) in (None, "", []) for f in _REQUIRED):
        raise HTTPException(status_code=400, detail="Missing required fields")

    med_id = store.create_medication(req.model_dump(by_alias=True, exclude_none=True))
    return Created(id=med_id, message="Medication created successfully")


@router.get("")
def list_medications(
    patient_id: Optional[str] = None,
    store: RecordStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    return store.list_medications(patient_id)


@router.put("/{med_id}", response_model=Message)
def update_medication(
    med_id: str,
    updates: Dict[str, Any] = Body(...),
    store: RecordStore = Depends(get_store),
    _=Depends(verify_api_token),
):
    if not store.update_medication(med_id, updates):
        raise HTTPException(status_code=404, detail="Medication not found")
    return Message(message="Medication updated successfully")


@router.delete("/{med_id}", response_model=Message)
def delete_medication(
    med_id: str,
    store: RecordStore = Depends(get_store),
    _=Depends(verify_api_token),
):
    if not store.delete_medication(med_id):
        raise HTTPException(status_code=404, detail="Medication not found")
    return Message(message="Medication deleted successfully")
