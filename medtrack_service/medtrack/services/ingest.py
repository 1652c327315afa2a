import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from medtrack.schemas.models import AdherenceLog, Medication

logger = logging.getLogger(__name__)


def normalize_to_array(raw: Any) -> List[Any]:
    """Accept a bare list, {data: []}, {items: []}, {logs: []} or a bare object."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for key in ("data", "items", "logs"):
            if isinstance(raw.get(key), list):
                return raw[key]
        return [raw] if raw else []
    return []


def parse_medication(raw: Any) -> Optional[Medication]:
    if isinstance(raw, Medication):
        return raw
    try:
        return Medication.model_validate(raw)
    except ValidationError as e:
        logger.warning("Dropping malformed medication record: %s", e.errors()[:1])
        return None


def parse_log(raw: Any) -> Optional[AdherenceLog]:
    if isinstance(raw, AdherenceLog):
        return raw
    try:
        return AdherenceLog.model_validate(raw)
    except ValidationError as e:
        logger.warning("Dropping malformed adherence log: %s", e.errors()[:1])
        return None


def parse_medications(payload: Any) -> List[Medication]:
    return [m for m in (parse_medication(r) for r in normalize_to_array(payload)) if m is not None]


def parse_logs(payload: Any) -> List[AdherenceLog]:
    return [g for g in (parse_log(r) for r in normalize_to_array(payload)) if g is not None]
