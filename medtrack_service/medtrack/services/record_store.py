import json
import sqlite3
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from medtrack.db.db_config import get_sqlite_connection
from medtrack.services.ingest import parse_log
from medtrack.utils.dates import effective_date

_TABLES = ("medications", "adherence_logs")


def _new_id(prefix: str) -> str:
    return f"{prefix}_" + uuid.uuid4().hex[:12]


class RecordStore:
    """Medication and adherence-log documents, one JSON blob per row."""

    def __init__(self, conn: Optional[sqlite3.Connection] = None):
        self.conn = conn or get_sqlite_connection()
        for table in _TABLES:
            self.conn.execute(f"CREATE TABLE IF NOT EXISTS {table} (id TEXT PRIMARY KEY, doc TEXT NOT NULL)")
        self.conn.commit()

    # ---------------------------
    # generic doc helpers
    # ---------------------------
    def _all(self, table: str) -> List[Dict[str, Any]]:
        rows = self.conn.execute(f"SELECT id, doc FROM {table} ORDER BY rowid").fetchall()
        return [{"id": r["id"], **json.loads(r["doc"])} for r in rows]

    def _get(self, table: str, doc_id: str) -> Optional[Dict[str, Any]]:
        r = self.conn.execute(f"SELECT id, doc FROM {table} WHERE id = ?", (doc_id,)).fetchone()
        return {"id": r["id"], **json.loads(r["doc"])} if r else None

    def _insert(self, table: str, doc_id: str, doc: Dict[str, Any]) -> str:
        self.conn.execute(f"INSERT INTO {table} (id, doc) VALUES (?, ?)", (doc_id, json.dumps(doc)))
        self.conn.commit()
        return doc_id

    def _update(self, table: str, doc_id: str, updates: Dict[str, Any]) -> bool:
        current = self._get(table, doc_id)
        if current is None:
            return False
        current.pop("id", None)
        current.update({k: v for k, v in updates.items() if k not in ("id", "_id")})
        self.conn.execute(f"UPDATE {table} SET doc = ? WHERE id = ?", (json.dumps(current), doc_id))
        self.conn.commit()
        return True

    def _delete(self, table: str, doc_id: str) -> bool:
        cur = self.conn.execute(f"DELETE FROM {table} WHERE id = ?", (doc_id,))
        self.conn.commit()
        return cur.rowcount > 0

    # ---------------------------
    # medications
    # ---------------------------
    def list_medications(self, patient_id: Optional[str] = None) -> List[Dict[str, Any]]:
        meds = self._all("medications")
        if patient_id:
            meds = [m for m in meds if m.get("patientId") == patient_id]
        return meds

    def get_medication(self, med_id: str) -> Optional[Dict[str, Any]]:
        return self._get("medications", med_id)

    def create_medication(self, doc: Dict[str, Any]) -> str:
        doc = {
            **doc,
            "createdAt": datetime.now().isoformat(),
            "isActive": True,
            "reminderEnabled": True,
        }
        return self._insert("medications", _new_id("med"), doc)

    def update_medication(self, med_id: str, updates: Dict[str, Any]) -> bool:
        return self._update("medications", med_id, updates)

    def delete_medication(self, med_id: str) -> bool:
        return self._delete("medications", med_id)

    # ---------------------------
    # adherence logs
    # ---------------------------
    def list_logs(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        patient_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        out = []
        for doc in self._all("adherence_logs"):
            if patient_id and doc.get("patientId") != patient_id:
                continue
            if start is not None or end is not None:
                log = parse_log(doc)
                d = effective_date(log) if log else None
                if d is None:
                    continue
                if (start is not None and d < start) or (end is not None and d > end):
                    continue
            out.append(doc)
        return out

    def get_log(self, log_id: str) -> Optional[Dict[str, Any]]:
        return self._get("adherence_logs", log_id)

    def create_log(self, doc: Dict[str, Any]) -> str:
        doc = {**doc, "createdAt": datetime.now().isoformat()}
        return self._insert("adherence_logs", _new_id("log"), doc)

    def update_log(self, log_id: str, updates: Dict[str, Any]) -> bool:
        return self._update("adherence_logs", log_id, updates)

    def delete_log(self, log_id: str) -> bool:
        return self._delete("adherence_logs", log_id)


_STORE: Optional[RecordStore] = None


def get_store() -> RecordStore:
    """FastAPI dependency; tests override it with a store on a temp database."""
    global _STORE
    if _STORE is None:
        _STORE = RecordStore()
    return _STORE
