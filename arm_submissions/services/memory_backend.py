import json
import threading
import uuid
from typing import Any, Optional

from arm_submissions.utils.logger import get_logger


logger = get_logger("memory-backend")


class MemoryBackend:
    """In-process stand-in for the hosted submissions table.

    Rows are kept as JSON-decoded copies, so callers never share
    mutable state with the stored documents.
    """

    name = "memory"

    def __init__(self):
        self._rows: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _copy(row: dict[str, Any]) -> dict[str, Any]:
        return json.loads(json.dumps(row))

    def insert(self, row: dict[str, Any]) -> str:
        doc = self._copy(row)
        with self._lock:
            sub_id = uuid.uuid4().hex
            while sub_id in self._rows:
                sub_id = uuid.uuid4().hex
            doc["id"] = sub_id
            self._rows[sub_id] = doc
        return sub_id

    def update(self, sub_id: str, patch: dict[str, Any]) -> bool:
        patch = self._copy(patch)
        with self._lock:
            doc = self._rows.get(sub_id)
            if doc is None:
                return False
            doc.update(patch)
            return True

    def delete(self, sub_id: str) -> None:
        with self._lock:
            self._rows.pop(sub_id, None)

    def get(self, sub_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            doc = self._rows.get(sub_id)
            return self._copy(doc) if doc is not None else None

    def list_all(self) -> list[dict[str, Any]]:
        with self._lock:
            docs = [self._copy(d) for d in self._rows.values()]
        return sorted(docs, key=lambda d: d.get("submitted_at") or "", reverse=True)

    def ping(self) -> bool:
        return True
