"""
submission_store.py – lifecycle and change feed for book submissions.

The store is the only writer of the submissions collection. Every committed
create / status update / delete is followed by a push of the full, newest
first collection to every active subscriber.
"""


import threading
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ValidationError

from arm_submissions.models.submission_schema import (
    BookSubmission,
    SubmissionCreate,
    SubmissionStatus,
    WRITABLE_FIELDS,
)
from arm_submissions.services.memory_backend import MemoryBackend
from arm_submissions.services.supabase_client import SupabaseBackend, supabase
from arm_submissions.utils import config
from arm_submissions.utils.logger import get_logger


logger = get_logger("submission-store")


Snapshot = list[BookSubmission]
SnapshotCallback = Callable[[Snapshot], None]


ALLOWED_TRANSITIONS = {
    SubmissionStatus.PENDING: {SubmissionStatus.RECEIVED, SubmissionStatus.REJECTED},
}


class StoreError(Exception):
    pass


class StoreUnavailable(StoreError):
    """The backing document store could not complete the call."""


class SubmissionNotFound(StoreError):
    pass


class InvalidTransition(StoreError):
    def __init__(self, current: SubmissionStatus, requested: SubmissionStatus):
        super().__init__(f"{current.value} -> {requested.value} is not allowed")
        self.current = current
        self.requested = requested


class SubmissionInvalid(StoreError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Subscription:
    def __init__(self, store: "SubmissionStore", callback: SnapshotCallback):
        self._store = store
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._store._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()


class SubmissionStore:
    def __init__(
        self,
        backend,
        clock: Optional[Callable[[], datetime]] = None,
        strict_transitions: bool = False,
        validate_writes: bool = False,
    ):
        self.backend = backend
        self._clock = clock or utc_now
        self.strict_transitions = strict_transitions
        self.validate_writes = validate_writes
        self._subscribers: list[Subscription] = []
        self._lock = threading.Lock()
        # spans snapshot read and delivery so snapshots arrive in commit order
        self._publish_lock = threading.RLock()

    # ---------------------------------------------------------------- writes

    def create(self, data: Mapping[str, Any] | BaseModel) -> str:
        row = self._writable_row(data)
        if self.validate_writes:
            try:
                row = SubmissionCreate.model_validate(row).model_dump(mode="json")
            except ValidationError as e:
                errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
                raise SubmissionInvalid(errors) from e
        row["status"] = SubmissionStatus.PENDING.value
        row["submitted_at"] = format_timestamp(self._clock())
        row["received_at"] = None
        try:
            sub_id = self.backend.insert(row)
        except Exception as e:
            logger.error("Create failed: %s", e)
            raise StoreUnavailable("create failed") from e
        logger.info("Submission %s created (%d book(s))", sub_id, len(row.get("books") or []))
        self._publish()
        return sub_id

    def update_status(self, sub_id: str, new_status: SubmissionStatus | str) -> None:
        status = SubmissionStatus(new_status)
        if self.strict_transitions:
            current = self.get_by_id(sub_id)
            if current is None:
                raise SubmissionNotFound(sub_id)
            if status not in ALLOWED_TRANSITIONS.get(current.status, set()):
                raise InvalidTransition(current.status, status)
        patch = {
            "status": status.value,
            "received_at": format_timestamp(self._clock()) if status is SubmissionStatus.RECEIVED else None,
        }
        try:
            matched = self.backend.update(sub_id, patch)
        except Exception as e:
            logger.error("Status update failed for %s: %s", sub_id, e)
            raise StoreUnavailable("update failed") from e
        if not matched:
            raise SubmissionNotFound(sub_id)
        logger.info("Submission %s -> %s", sub_id, status.value)
        self._publish()

    def delete(self, sub_id: str) -> None:
        try:
            self.backend.delete(sub_id)
        except Exception as e:
            logger.error("Delete failed for %s: %s", sub_id, e)
            raise StoreUnavailable("delete failed") from e
        logger.info("Submission %s deleted", sub_id)
        self._publish()

    # ----------------------------------------------------------------- reads

    def get_by_id(self, sub_id: str) -> Optional[BookSubmission]:
        try:
            row = self.backend.get(sub_id)
        except Exception as e:
            logger.error("Lookup failed for %s: %s", sub_id, e)
            raise StoreUnavailable("lookup failed") from e
        if row is None:
            return None
        try:
            return BookSubmission.model_validate(row)
        except ValidationError as e:
            logger.warning("Treating malformed submission %s as missing: %s", sub_id, e)
            return None

    def list_all(self) -> Snapshot:
        try:
            rows = self.backend.list_all()
        except Exception as e:
            logger.error("Listing failed: %s", e)
            raise StoreUnavailable("list failed") from e
        records = []
        for row in rows:
            try:
                records.append(BookSubmission.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping malformed submission %s: %s", row.get("id"), e)
        return records

    # ----------------------------------------------------------- change feed

    def subscribe_all(self, callback: SnapshotCallback) -> Subscription:
        """Deliver the current collection now and after every committed write."""
        with self._publish_lock:
            snapshot = self.list_all()
            sub = Subscription(self, callback)
            with self._lock:
                self._subscribers.append(sub)
            self._deliver(sub, snapshot)
        return sub

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    def _publish(self) -> None:
        with self._publish_lock:
            with self._lock:
                targets = list(self._subscribers)
            if not targets:
                return
            try:
                snapshot = self.list_all()
            except StoreUnavailable:
                logger.warning("Change committed but snapshot refresh failed; subscribers not notified")
                return
            for sub in targets:
                self._deliver(sub, snapshot)

    def _deliver(self, sub: Subscription, snapshot: Snapshot) -> None:
        if not sub.active:
            return
        try:
            sub.callback([r.model_copy(deep=True) for r in snapshot])
        except Exception:
            logger.exception("Subscriber callback failed")

    # --------------------------------------------------------------- helpers

    @staticmethod
    def _writable_row(data: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json")
        row = {k: v for k, v in data.items() if k in WRITABLE_FIELDS}
        books = row.get("books")
        if books is not None:
            if not isinstance(books, (list, tuple)):
                raise SubmissionInvalid(["books: must be a list"])
            rows = []
            for i, b in enumerate(books):
                if isinstance(b, BaseModel):
                    rows.append(b.model_dump(mode="json"))
                elif isinstance(b, Mapping):
                    rows.append(dict(b))
                else:
                    raise SubmissionInvalid([f"books.{i}: must be an object"])
            row["books"] = rows
        return row


def build_store(backend=None) -> SubmissionStore:
    if backend is None:
        client = supabase()
        backend = SupabaseBackend(client) if client else MemoryBackend()
    logger.info("Submission store using %s backend", getattr(backend, "name", type(backend).__name__))
    return SubmissionStore(
        backend,
        strict_transitions=config.STRICT_TRANSITIONS,
        validate_writes=config.VALIDATE_WRITES,
    )
