"""Test doubles shared across the suite."""
import threading
import time
from datetime import datetime, timedelta, timezone

from arm_submissions.services.memory_backend import MemoryBackend


ADMIN_TOKEN = "test-admin-token"


class FakeClock:
    """Each call advances one second so timestamps are strictly ordered."""

    def __init__(self, start=datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


class FailingBackend(MemoryBackend):
    """Memory backend whose selected operations raise like a dropped connection."""

    def __init__(self, fail_on=("insert", "update", "delete", "get", "list_all")):
        super().__init__()
        self.fail_on = set(fail_on)

    def _maybe_fail(self, op):
        if op in self.fail_on:
            raise ConnectionError(f"{op}: connection reset")

    def insert(self, row):
        self._maybe_fail("insert")
        return super().insert(row)

    def update(self, sub_id, patch):
        self._maybe_fail("update")
        return super().update(sub_id, patch)

    def delete(self, sub_id):
        self._maybe_fail("delete")
        return super().delete(sub_id)

    def get(self, sub_id):
        self._maybe_fail("get")
        return super().get(sub_id)

    def list_all(self):
        self._maybe_fail("list_all")
        return super().list_all()




class StallingBackend(MemoryBackend):
    """Memory backend whose next listing pauses after reading its rows."""

    def __init__(self, pause=0.3):
        super().__init__()
        self.pause = pause
        self.stall_next = False
        self.stalled = threading.Event()

    def list_all(self):
        rows = super().list_all()
        if self.stall_next:
            self.stall_next = False
            self.stalled.set()
            time.sleep(self.pause)
        return rows
