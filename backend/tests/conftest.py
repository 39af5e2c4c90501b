"""
Shared fixtures: in-memory record stores with call recording and
scripted failures, plus a no-wait sleep for retry tests.
"""

import pytest

from src.profiles.errors import StoreError, UniqueViolation
from src.profiles.schemas import Identity
from src.profiles.store import MemoryRecordStore


class RecordingStore(MemoryRecordStore):
    """MemoryRecordStore that records calls and can fail the first N calls."""

    def __init__(self, fail_times: int = 0, fail_ops=("get", "insert", "update")):
        super().__init__()
        self.calls = []
        self.fail_times = fail_times
        self.fail_ops = set(fail_ops)

    def _maybe_fail(self, op: str):
        if op in self.fail_ops and self.fail_times > 0:
            self.fail_times -= 1
            raise StoreError("connection reset by peer")

    async def get(self, table, key):
        self.calls.append(("get", table, key))
        self._maybe_fail("get")
        return await super().get(table, key)

    async def insert(self, table, record):
        self.calls.append(("insert", table, record.get("id")))
        self._maybe_fail("insert")
        return await super().insert(table, record)

    async def update(self, table, key, patch):
        self.calls.append(("update", table, key))
        self._maybe_fail("update")
        return await super().update(table, key, patch)

    def ops(self):
        return [c[0] for c in self.calls]


class RaceLosingStore(RecordingStore):
    """Simulates another caller inserting the same id between our lookup and insert."""

    def __init__(self, winner_row: dict):
        super().__init__()
        self.winner_row = winner_row

    async def insert(self, table, record):
        self.calls.append(("insert", table, record.get("id")))
        await MemoryRecordStore.insert(self, table, self.winner_row)
        raise UniqueViolation(table, record.get("id"))


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def identity():
    return Identity(id="u1", email="jo@x.com")


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float):
        sleeps.append(seconds)

    return _sleep
