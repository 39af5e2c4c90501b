"""
Record stores for profile rows.

The bootstrapper only needs point lookups, inserts and updates keyed by id.
SupabaseRecordStore talks to PostgREST through supabase-py; MemoryRecordStore
keeps rows in process and enforces the same per-key uniqueness.
"""

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.profiles.errors import InvalidInput, NotFound, StoreError, UniqueViolation

logger = logging.getLogger(__name__)

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION_CODE = "23505"


class RecordStore(Protocol):
    async def get(self, table: str, key: str) -> dict: ...

    async def insert(self, table: str, record: dict) -> dict: ...

    async def update(self, table: str, key: str, patch: dict) -> dict: ...


def _to_store_error(exc: Exception, action: str, table: str) -> StoreError:
    if isinstance(exc, APIError):
        return StoreError(f"{action} on '{table}' failed: {exc.message}", code=exc.code)
    return StoreError(f"{action} on '{table}' failed: {exc}")


class SupabaseRecordStore:
    """RecordStore backed by a supabase-py client.

    An empty result set is the only "not found" signal; PostgREST error codes
    are never inspected for it.
    """

    def __init__(self, client: Client, key_column: str = "id"):
        self.client = client
        self.key_column = key_column

    async def get(self, table: str, key: str) -> dict:
        def _query():
            return (
                self.client.table(table)
                .select("*")
                .eq(self.key_column, key)
                .limit(1)
                .execute()
            )

        try:
            result = await asyncio.to_thread(_query)
        except (APIError, httpx.HTTPError) as e:
            raise _to_store_error(e, "select", table) from e

        if not result.data:
            raise NotFound(table, key)
        return result.data[0]

    async def insert(self, table: str, record: dict) -> dict:
        key = record.get(self.key_column)
        try:
            result = await asyncio.to_thread(
                lambda: self.client.table(table).insert(record).execute()
            )
        except APIError as e:
            if e.code == UNIQUE_VIOLATION_CODE:
                raise UniqueViolation(table, key) from e
            raise _to_store_error(e, "insert", table) from e
        except httpx.HTTPError as e:
            raise _to_store_error(e, "insert", table) from e

        if not result.data:
            # RLS can accept the write yet hide the returned row
            raise StoreError(f"insert on '{table}' returned no row for id '{key}'")
        return result.data[0]

    async def update(self, table: str, key: str, patch: dict) -> dict:
        if not patch:
            raise InvalidInput("Update patch is empty")

        def _query():
            return (
                self.client.table(table)
                .update(patch)
                .eq(self.key_column, key)
                .execute()
            )

        try:
            result = await asyncio.to_thread(_query)
        except (APIError, httpx.HTTPError) as e:
            raise _to_store_error(e, "update", table) from e

        if not result.data:
            raise NotFound(table, key)
        return result.data[0]


class MemoryRecordStore:
    """In-process RecordStore with a unique key per table."""

    def __init__(self, key_column: str = "id"):
        self.key_column = key_column
        self._tables: dict[str, dict[str, dict]] = {}

    def rows(self, table: str) -> list[dict]:
        return [copy.deepcopy(r) for r in self._tables.get(table, {}).values()]

    async def get(self, table: str, key: str) -> dict:
        row = self._tables.get(table, {}).get(key)
        if row is None:
            raise NotFound(table, key)
        return copy.deepcopy(row)

    async def insert(self, table: str, record: dict) -> dict:
        key = record.get(self.key_column)
        if not key:
            raise StoreError(f"insert on '{table}' is missing '{self.key_column}'")
        rows = self._tables.setdefault(table, {})
        if key in rows:
            raise UniqueViolation(table, key)

        now = datetime.now(timezone.utc).isoformat()
        row = copy.deepcopy(record)
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        rows[key] = row
        return copy.deepcopy(row)

    async def update(self, table: str, key: str, patch: dict) -> dict:
        if not patch:
            raise InvalidInput("Update patch is empty")
        row = self._tables.get(table, {}).get(key)
        if row is None:
            raise NotFound(table, key)
        row.update(copy.deepcopy(patch))
        row["updated_at"] = patch.get("updated_at") or datetime.now(timezone.utc).isoformat()
        return copy.deepcopy(row)
