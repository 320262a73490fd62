"""
Publication store adapters.

Each adapter keeps one row per program code and resolves conflicts on
``program_code``, so repeated or concurrent upserts converge.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import aiosqlite
import httpx

from .errors import StoreError
from .models import ProgramStatus

logger = logging.getLogger(__name__)


class PublicationStore(ABC):
    @abstractmethod
    async def select_all(self) -> List[ProgramStatus]:
        """Return every persisted program status row."""

    @abstractmethod
    async def upsert_one(self, record: ProgramStatus) -> None:
        """Upsert a single row keyed by program code."""

    @abstractmethod
    async def upsert_many(self, records: Sequence[ProgramStatus]) -> None:
        """Upsert a batch; any failure fails the whole call."""


class InMemoryPublicationStore(PublicationStore):
    def __init__(self, rows: Optional[Sequence[ProgramStatus]] = None):
        self._rows: Dict[str, ProgramStatus] = {}
        for row in rows or ():
            self._rows[row.program_code] = row

    async def select_all(self) -> List[ProgramStatus]:
        return [row.model_copy() for row in self._rows.values()]

    async def upsert_one(self, record: ProgramStatus) -> None:
        self._rows[record.program_code] = record.model_copy()

    async def upsert_many(self, records: Sequence[ProgramStatus]) -> None:
        for record in records:
            self._rows[record.program_code] = record.model_copy()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS program_status (
    program_code TEXT PRIMARY KEY,
    is_published INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT
)
"""

_UPSERT = """
INSERT INTO program_status (program_code, is_published, updated_at)
VALUES (?, ?, ?)
ON CONFLICT(program_code) DO UPDATE SET
    is_published = excluded.is_published,
    updated_at = excluded.updated_at
"""


def _row_params(record: ProgramStatus) -> tuple:
    updated = record.updated_at.isoformat() if record.updated_at else None
    return (record.program_code, int(record.is_published), updated)


class SqlitePublicationStore(PublicationStore):
    """Program status rows in a local SQLite file."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def select_all(self) -> List[ProgramStatus]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(_SCHEMA)
                async with db.execute(
                    "SELECT program_code, is_published, updated_at FROM program_status"
                ) as cursor:
                    rows = await cursor.fetchall()

            return [
                ProgramStatus(
                    program_code=code,
                    is_published=bool(published),
                    updated_at=datetime.fromisoformat(updated) if updated else None,
                )
                for code, published, updated in rows
            ]
        except (sqlite3.Error, ValueError) as exc:
            raise StoreError(f"Failed to fetch statuses: {exc}") from exc

    async def upsert_one(self, record: ProgramStatus) -> None:
        await self.upsert_many([record])

    async def upsert_many(self, records: Sequence[ProgramStatus]) -> None:
        if not records:
            return
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(_SCHEMA)
                await db.executemany(_UPSERT, [_row_params(r) for r in records])
                await db.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update {len(records)} program statuses: {exc}") from exc


class SupabasePublicationStore(PublicationStore):
    """Program status rows in a Supabase table, reached through PostgREST."""

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "program_status",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.key = key
        self.table = table
        self.timeout = timeout
        self._transport = transport

    def _endpoint(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1/{self.table}"

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def select_all(self) -> List[ProgramStatus]:
        params = {"select": "program_code,is_published,updated_at"}
        try:
            async with self._client() as client:
                response = await client.get(self._endpoint(), params=params, headers=self._headers())
                response.raise_for_status()
                rows = response.json()

            if not isinstance(rows, list):
                logger.warning("Supabase status query returned unexpected payload: %s", type(rows))
                raise StoreError("Failed to fetch statuses: unexpected payload")
            # ValidationError is a ValueError, as is a non-JSON body
            return [ProgramStatus.model_validate(row) for row in rows if isinstance(row, dict)]
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreError(f"Failed to fetch statuses: {exc}") from exc

    async def upsert_one(self, record: ProgramStatus) -> None:
        await self._upsert([record.model_dump(mode="json")])

    async def upsert_many(self, records: Sequence[ProgramStatus]) -> None:
        if not records:
            return
        await self._upsert([r.model_dump(mode="json") for r in records])

    async def _upsert(self, payload: List[Dict[str, Any]]) -> None:
        headers = self._headers("resolution=merge-duplicates,return=minimal")
        headers["Content-Type"] = "application/json"
        params = {"on_conflict": "program_code"}
        body: Any = payload[0] if len(payload) == 1 else payload
        try:
            async with self._client() as client:
                response = await client.post(self._endpoint(), params=params, json=body, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StoreError(f"Failed to update {len(payload)} program statuses: {exc}") from exc
