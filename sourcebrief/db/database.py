"""SQLite brief store via aiosqlite."""

from __future__ import annotations

import asyncio
import json
import logging

import aiosqlite
from pydantic import ValidationError

from sourcebrief.db.base import StoreCheck
from sourcebrief.models.brief import Brief
from sourcebrief.orchestrator.errors import StorageError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS briefs (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    brief_json TEXT NOT NULL,
    created_at TEXT NOT NULL,
    saved_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_briefs_saved ON briefs (saved_at);
"""


class SqliteBriefStore:
    """Async SQLite store for generated briefs.

    Rows keep the full brief as JSON; ``seq`` records insertion order.
    """

    name: str = "sqlite"

    def __init__(self, path: str = "sourcebrief.db") -> None:
        self.path = path
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageError("Database not connected; call connect() first")
        return self._db

    def _to_brief(self, row: aiosqlite.Row) -> Brief:
        try:
            return Brief.model_validate(json.loads(row["brief_json"]))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StorageError(f"Stored brief {row['id']} is corrupt") from exc

    # -- Briefs --

    async def append(self, brief: Brief) -> None:
        async with self._lock:
            try:
                await self.db.execute(
                    "INSERT INTO briefs (id, brief_json, created_at, saved_at) VALUES (?, ?, ?, ?)",
                    (brief.id, json.dumps(brief.to_json()), brief.created_at, brief.saved_at),
                )
                await self.db.commit()
            except aiosqlite.IntegrityError as exc:
                raise StorageError(f"Brief {brief.id} already exists") from exc
            except aiosqlite.Error as exc:
                raise StorageError(f"Could not store brief {brief.id}: {exc}") from exc

    async def get(self, brief_id: str) -> Brief | None:
        cursor = await self.db.execute("SELECT * FROM briefs WHERE id = ?", (brief_id,))
        row = await cursor.fetchone()
        return self._to_brief(row) if row else None

    async def list_recent(self, limit: int) -> list[Brief]:
        if limit <= 0:
            return []
        cursor = await self.db.execute(
            "SELECT * FROM briefs ORDER BY seq DESC LIMIT ?", (limit,)
        )
        rows = await cursor.fetchall()
        return [self._to_brief(r) for r in rows]

    async def list_saved(self) -> list[Brief]:
        cursor = await self.db.execute(
            "SELECT * FROM briefs WHERE saved_at IS NOT NULL ORDER BY seq"
        )
        rows = await cursor.fetchall()
        return [self._to_brief(r) for r in rows]

    async def mark_saved(self, brief_id: str, at: str | None = None) -> Brief | None:
        async with self._lock:
            brief = await self.get(brief_id)
            if brief is None or brief.is_saved:
                return brief
            brief = brief.saved(at)
            await self.db.execute(
                "UPDATE briefs SET brief_json = ?, saved_at = ? WHERE id = ? AND saved_at IS NULL",
                (json.dumps(brief.to_json()), brief.saved_at, brief_id),
            )
            await self.db.commit()
            return brief

    async def count(self) -> int:
        cursor = await self.db.execute("SELECT COUNT(*) FROM briefs")
        row = await cursor.fetchone()
        return row[0]

    async def check(self) -> StoreCheck:
        try:
            n = await self.count()
        except (aiosqlite.Error, StorageError) as exc:
            return StoreCheck("error", f"Storage error: {exc}")
        return StoreCheck("ok", f"SQLite storage OK at {self.path}. {n} briefs stored.")
