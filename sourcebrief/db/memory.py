"""In-memory brief store. Contents last for the life of the process."""

from __future__ import annotations

import asyncio
import logging

from sourcebrief.db.base import StoreCheck
from sourcebrief.models.brief import Brief
from sourcebrief.orchestrator.errors import StorageError

logger = logging.getLogger(__name__)


class MemoryBriefStore:
    name: str = "memory"

    def __init__(self) -> None:
        self._briefs: list[Brief] = []
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    def _index(self, brief_id: str) -> int | None:
        for i, brief in enumerate(self._briefs):
            if brief.id == brief_id:
                return i
        return None

    async def append(self, brief: Brief) -> None:
        async with self._lock:
            if self._index(brief.id) is not None:
                raise StorageError(f"Brief {brief.id} already exists")
            self._briefs.append(brief)

    async def get(self, brief_id: str) -> Brief | None:
        i = self._index(brief_id)
        return self._briefs[i] if i is not None else None

    async def list_recent(self, limit: int) -> list[Brief]:
        if limit <= 0:
            return []
        return list(reversed(self._briefs[-limit:]))

    async def list_saved(self) -> list[Brief]:
        return [b for b in self._briefs if b.is_saved]

    async def mark_saved(self, brief_id: str, at: str | None = None) -> Brief | None:
        async with self._lock:
            i = self._index(brief_id)
            if i is None:
                return None
            self._briefs[i] = self._briefs[i].saved(at)
            return self._briefs[i]

    async def count(self) -> int:
        return len(self._briefs)

    async def check(self) -> StoreCheck:
        return StoreCheck("ok", f"In-memory storage OK. {len(self._briefs)} briefs stored.")
