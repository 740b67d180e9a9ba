"""File-backed brief store: one JSON array, rewritten on every mutation."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from sourcebrief.db.base import StoreCheck
from sourcebrief.models.brief import Brief
from sourcebrief.orchestrator.errors import StorageError

logger = logging.getLogger(__name__)


class JsonFileBriefStore:
    """Stores all briefs as a JSON array at *path*.

    Each mutation reads the whole file, changes it and writes it back through
    a temporary file and an atomic rename. The cycle holds a lock so
    concurrent requests in this process cannot lose each other's writes.
    """

    name: str = "file"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        if not self.path.exists():
            await asyncio.to_thread(self._write, [])

    async def close(self) -> None:
        pass

    # -- File I/O (runs in a worker thread) --

    def _read(self) -> list[Brief]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read {self.path}: {exc}") from exc
        if not isinstance(raw, list):
            raise StorageError(f"{self.path} does not contain a JSON array")
        try:
            return [Brief.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise StorageError(f"{self.path} contains an invalid brief") from exc

    def _write(self, briefs: list[Brief]) -> None:
        data = json.dumps([b.to_json() for b in briefs], indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        except OSError as exc:
            raise StorageError(f"Could not write {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
            os.replace(tmp, self.path)
        except OSError as exc:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise StorageError(f"Could not write {self.path}: {exc}") from exc

    async def _load(self) -> list[Brief]:
        return await asyncio.to_thread(self._read)

    async def _save(self, briefs: list[Brief]) -> None:
        await asyncio.to_thread(self._write, briefs)

    # -- Store operations --

    async def append(self, brief: Brief) -> None:
        async with self._lock:
            briefs = await self._load()
            if any(b.id == brief.id for b in briefs):
                raise StorageError(f"Brief {brief.id} already exists")
            briefs.append(brief)
            await self._save(briefs)

    async def get(self, brief_id: str) -> Brief | None:
        for brief in await self._load():
            if brief.id == brief_id:
                return brief
        return None

    async def list_recent(self, limit: int) -> list[Brief]:
        if limit <= 0:
            return []
        briefs = await self._load()
        return list(reversed(briefs[-limit:]))

    async def list_saved(self) -> list[Brief]:
        return [b for b in await self._load() if b.is_saved]

    async def mark_saved(self, brief_id: str, at: str | None = None) -> Brief | None:
        async with self._lock:
            briefs = await self._load()
            for i, brief in enumerate(briefs):
                if brief.id != brief_id:
                    continue
                if brief.is_saved:
                    return brief
                briefs[i] = brief.saved(at)
                await self._save(briefs)
                return briefs[i]
        return None

    async def count(self) -> int:
        return len(await self._load())

    async def check(self) -> StoreCheck:
        try:
            n = await self.count()
        except StorageError as exc:
            return StoreCheck("error", f"Storage error: {exc}")
        return StoreCheck("ok", f"File storage OK at {self.path}. {n} briefs stored.")
