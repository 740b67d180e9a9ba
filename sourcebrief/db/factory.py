"""Construct the configured brief store."""

from __future__ import annotations

from sourcebrief.config import Settings
from sourcebrief.db.base import BriefStore
from sourcebrief.db.database import SqliteBriefStore
from sourcebrief.db.json_file import JsonFileBriefStore
from sourcebrief.db.memory import MemoryBriefStore


def create_store(config: Settings) -> BriefStore:
    if config.store_backend == "file":
        return JsonFileBriefStore(config.store_path)
    if config.store_backend == "sqlite":
        return SqliteBriefStore(config.database_path)
    return MemoryBriefStore()
