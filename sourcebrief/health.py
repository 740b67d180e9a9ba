"""Service health snapshot: backend, storage and LLM configuration."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel

from sourcebrief.config import Settings
from sourcebrief.db.base import BriefStore
from sourcebrief.models.types import utc_now_iso

logger = logging.getLogger(__name__)

Status = Literal["ok", "warning", "error"]


class HealthCheck(BaseModel):
    status: Status
    message: str
    checked_at: str


class HealthReport(BaseModel):
    backend: HealthCheck
    database: HealthCheck
    llm: HealthCheck
    timestamp: str


class HealthReporter:
    """Read-only; safe to call as often as needed."""

    def __init__(self, store: BriefStore, config: Settings) -> None:
        self.store = store
        self.config = config

    async def check(self) -> HealthReport:
        now = utc_now_iso()
        backend = HealthCheck(status="ok", message="Backend is running", checked_at=now)

        try:
            result = await self.store.check()
            database = HealthCheck(status=result.status, message=result.message, checked_at=utc_now_iso())
        except Exception as exc:
            logger.warning("Store self-check raised: %s", exc)
            database = HealthCheck(status="error", message=f"Storage error: {exc}", checked_at=utc_now_iso())

        if self.config.llm_configured:
            llm = HealthCheck(status="ok", message="Groq API configured", checked_at=utc_now_iso())
        else:
            fallback = "using mock briefs" if self.config.mock_fallback else "LLM features unavailable"
            llm = HealthCheck(
                status="warning",
                message=f"No SOURCEBRIEF_GROQ_API_KEY set - {fallback}",
                checked_at=utc_now_iso(),
            )

        return HealthReport(backend=backend, database=database, llm=llm, timestamp=now)
