"""Brief generator: the pipeline from submitted URLs to a stored brief.

    Received -> Dispatched (LLM | mock) -> ParsedOutput -> Validated -> Persisted

Each step has one failure exit, raised as a specific ``BriefError``. Nothing
is retried; a failed request is simply reported.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sourcebrief.backends.base import BriefBackend
from sourcebrief.backends.groq import GroqBackend
from sourcebrief.backends.mock import MockBackend
from sourcebrief.config import Settings
from sourcebrief.db.base import BriefStore
from sourcebrief.models.brief import Brief
from sourcebrief.models.types import is_valid_url
from sourcebrief.orchestrator.errors import (
    BriefError,
    InvalidRequestError,
    LlmNotConfiguredError,
    MalformedModelOutputError,
    NotFoundError,
    SchemaViolationError,
    StorageError,
    TransportError,
)
from sourcebrief.orchestrator.validator import FieldViolation, Invalid, validate_brief

logger = logging.getLogger(__name__)


def select_backend(config: Settings) -> BriefBackend | None:
    """Groq when a key is configured, else the mock if fallback is allowed."""
    if config.llm_configured:
        return GroqBackend(config=config)
    if config.mock_fallback:
        return MockBackend()
    return None


def check_urls(urls: Any) -> list[str]:
    """Return the trimmed URL list, or raise ``InvalidRequestError``."""
    if not isinstance(urls, list):
        raise InvalidRequestError(
            "urls must be an array",
            [FieldViolation(path="urls", reason="Expected an array of URLs", code="list_type")],
        )
    if not urls:
        raise InvalidRequestError(
            "At least one URL is required",
            [FieldViolation(path="urls", reason="Array must contain at least 1 URL", code="too_short")],
        )

    cleaned: list[str] = []
    violations: list[FieldViolation] = []
    for i, url in enumerate(urls):
        candidate = url.strip() if isinstance(url, str) else url
        if not is_valid_url(candidate, web_only=True):
            violations.append(
                FieldViolation(path=f"urls.{i}", reason="Invalid url", code="url")
            )
        else:
            cleaned.append(candidate)
    if violations:
        raise InvalidRequestError(f"{len(violations)} invalid URL(s)", violations)
    return cleaned


def parse_model_output(raw_text: str) -> Any:
    """Parse the model's text as JSON, tolerating a Markdown code fence."""
    text = raw_text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedModelOutputError(
            "LLM output was not valid JSON",
            [FieldViolation(path="", reason=str(exc), code="json_invalid")],
        ) from exc


class BriefGenerator:
    """Generates, validates and stores briefs; also serves stored briefs.

    The store and backend are injected. ``backend`` is ``None`` when no LLM
    is configured and the mock fallback is disabled.
    """

    def __init__(self, store: BriefStore, backend: BriefBackend | None) -> None:
        self.store = store
        self.backend = backend

    async def generate(self, urls: Any) -> Brief:
        urls = check_urls(urls)
        logger.info("Received generate request for %d URLs", len(urls))

        if self.backend is None:
            raise LlmNotConfiguredError(
                "SOURCEBRIEF_GROQ_API_KEY is not set. Add your Groq API key to "
                ".env to enable brief generation."
            )

        logger.info("Dispatching to %s", self.backend.name)
        try:
            raw_text = await self.backend.draft(urls)
        except BriefError:
            raise
        except Exception as exc:
            logger.exception("Backend %s failed", self.backend.name)
            raise TransportError(f"{self.backend.name} backend failed") from exc

        candidate = parse_model_output(raw_text)
        logger.info("Parsed %s output (%d chars)", self.backend.name, len(raw_text))

        result = validate_brief(candidate)
        if isinstance(result, Invalid):
            logger.warning(
                "%s output failed validation with %d violation(s): %s",
                self.backend.name,
                len(result.violations),
                ", ".join(v.path or "<root>" for v in result.violations[:5]),
            )
            raise SchemaViolationError(
                "Generated brief did not match the brief schema", result.violations
            )
        brief = result.brief

        # A new brief is never saved; only the user can save it.
        if brief.saved_at is not None:
            logger.warning("Dropping saved_at from %s output", self.backend.name)
            brief = brief.model_copy(update={"saved_at": None})

        if await self._call_store(self.store.get, brief.id) is not None:
            logger.warning("%s reused existing brief id %s", self.backend.name, brief.id)
            raise SchemaViolationError(
                "Generated brief reuses the id of a stored brief",
                [
                    FieldViolation(
                        path="id",
                        reason=f"Duplicate id, brief {brief.id} already exists",
                        code="duplicate_id",
                    )
                ],
            )

        try:
            await self.store.append(brief)
        except BriefError:
            raise
        except Exception as exc:
            logger.exception("Failed to persist brief %s", brief.id)
            raise StorageError("Failed to persist brief") from exc

        logger.info(
            "Persisted brief %s (%d key points, %d conflicts)",
            brief.id,
            len(brief.key_points),
            len(brief.conflicts),
        )
        return brief

    async def get(self, brief_id: str) -> Brief:
        brief = await self._call_store(self.store.get, brief_id)
        if brief is None:
            raise NotFoundError(f"No brief with id {brief_id}")
        return brief

    async def list_recent(self, limit: int) -> list[Brief]:
        return await self._call_store(self.store.list_recent, limit)

    async def list_saved(self) -> list[Brief]:
        return await self._call_store(self.store.list_saved)

    async def mark_saved(self, brief_id: str) -> Brief:
        brief = await self._call_store(self.store.mark_saved, brief_id)
        if brief is None:
            raise NotFoundError(f"No brief with id {brief_id}")
        logger.info("Brief %s saved at %s", brief.id, brief.saved_at)
        return brief

    async def _call_store(self, method, *args):
        try:
            return await method(*args)
        except BriefError:
            raise
        except Exception as exc:
            logger.exception("Store %s failed", method.__name__)
            raise StorageError(f"Storage failure during {method.__name__}") from exc
