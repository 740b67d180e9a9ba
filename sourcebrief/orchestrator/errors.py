"""Error taxonomy for brief generation and storage.

Every failure that leaves the orchestrator is one of these classes. Each
carries a machine-readable ``kind``, the HTTP status the API maps it to,
and a short human-readable ``title``.
"""

from __future__ import annotations

from typing import Any


class BriefError(Exception):
    """Base exception for brief generation and storage errors."""

    kind: str = "internal_error"
    status_code: int = 500
    title: str = "Internal server error"
    retryable: bool = False

    def __init__(
        self, message: str, details: list[Any] | None = None, title: str | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if title:
            self.title = title

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.title,
            "kind": self.kind,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = [
                d.model_dump() if hasattr(d, "model_dump") else d for d in self.details
            ]
        return payload


class InvalidRequestError(BriefError):
    """The caller's input is malformed."""

    kind = "invalid_request"
    status_code = 400
    title = "Invalid request: urls must be an array of valid URLs"


class LlmNotConfiguredError(BriefError):
    """No LLM credential is set and the mock fallback is disabled."""

    kind = "llm_not_configured"
    status_code = 400
    title = "LLM not configured"


class TransportError(BriefError):
    """Network failure or timeout reaching the LLM API."""

    kind = "transport_failure"
    title = "Network error"
    retryable = True


class UpstreamAPIError(TransportError):
    """The LLM API answered with a non-2xx status."""

    kind = "upstream_api_error"
    title = "LLM API error"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class RateLimitedError(UpstreamAPIError):
    """The LLM API rejected the request with 429."""

    kind = "rate_limited"
    status_code = 429
    title = "Rate limit exceeded"


class MalformedModelOutputError(BriefError):
    """The model's output was not parseable JSON."""

    kind = "malformed_model_output"
    title = "LLM returned invalid JSON"
    retryable = True


class EmptyModelOutputError(MalformedModelOutputError):
    """The completion carried no content."""

    kind = "empty_model_output"
    title = "LLM returned empty response"


class SchemaViolationError(BriefError):
    """Parsed output did not match the brief schema."""

    kind = "schema_violation"
    title = "Brief generation failed schema validation"
    retryable = True


class NotFoundError(BriefError):
    kind = "not_found"
    status_code = 404
    title = "Brief not found"


class StorageError(BriefError):
    """The persistence medium failed."""

    kind = "storage_failure"
    title = "Storage error"
