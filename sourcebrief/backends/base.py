"""Base protocol for brief generation backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BriefBackend(Protocol):
    """Interface that brief generators must implement.

    A backend turns a list of URLs into the raw JSON text of a brief. It
    does not parse or validate; that is the orchestrator's job.
    """

    name: str

    async def draft(self, urls: list[str]) -> str:
        """Produce the raw JSON text of a brief for *urls*."""
        ...
