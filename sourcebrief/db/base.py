"""Storage protocol for briefs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

from sourcebrief.models.brief import Brief


@dataclass
class StoreCheck:
    """Result of a store self-check."""

    status: Literal["ok", "error"]
    message: str


@runtime_checkable
class BriefStore(Protocol):
    """Keyed, insertion-ordered collection of briefs.

    Implementations must make ``append`` and ``mark_saved`` atomic with
    respect to concurrent callers, and make appended briefs immediately
    visible to ``get`` and ``list_recent``.
    """

    name: str

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def append(self, brief: Brief) -> None:
        """Add a new brief. Raises ``StorageError`` if the id already exists."""
        ...

    async def get(self, brief_id: str) -> Brief | None: ...

    async def list_recent(self, limit: int) -> list[Brief]:
        """The *limit* most recently appended briefs, newest first."""
        ...

    async def list_saved(self) -> list[Brief]: ...

    async def mark_saved(self, brief_id: str, at: str | None = None) -> Brief | None:
        """Set ``saved_at`` if unset and return the brief; ``None`` if unknown."""
        ...

    async def count(self) -> int: ...

    async def check(self) -> StoreCheck: ...
