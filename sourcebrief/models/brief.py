"""Research brief data model."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from sourcebrief.models.citation import Citation, Claim
from sourcebrief.models.source import BriefSource
from sourcebrief.models.types import IsoDatetime, Uuid, utc_now_iso


class Credibility(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class KeyPoint(BaseModel):
    """A finding from the sources, with citations and a credibility rating."""

    model_config = ConfigDict(frozen=True)

    id: Uuid
    text: str
    sources: list[Citation]
    credibility: Credibility = Credibility.MEDIUM


class Conflict(BaseModel):
    """Two sources asserting opposing things."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Uuid
    claim_a: Claim = Field(alias="claimA")
    claim_b: Claim = Field(alias="claimB")


class VerifyItem(BaseModel):
    """A claim the reader should check. ``checked`` is client-side state only."""

    model_config = ConfigDict(frozen=True)

    id: Uuid
    text: str
    source: str | None = None
    checked: StrictBool = False


class Brief(BaseModel):
    """A synthesized research brief.

    Briefs are immutable; the only state change is being saved, which
    produces a copy with ``saved_at`` set (see :meth:`saved`).
    """

    model_config = ConfigDict(frozen=True)

    id: Uuid
    title: str
    summary: str
    key_points: list[KeyPoint]
    conflicts: list[Conflict]
    what_to_verify: list[VerifyItem]
    sources: list[BriefSource]
    created_at: IsoDatetime
    saved_at: IsoDatetime | None = None

    @property
    def is_saved(self) -> bool:
        return self.saved_at is not None

    def saved(self, at: str | None = None) -> Brief:
        """Return this brief marked as saved. First write wins."""
        if self.saved_at is not None:
            return self
        return self.model_copy(update={"saved_at": at or utc_now_iso()})

    def to_json(self) -> dict[str, Any]:
        """Wire representation: camelCase conflict keys, unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def metadata(self) -> BriefMetadata:
        return BriefMetadata(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            source_count=len(self.sources),
        )


class BriefMetadata(BaseModel):
    """Compact listing view of a brief."""

    id: str
    title: str
    created_at: str
    source_count: int
