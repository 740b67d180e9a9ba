"""Source data model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from sourcebrief.models.types import Url


class BriefSource(BaseModel):
    """A submitted URL with optional display metadata."""

    model_config = ConfigDict(frozen=True)

    url: Url
    title: str | None = None
    snippet: str | None = None
