"""Citation and claim models: the provenance attached to brief content."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from sourcebrief.models.types import Url


class Citation(BaseModel):
    """A quoted snippet supporting a key point, with the URL it came from."""

    model_config = ConfigDict(frozen=True)

    url: Url
    snippet: str


class Claim(BaseModel):
    """One side of a conflict: an assertion and the URL making it."""

    model_config = ConfigDict(frozen=True)

    text: str
    url: Url
