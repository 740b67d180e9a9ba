"""Constrained string types shared by the brief models."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, AnyUrl, HttpUrl, TypeAdapter, ValidationError
from pydantic_core import PydanticCustomError

UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
ISO_DATETIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"
)

_any_url = TypeAdapter(AnyUrl)
_http_url = TypeAdapter(HttpUrl)


def is_valid_url(value: object, *, web_only: bool = False) -> bool:
    """Return True if *value* is an absolute URL string.

    With ``web_only`` the scheme must be http or https and a host is required.
    The string is checked as given; it is never normalized.
    """
    if not isinstance(value, str) or not value or value != value.strip():
        return False
    try:
        (_http_url if web_only else _any_url).validate_python(value)
    except ValidationError:
        return False
    return True


def is_valid_uuid(value: object) -> bool:
    return isinstance(value, str) and bool(UUID_RE.match(value))


def is_iso_datetime(value: object) -> bool:
    if not isinstance(value, str) or not ISO_DATETIME_RE.match(value):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def utc_now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _check_url(value: str) -> str:
    if not is_valid_url(value):
        raise PydanticCustomError("url", "Input should be a valid URL")
    return value


def _check_uuid(value: str) -> str:
    if not is_valid_uuid(value):
        raise PydanticCustomError("uuid", "Input should be a valid UUID")
    return value


def _check_datetime(value: str) -> str:
    if not is_iso_datetime(value):
        raise PydanticCustomError("datetime", "Input should be an ISO-8601 datetime")
    return value


Url = Annotated[str, AfterValidator(_check_url)]
Uuid = Annotated[str, AfterValidator(_check_uuid)]
IsoDatetime = Annotated[str, AfterValidator(_check_datetime)]
