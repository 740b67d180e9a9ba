"""Brief schema validation.

LLM output is untrusted input. :func:`validate_brief` checks an arbitrary
parsed JSON value against the :class:`Brief` model and returns either the
typed brief or every field-level violation it could find.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from sourcebrief.models.brief import Brief

# Collections whose items carry an ``id`` that must be unique brief-wide
ID_COLLECTIONS = ("key_points", "conflicts", "what_to_verify")


class FieldViolation(BaseModel):
    """One validation failure, addressed by a dotted path into the input."""

    path: str
    reason: str
    code: str


@dataclass(frozen=True)
class Valid:
    brief: Brief
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Invalid:
    violations: list[FieldViolation]
    ok: bool = field(default=False, init=False)


BriefValidation = Union[Valid, Invalid]


def format_path(loc: tuple[Any, ...] | list[Any]) -> str:
    return ".".join(str(part) for part in loc)


def violations_from_error(exc: ValidationError) -> list[FieldViolation]:
    """Convert a pydantic ``ValidationError`` into field violations."""
    return [
        FieldViolation(path=format_path(err["loc"]), reason=err["msg"], code=err["type"])
        for err in exc.errors(include_url=False)
    ]


def find_duplicate_ids(candidate: dict[str, Any]) -> list[FieldViolation]:
    """Report every id reused within a brief, at each repeated occurrence."""
    seen: dict[str, str] = {}
    violations: list[FieldViolation] = []

    def visit(value: Any, path: str) -> None:
        if not isinstance(value, str):
            return
        if value in seen:
            violations.append(
                FieldViolation(
                    path=path,
                    reason=f"Duplicate id, already used at {seen[value]}",
                    code="duplicate_id",
                )
            )
        else:
            seen[value] = path

    visit(candidate.get("id"), "id")
    for name in ID_COLLECTIONS:
        items = candidate.get(name)
        if not isinstance(items, list):
            continue
        for i, item in enumerate(items):
            if isinstance(item, dict):
                visit(item.get("id"), f"{name}.{i}.id")
    return violations


def validate_brief(candidate: Any) -> BriefValidation:
    """Validate *candidate* against the brief schema. No side effects."""
    if not isinstance(candidate, dict):
        return Invalid(
            [
                FieldViolation(
                    path="",
                    reason=f"Expected a JSON object, got {type(candidate).__name__}",
                    code="model_type",
                )
            ]
        )

    violations: list[FieldViolation] = []
    brief: Brief | None = None
    try:
        brief = Brief.model_validate(candidate)
    except ValidationError as exc:
        violations.extend(violations_from_error(exc))

    violations.extend(find_duplicate_ids(candidate))

    if violations or brief is None:
        return Invalid(violations)
    return Valid(brief)
