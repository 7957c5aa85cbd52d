"""Check that dashboards define visualizations by value rather than by reference."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Any

from ..fspath import DirFS
from ..issues import ErrorCode, ValidationError
from ..pkgpath import files

_BY_REFERENCE_TYPES = {"lens", "map", "search", "visualization"}


@dataclass(frozen=True)
class Reference:
    """A reference from a Kibana object to another one."""

    id: str
    name: str
    type: str


def _text(element: dict, key: str) -> str:
    value = element.get(key)
    if not isinstance(value, str):
        raise ValueError(f"conversion error: reference {key} is not a string")
    return value


def to_reference_slice(value: Any) -> list[Reference]:
    """Convert decoded ``references`` into Reference objects."""
    if not isinstance(value, list):
        raise ValueError("conversion error to array")
    refs: list[Reference] = []
    for element in value:
        if not isinstance(element, dict):
            raise ValueError("conversion error to reference element")
        refs.append(Reference(_text(element, "id"), _text(element, "name"), _text(element, "type")))
    return refs


def any_reference(value: Any) -> list[Reference]:
    """Return the references that point to visualizations."""
    try:
        refs = to_reference_slice(value)
    except ValueError as exc:
        raise ValueError(f"unable to convert references: {exc}") from exc
    return [r for r in refs if r.type in _BY_REFERENCE_TYPES]


def validate_visualizations_used_by_value(fsys: DirFS) -> list[ValidationError]:
    """Report dashboards that use visualizations by reference."""
    try:
        dashboards = files(fsys, posixpath.join("kibana", "dashboard", "*.json"))
    except OSError as exc:
        return [ValidationError(f"error finding Kibana Dashboard files: {exc}")]

    errors: list[ValidationError] = []
    for dashboard in dashboards:
        try:
            raw = dashboard.values("$.references")
        except (ValueError, OSError):
            # No references in this dashboard.
            continue

        try:
            refs = any_reference(raw)
        except ValueError as exc:
            errors.append(
                ValidationError(
                    f"error getting references in file: {fsys.path(dashboard.path)}: {exc}"
                )
            )
            refs = []
        if refs:
            listed = ", ".join(f"{r.id} ({r.type})" for r in refs)
            errors.append(
                ValidationError(
                    f"references found in dashboard {dashboard.path}: {listed}",
                    ErrorCode.VISUALIZATION_BY_VALUE,
                )
            )
    return errors