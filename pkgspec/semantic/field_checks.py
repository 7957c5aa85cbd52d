"""Checks on individual field definitions and on field counts."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable

from ..fspath import DirFS
from ..issues import ValidationError
from .fields import Field, FieldFileMetadata, validate_fields

ALLOWED_DIMENSION_TYPES = (
    # Keywords
    "constant_keyword",
    "keyword",
    # Numeric types
    "long",
    "integer",
    "short",
    "byte",
    "double",
    "float",
    "half_float",
    "scaled_float",
    "unsigned_long",
    # IPs
    "ip",
)


def validate_date_fields(fsys: DirFS) -> list[ValidationError]:
    """Check that only date fields set a date format."""
    return validate_fields(fsys, validate_date_field)


def validate_date_field(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
    if field.type != "date" and field.date_format:
        return [
            ValidationError(
                f'file "{metadata.full_file_path}" is invalid: field "{field.name}" of type '
                f"{field.type} can't set date_format. date_format is allowed for date field type only"
            )
        ]
    return []


def validate_dimension_fields(fsys: DirFS) -> list[ValidationError]:
    """Check that dimension fields have one of the allowed types."""
    return validate_fields(fsys, validate_dimension_field)


def validate_dimension_field(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
    if field.external:
        # External fields cannot be resolved here, so they are accepted as they are.
        return []
    if field.dimension and not is_allowed_dimension_type(field.type):
        return [
            ValidationError(
                f'file "{metadata.full_file_path}" is invalid: field "{field.name}" of type '
                f"{field.type} can't be a dimension, allowed types for dimensions: "
                f"{', '.join(ALLOWED_DIMENSION_TYPES)}"
            )
        ]
    return []


def is_allowed_dimension_type(field_type: str) -> bool:
    return field_type in ALLOWED_DIMENSION_TYPES


def validate_field_groups(fsys: DirFS) -> list[ValidationError]:
    """Check that field groups define neither units nor metric types."""
    return validate_fields(fsys, validate_field_unit)


def validate_field_unit(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
    if field.type == "group" and field.unit:
        return [
            ValidationError(
                f'file "{metadata.full_file_path}" is invalid: field "{field.name}" '
                f"can't have unit property'"
            )
        ]
    if field.type == "group" and field.metric_type:
        return [
            ValidationError(
                f'file "{metadata.full_file_path}" is invalid: field "{field.name}" '
                f"can't have metric type property'"
            )
        ]
    return []


def validate_fields_limits(limit: int) -> Callable[[DirFS], list[ValidationError]]:
    """Return a check that no data stream defines more than ``limit`` fields."""

    def check(fsys: DirFS) -> list[ValidationError]:
        counts: dict[str, int] = defaultdict(int)

        def count_field(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
            if not field.fields:
                counts[metadata.data_stream] += 1
            return []

        errs = validate_fields(fsys, count_field)
        if errs:
            return errs
        return [
            ValidationError(f"data stream {ds} has more than {limit} fields ({count})")
            for ds, count in counts.items()
            if count > limit
        ]

    return check


def validate_unique_fields(fsys: DirFS) -> list[ValidationError]:
    """Check that each field is defined only once in each data stream."""
    found: dict[str, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))

    def count_field(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
        if not field.fields:
            found[metadata.data_stream][field.name].append(metadata.full_file_path)
        return []

    errs = validate_fields(fsys, count_field)
    if errs:
        return errs

    result: list[ValidationError] = []
    for ds, definitions in found.items():
        for name, paths in definitions.items():
            if len(paths) > 1:
                result.append(
                    ValidationError(
                        f'field "{name}" is defined multiple times for data stream "{ds}", '
                        f"found in: {', '.join(sorted(paths))}"
                    )
                )
    return result