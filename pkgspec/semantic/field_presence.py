"""Checks on the presence of required, dimension and external fields."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass
from typing import Any, Optional

import yaml

from ..fspath import DirFS
from ..issues import ValidationError
from ..pkgpath import PackageFile, files
from .fields import Field, FieldFileMetadata, list_data_streams, validate_fields

DEFAULT_REQUIRED_FIELDS = {
    "data_stream.type": "constant_keyword",
    "data_stream.dataset": "constant_keyword",
    "data_stream.namespace": "constant_keyword",
    "@timestamp": "date",
}

_BUILD_PATH = "_dev/build/build.yml"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass(frozen=True)
class UnexpectedTypeRequiredField:
    """A required field is defined with a type other than the expected one."""

    field: str
    expected_type: str
    found_type: str
    data_stream: str
    full_path: str

    def __str__(self) -> str:
        return (
            f"expected type {_quote(self.expected_type)} for required field "
            f"{_quote(self.field)}, found {_quote(self.found_type)} in {_quote(self.full_path)}"
        )


@dataclass(frozen=True)
class NotFoundRequiredField:
    """A required field is missing from a data stream or package."""

    field: str
    expected_type: str
    data_stream: str

    def __str__(self) -> str:
        message = (
            f"expected field {_quote(self.field)} with type {_quote(self.expected_type)} not found"
        )
        if self.data_stream:
            message = f"{message} in datastream {_quote(self.data_stream)}"
        return message


def validate_required_fields(
    fsys: DirFS, required_fields: Optional[dict[str, str]] = None
) -> list[ValidationError]:
    """Check that required fields are present and have the expected types."""
    if required_fields is None:
        required_fields = DEFAULT_REQUIRED_FIELDS

    # data stream (or "" for the package) -> names of the fields found
    found_fields: dict[str, set[str]] = {}

    def check_field(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
        found_fields.setdefault(metadata.data_stream, set()).add(field.name)
        expected_type = required_fields.get(field.name)
        if expected_type is None:
            return []
        # External fields carry no type in their definition.
        if not field.external and field.type != expected_type:
            return [
                ValidationError(
                    UnexpectedTypeRequiredField(
                        field=field.name,
                        expected_type=expected_type,
                        found_type=field.type,
                        data_stream=metadata.data_stream,
                        full_path=metadata.full_file_path,
                    )
                )
            ]
        return []

    errors = validate_fields(fsys, check_field)

    # Only data streams with fields are known here; that is intended.
    for data_stream, names in found_fields.items():
        for required_name, required_type in required_fields.items():
            if required_name not in names:
                errors.append(
                    ValidationError(
                        NotFoundRequiredField(required_name, required_type, data_stream)
                    )
                )
    return errors


def validate_dimensions_present(fsys: DirFS) -> list[ValidationError]:
    """Check that data streams in time series mode define at least one dimension."""
    with_dimensions: set[str] = set()

    def collect(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
        if field.dimension:
            with_dimensions.add(metadata.data_stream)
        return []

    errors = validate_fields(fsys, collect)
    if errors:
        return errors

    try:
        data_streams = list_data_streams(fsys)
    except OSError as exc:
        return [ValidationError(exc)]

    for data_stream in data_streams:
        try:
            time_series = is_time_series_mode_enabled(fsys, data_stream)
        except (OSError, ValueError) as exc:
            return [ValidationError(exc)]
        if time_series and data_stream not in with_dimensions:
            errors.append(
                ValidationError(
                    f'file "{fsys.path("data_stream", data_stream, "manifest.yml")}" is invalid: '
                    "time series mode enabled but no dimensions configured"
                )
            )
    return errors


def is_time_series_mode_enabled(fsys: DirFS, data_stream: str) -> bool:
    """Return True if the data stream manifest sets the time_series index mode."""
    manifest_path = posixpath.join("data_stream", data_stream, "manifest.yml")
    try:
        data = fsys.read_bytes(manifest_path)
    except OSError as exc:
        raise OSError(
            f"failed to read data stream manifest in {_quote(fsys.path(manifest_path))}: {exc}"
        ) from exc

    def parse_error(reason: Any) -> ValueError:
        return ValueError(
            f"failed to parse data stream manifest in {_quote(fsys.path(manifest_path))}: {reason}"
        )

    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise parse_error(exc) from exc
    if document is None:
        return False
    if not isinstance(document, dict):
        raise parse_error("manifest is not a mapping")
    elasticsearch = document.get("elasticsearch")
    if elasticsearch is None:
        return False
    if not isinstance(elasticsearch, dict):
        raise parse_error("elasticsearch is not a mapping")
    return elasticsearch.get("index_mode") == "time_series"


def validate_external_fields_with_dev_folder(fsys: DirFS) -> list[ValidationError]:
    """Check that external fields are backed by a dependency in the build file."""
    try:
        build_files = files(fsys, _BUILD_PATH)
    except OSError as exc:
        return [ValidationError(f"not able to read {_BUILD_PATH}: {exc}")]

    build_defined = len(build_files) == 1
    dependencies: set[str] = set()
    if build_defined:
        try:
            dependencies = set(read_dev_build_dependencies_keys(build_files[0]))
        except ValueError as exc:
            return [ValidationError(exc)]

    def check(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
        if not field.external:
            return []
        if not build_defined:
            return [
                ValidationError(
                    f'file "{metadata.full_file_path}" is invalid: field {field.name} with '
                    f"external key defined ({_quote(field.external)}) but no {_BUILD_PATH} found"
                )
            ]
        if field.external not in dependencies:
            return [
                ValidationError(
                    f'file "{metadata.full_file_path}" is invalid: field {field.name} with '
                    f"external key defined ({_quote(field.external)}) but no definition found "
                    f"for it ({_BUILD_PATH})"
                )
            ]
        return []

    return validate_fields(fsys, check)


def read_dev_build_dependencies_keys(file: PackageFile) -> list[str]:
    """Return the names of the dependencies declared in a build file."""
    try:
        values = file.values("$.dependencies")
    except (ValueError, OSError) as exc:
        raise ValueError(f"can't read dependencies: {exc}") from exc
    if not isinstance(values, dict):
        raise ValueError(
            f"dependencies expected to be a map, found {type(values).__name__}: {values}"
        )
    return [str(key) for key in values]