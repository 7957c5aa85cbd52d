"""Field definitions of a package and helpers to walk and validate them."""

from __future__ import annotations

import dataclasses
import posixpath
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

import yaml

from ..fspath import DirFS
from ..issues import ValidationError

DATA_STREAM_DIR = "data_stream"

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_bool(text: str) -> Optional[bool]:
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


@dataclass(frozen=True)
class RuntimeField:
    """The runtime setting of a field: a flag or a script."""

    enabled: bool = False
    script: str = ""

    @classmethod
    def from_value(cls, value: Any) -> "RuntimeField":
        """Build the setting from a decoded YAML or JSON value."""
        if value is None:
            return cls()
        if isinstance(value, bool):
            return cls(enabled=value)
        if isinstance(value, str):
            parsed = _parse_bool(value)
            if parsed is not None:
                return cls(enabled=parsed)
            return cls(enabled=True, script=value)
        # The schema already restricts the accepted types (e.g. int or float).
        return cls(enabled=True, script=str(value))

    def is_enabled(self) -> bool:
        return self.enabled or bool(self.script)

    def __str__(self) -> str:
        if self.script:
            return self.script
        return "true" if self.enabled else "false"


@dataclass
class Field:
    """A field definition, possibly holding nested fields."""

    name: str = ""
    type: str = ""
    unit: str = ""
    date_format: str = ""
    metric_type: str = ""
    dimension: bool = False
    external: str = ""
    runtime: RuntimeField = field(default_factory=RuntimeField)
    fields: list["Field"] = field(default_factory=list)


@dataclass(frozen=True)
class FieldFileMetadata:
    """Where a fields file lives and which data stream it belongs to."""

    data_stream: str
    file_path: str
    full_file_path: str


ValidateFunc = Callable[[FieldFileMetadata, Field], Optional[Iterable[ValidationError]]]


def _as_str(value: Any, key: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"cannot unmarshal {type(value).__name__} into string field {key}")


def _as_bool(value: Any, key: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ValueError(f"cannot unmarshal {value!r} into bool field {key}")


def _parse_field(data: Any) -> Field:
    if not isinstance(data, dict):
        raise ValueError(f"field definition must be a mapping, found {type(data).__name__}")
    return Field(
        name=_as_str(data.get("name"), "name"),
        type=_as_str(data.get("type"), "type"),
        unit=_as_str(data.get("unit"), "unit"),
        date_format=_as_str(data.get("date_format"), "date_format"),
        metric_type=_as_str(data.get("metric_type"), "metric_type"),
        dimension=_as_bool(data.get("dimension"), "dimension"),
        external=_as_str(data.get("external"), "external"),
        runtime=RuntimeField.from_value(data.get("runtime")),
        fields=parse_fields(data.get("fields")),
    )


def parse_fields(data: Any) -> list[Field]:
    """Build field definitions from a decoded list of mappings."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"fields must be a list, found {type(data).__name__}")
    return [_parse_field(item) for item in data]


def validate_fields(fsys: DirFS, validate: ValidateFunc) -> list[ValidationError]:
    """Run a check on every field, nested ones included, of every fields file."""
    try:
        metadata_list = list_fields_files(fsys)
    except (OSError, ValueError) as exc:
        return [ValidationError(f"can't list fields files: {exc}")]

    errors: list[ValidationError] = []
    for metadata in metadata_list:
        try:
            parsed = unmarshal_fields(fsys, metadata.file_path)
        except (OSError, ValueError) as exc:
            errors.append(
                ValidationError(
                    f'file "{metadata.file_path}" is invalid: can\'t unmarshal fields: {exc}'
                )
            )
            parsed = []
        errors.extend(_validate_nested_fields("", metadata, parsed, validate))
    return errors


def _validate_nested_fields(
    parent: str, metadata: FieldFileMetadata, fields: list[Field], validate: ValidateFunc
) -> list[ValidationError]:
    result: list[ValidationError] = []
    for item in fields:
        if parent:
            item = dataclasses.replace(item, name=f"{parent}.{item.name}")
        result.extend(validate(metadata, item) or [])
        if item.fields:
            result.extend(_validate_nested_fields(item.name, metadata, item.fields, validate))
    return result


def list_fields_files(fsys: DirFS) -> list[FieldFileMetadata]:
    """List the fields files of data streams, then those of an input package."""
    result: list[FieldFileMetadata] = []
    for data_stream in list_data_streams(fsys):
        fields_dir = posixpath.join(DATA_STREAM_DIR, data_stream, "fields")
        try:
            paths = read_fields_folder(fsys, fields_dir)
        except OSError as exc:
            raise OSError(f"cannot read fields file from integration packages: {exc}") from exc
        result.extend(FieldFileMetadata(data_stream, p, fsys.path(p)) for p in paths)

    try:
        paths = read_fields_folder(fsys, "fields")
    except OSError as exc:
        raise OSError(f"cannot read fields file from input packages: {exc}") from exc
    result.extend(FieldFileMetadata("", p, fsys.path(p)) for p in paths)
    return result


def read_fields_folder(fsys: DirFS, fields_dir: str) -> list[str]:
    """Return the paths of the files in a fields directory, or [] if it is missing."""
    try:
        entries = fsys.read_dir(fields_dir)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise OSError(
            f"can't list fields directory (path: {fsys.path(fields_dir)}): {exc}"
        ) from exc
    return [posixpath.join(fields_dir, entry.name) for entry in entries]


def unmarshal_fields(fsys: DirFS, fields_path: str) -> list[Field]:
    """Read and parse a fields file."""
    try:
        content = fsys.read_bytes(fields_path)
    except OSError as exc:
        raise OSError(f"can't read file (path: {fields_path}): {exc}") from exc
    try:
        return parse_fields(yaml.safe_load(content))
    except (yaml.YAMLError, ValueError) as exc:
        raise ValueError(f"yaml.Unmarshal failed (path: {fields_path}): {exc}") from exc


def list_data_streams(fsys: DirFS) -> list[str]:
    """Return the names of the data streams of a package, or [] if there are none."""
    try:
        entries = fsys.read_dir(DATA_STREAM_DIR)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise OSError(f"can't list data streams directory: {exc}") from exc
    return [entry.name for entry in entries]