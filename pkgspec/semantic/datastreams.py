"""Checks on data stream manifests and on the package version's prerelease tag."""

from __future__ import annotations

import json
import posixpath
import re
from typing import Any

import semver
import yaml

from ..fspath import DirFS
from ..issues import ValidationError
from ..pkgpath import files
from .changelog import read_manifest_version
from .fields import list_data_streams

# Prereleases allowed as literals, for convenience with previous recommendations.
LITERAL_PRERELEASES = ("next", "SNAPSHOT")

# Prereleases allowed, potentially followed by additional numbering.
NUMBERED_PRERELEASES = ("beta", "rc", "preview")

# What follows a numbered prerelease tag has to start with a number, hyphen or
# dot, and end with a number or letter.
_PRERELEASE_NUMBER_PATTERN = r"(([0-9]|[.\-][0-9A-Za-z])([0-9A-Za-z.\-]*[0-9A-Za-z])?)?"

_NUMBERED_PATTERNS = tuple(
    re.compile(re.escape(tag) + _PRERELEASE_NUMBER_PATTERN) for tag in NUMBERED_PRERELEASES
)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _data_stream_manifest_path(data_stream: str) -> str:
    return posixpath.join("data_stream", data_stream, "manifest.yml")


def _load_mapping(fsys: DirFS, path: str, read_prefix: str, parse_prefix: str) -> dict:
    location = _quote(fsys.path(path))
    try:
        data = fsys.read_bytes(path)
    except OSError as exc:
        raise OSError(f"{read_prefix} in {location}: {exc}") from exc
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ValueError(f"{parse_prefix} in {location}: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"{parse_prefix} in {location}: document is not a mapping")
    return document


def _string(document: dict, key: str) -> str:
    value = document.get(key)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"cannot unmarshal {type(value).__name__} into string field {key}")


def _read_data_stream_manifest(fsys: DirFS, data_stream: str) -> dict:
    return _load_mapping(
        fsys,
        _data_stream_manifest_path(data_stream),
        "failed to read data stream manifest",
        "failed to parse data stream manifest",
    )


def _manifest_strings(fsys: DirFS, data_stream: str, *keys: str) -> tuple[str, ...]:
    manifest = _read_data_stream_manifest(fsys, data_stream)
    location = _quote(fsys.path(_data_stream_manifest_path(data_stream)))
    try:
        return tuple(_string(manifest, key) for key in keys)
    except ValueError as exc:
        raise ValueError(f"failed to parse data stream manifest in {location}: {exc}") from exc


def expected_ilm_policy_prefix(ds_type: str, package_name: str, data_stream: str) -> str:
    """Return the prefix an ILM policy name must have in a data stream."""
    return f"{ds_type}-{package_name}.{data_stream}-"


def read_package_name(fsys: DirFS) -> str:
    """Return the name declared in the package manifest."""
    manifest = _load_mapping(
        fsys, "manifest.yml", "failed to manifest", "failed to parse manifest"
    )
    try:
        return _string(manifest, "name")
    except ValueError as exc:
        raise ValueError(
            f"failed to parse manifest in {_quote(fsys.path('manifest.yml'))}: {exc}"
        ) from exc


def _validate_ilm_policy_in_data_stream(fsys: DirFS, data_stream: str) -> None:
    ds_type, ilm_policy = _manifest_strings(fsys, data_stream, "type", "ilm_policy")
    if not ilm_policy:
        return

    package_name = read_package_name(fsys)
    manifest_path = _data_stream_manifest_path(data_stream)
    prefix = expected_ilm_policy_prefix(ds_type, package_name, data_stream)
    if not ilm_policy.startswith(prefix):
        raise ValueError(
            f'file "{fsys.path(manifest_path)}" is invalid: field ilm_policy must start with '
            f'{_quote(prefix)}, found "{ilm_policy}"'
        )

    ilm_file = ilm_policy[len(prefix):] + ".json"
    ilm_path = posixpath.join("data_stream", data_stream, "elasticsearch", "ilm", ilm_file)
    try:
        fsys.stat(ilm_path)
    except OSError as exc:
        raise ValueError(
            f'file "{fsys.path(manifest_path)}" is invalid: field ilm_policy: ILM policy '
            f'{_quote(ilm_policy)} not found in package, expected definition in '
            f'"{fsys.path(ilm_path)}"'
        ) from exc


def validate_ilm_policy_present(fsys: DirFS) -> list[ValidationError]:
    """Report ILM policies referenced by data streams but not defined in them."""
    try:
        data_streams = list_data_streams(fsys)
    except OSError as exc:
        return [ValidationError(exc)]

    errors: list[ValidationError] = []
    for data_stream in data_streams:
        try:
            _validate_ilm_policy_in_data_stream(fsys, data_stream)
        except (OSError, ValueError) as exc:
            errors.append(ValidationError(exc))
    return errors


def _validate_profiling_type_not_used(fsys: DirFS, data_stream: str) -> None:
    (ds_type,) = _manifest_strings(fsys, data_stream, "type")
    if ds_type == "profiling":
        raise ValueError(
            f'file "{fsys.path(_data_stream_manifest_path(data_stream))}" is invalid: '
            "profiling data type cannot be used in GA packages"
        )


def validate_profiling_non_ga(fsys: DirFS) -> list[ValidationError]:
    """Report data streams of the profiling type in GA packages."""
    try:
        version = semver.Version.parse(read_manifest_version(fsys))
    except (OSError, ValueError) as exc:
        return [ValidationError(exc)]

    if version.major == 0 or version.prerelease:
        return []

    try:
        data_streams = list_data_streams(fsys)
    except OSError as exc:
        return [ValidationError(exc)]

    errors: list[ValidationError] = []
    for data_stream in data_streams:
        try:
            _validate_profiling_type_not_used(fsys, data_stream)
        except (OSError, ValueError) as exc:
            errors.append(ValidationError(exc))
    return errors


def _any_routing_rules(fsys: DirFS, data_stream: str) -> bool:
    rules_path = posixpath.join("data_stream", data_stream, "routing_rules.yml")
    try:
        found = files(fsys, rules_path)
    except OSError:
        return False
    if len(found) != 1:
        return False
    try:
        rules: Any = found[0].values("$[*]")
    except (OSError, ValueError):
        return False
    return isinstance(rules, list) and len(rules) > 0


def _validate_dataset_in_data_stream(fsys: DirFS, data_stream: str) -> None:
    (dataset,) = _manifest_strings(fsys, data_stream, "dataset")
    if not dataset:
        raise ValueError(f"dataset field is required in data stream {_quote(data_stream)}")


def validate_routing_rules_and_dataset(fsys: DirFS) -> list[ValidationError]:
    """Report data streams with routing rules that do not define a dataset."""
    try:
        data_streams = list_data_streams(fsys)
    except OSError as exc:
        return [ValidationError(exc)]

    errors: list[ValidationError] = []
    for data_stream in data_streams:
        if not _any_routing_rules(fsys, data_stream):
            continue
        try:
            _validate_dataset_in_data_stream(fsys, data_stream)
        except (OSError, ValueError) as exc:
            errors.append(
                ValidationError(
                    f"routing rules defined in data stream {_quote(data_stream)} but dataset "
                    f"field is missing: {exc}"
                )
            )
    return errors


def validate_prerelease_tag(tag: str) -> None:
    """Raise ValueError unless the prerelease tag is one of the accepted forms."""
    if not tag or tag in LITERAL_PRERELEASES:
        return
    for numbered, pattern in zip(NUMBERED_PRERELEASES, _NUMBERED_PATTERNS):
        if tag == numbered or pattern.fullmatch(tag):
            return
    raise ValueError(
        f"prerelease tag ({tag}) should be one of [{', '.join(LITERAL_PRERELEASES)}], "
        f"or one of [{', '.join(NUMBERED_PRERELEASES)}] followed by numbers"
    )


def check_prerelease(manifest_version: str) -> semver.Version:
    """Parse a package version and check its prerelease tag; return the version."""
    version = semver.Version.parse(manifest_version)
    prerelease = version.prerelease or ""
    if version.major == 0 and prerelease:
        raise ValueError(
            "versions below 1.0.0 are considered technical previews, please remove "
            f"prerelease tag (version: {manifest_version})"
        )
    validate_prerelease_tag(prerelease)
    return version


def validate_prerelease(fsys: DirFS) -> list[ValidationError]:
    """Check the prerelease tag of the version in the package manifest."""
    try:
        check_prerelease(read_manifest_version(fsys))
    except (OSError, ValueError) as exc:
        return [ValidationError(exc)]
    return []