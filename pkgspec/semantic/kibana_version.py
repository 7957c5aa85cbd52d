"""Checks on the minimum Kibana version a package declares."""

from __future__ import annotations

import re
from typing import Any

import semver
import yaml

from ..fspath import DirFS
from ..issues import ErrorCode, ValidationError
from ..pkgpath import PackageFile, files
from .fields import Field, FieldFileMetadata, validate_fields

_VERSION_IN_CONDITION = re.compile(r"(\d+\.\d+\.\d+)")
_MANIFEST_PATH = "manifest.yml"
_TAGS_PATH = "kibana/tags.yml"


def _as_version(value: Any) -> semver.Version:
    if isinstance(value, semver.Version):
        return value
    return semver.Version.parse(str(value))


def _read_package(fsys: DirFS) -> tuple[str, semver.Version]:
    try:
        data = fsys.read_bytes(_MANIFEST_PATH)
    except OSError as exc:
        raise OSError(f"failed to read package manifest: {exc}") from exc
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse package manifest: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError("failed to parse package manifest: document is not a mapping")
    package_type = document.get("type")
    package_type = "" if package_type is None else str(package_type)
    try:
        version = semver.Version.parse(str(document.get("version")))
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid package version: {exc}") from exc
    return package_type, version


def _read_manifest(fsys: DirFS) -> PackageFile:
    try:
        found = files(fsys, _MANIFEST_PATH)
    except OSError as exc:
        raise OSError(f"can't locate manifest file: {exc}") from exc
    if len(found) != 1:
        raise ValueError("single manifest file expected")
    return found[0]


def get_kibana_version_condition(manifest: PackageFile) -> str:
    """Return the Kibana version condition of a manifest, or "" if there is none."""
    try:
        value = manifest.values('$.conditions["kibana.version"]')
    except (ValueError, OSError):
        try:
            value = manifest.values("$.conditions.kibana.version")
        except (ValueError, OSError):
            return ""
    if not isinstance(value, str):
        raise ValueError("manifest kibana version is not a string")
    return value


def kibana_version_condition_is_greater_than_or_equal_to(condition: str, minimum: str) -> bool:
    """Return True if every version in the condition is at least ``minimum``."""
    if not condition:
        return False
    if condition == f"^{minimum}":
        return True
    minimum_version = semver.Version.parse(minimum)
    for match in _VERSION_IN_CONDITION.findall(condition):
        try:
            version = semver.Version.parse(match)
        except ValueError:
            return False
        if version < minimum_version:
            return False
    return True


def validate_minimum_kibana_version_input_packages(
    package_type: str, package_version: Any, condition: str
) -> None:
    """Require Kibana ^8.8.0 or later for input packages at version 1.0.0 or later."""
    minimum = "8.8.0"
    if package_type != "input":
        return None
    if _as_version(package_version) < semver.Version.parse("1.0.0"):
        return None
    if kibana_version_condition_is_greater_than_or_equal_to(condition, minimum):
        return None
    raise ValueError(
        f"conditions.kibana.version must be ^{minimum} or greater for non experimental "
        "input packages (version > 1.0.0)"
    )


def _no_runtime_fields(metadata: FieldFileMetadata, field: Field) -> list[ValidationError]:
    if field.runtime.is_enabled():
        return [
            ValidationError(
                f"{metadata.full_file_path} file contains a field {field.name} "
                f"with runtime key defined ({field.runtime})"
            )
        ]
    return []


def validate_minimum_kibana_version_runtime_fields(
    fsys: DirFS, package_version: Any, condition: str
) -> None:
    """Require Kibana ^8.10.0 or later when the package defines runtime fields."""
    minimum = "8.10.0"
    if not validate_fields(fsys, _no_runtime_fields):
        return None
    if kibana_version_condition_is_greater_than_or_equal_to(condition, minimum):
        return None
    raise ValueError(
        f"conditions.kibana.version must be ^{minimum} or greater to include runtime fields"
    )


def validate_minimum_kibana_version_saved_object_tags(
    fsys: DirFS, package_type: str, package_version: Any, condition: str
) -> None:
    """Require Kibana ^8.10.0 or later when the package defines saved object tags."""
    minimum = "8.10.0"
    if package_type == "input":
        return None
    try:
        found = files(fsys, _TAGS_PATH)
    except OSError as exc:
        raise OSError(f"can't locate files with {_TAGS_PATH}: {exc}") from exc
    if not found:
        return None
    if kibana_version_condition_is_greater_than_or_equal_to(condition, minimum):
        return None
    raise ValueError(
        f"conditions.kibana.version must be ^{minimum} or greater to include saved object "
        f"tags file: {_TAGS_PATH}"
    )


def validate_minimum_kibana_version(fsys: DirFS) -> list[ValidationError]:
    """Check the Kibana version condition against the features the package uses."""
    try:
        package_type, package_version = _read_package(fsys)
        manifest = _read_manifest(fsys)
        condition = get_kibana_version_condition(manifest)
    except (OSError, ValueError) as exc:
        return [ValidationError(exc)]

    errors: list[ValidationError] = []
    try:
        validate_minimum_kibana_version_input_packages(package_type, package_version, condition)
    except ValueError as exc:
        errors.append(ValidationError(exc))

    try:
        validate_minimum_kibana_version_runtime_fields(fsys, package_version, condition)
    except ValueError as exc:
        errors.append(ValidationError(exc))

    try:
        validate_minimum_kibana_version_saved_object_tags(
            fsys, package_type, package_version, condition
        )
    except (OSError, ValueError) as exc:
        errors.append(ValidationError(exc, ErrorCode.MINIMUM_KIBANA_VERSION))

    return errors