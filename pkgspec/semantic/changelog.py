"""Checks on the changelog: version integrity and pull request links."""

from __future__ import annotations

import posixpath
import re
from typing import Any
from urllib.parse import urlsplit

from ..fspath import DirFS
from ..issues import ValidationError
from ..pkgpath import files

GITHUB_ISSUE_MESSAGE = "issue number in changelog link should be a positive number"

_INTEGER = re.compile(r"^[+-]?[0-9]+$")


class ChangelogLinkError(ValueError):
    """A changelog link that does not point to a valid issue or pull request."""

    def __init__(self, link: str, message: str = GITHUB_ISSUE_MESSAGE) -> None:
        self.link = link
        self.reason = message
        super().__init__(f"{link}: {message}")

    def __str__(self) -> str:
        return f"{self.link}: {self.reason}"


def _base(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return posixpath.basename(stripped)


def _host(netloc: str) -> str:
    return netloc.rpartition("@")[2]


def validate_github_link(link: str) -> None:
    """Raise ChangelogLinkError unless the link ends in a positive number."""
    base = _base(urlsplit(link).path)
    if not _INTEGER.match(base) or int(base) <= 0:
        raise ChangelogLinkError(link)


_LINK_VALIDATORS = (("github.com", validate_github_link),)


def ensure_links_are_valid(links: list[str]) -> list[ValidationError]:
    """Validate links on known domains; links elsewhere are accepted."""
    errors: list[ValidationError] = []
    for link in links:
        try:
            host = _host(urlsplit(link).netloc)
        except ValueError as exc:
            errors.append(ValidationError(f"invalid URL {exc}"))
            continue
        for domain, validate in _LINK_VALIDATORS:
            if domain in host:
                try:
                    validate(link)
                except ChangelogLinkError as exc:
                    errors.append(ValidationError(exc))
    return errors


def validate_changelog_links(fsys: DirFS) -> list[ValidationError]:
    """Validate the links of every change in the changelog."""
    try:
        links = read_changelog(fsys, "$[*].changes[*].link")
    except (ValueError, OSError) as exc:
        return [ValidationError(exc)]
    return ensure_links_are_valid(links)


def validate_version_integrity(fsys: DirFS) -> list[ValidationError]:
    """Check that the manifest version is the latest changelog entry."""
    try:
        manifest_version = read_manifest_version(fsys)
        versions = read_changelog(fsys, "$[*].version")
        ensure_unique_versions(versions)
        ensure_manifest_version_has_changelog_entry(manifest_version, versions)
    except (ValueError, OSError) as exc:
        return [ValidationError(exc)]
    return []


def read_manifest_version(fsys: DirFS) -> str:
    """Return the version declared in the package manifest."""
    try:
        found = files(fsys, "manifest.yml")
    except OSError as exc:
        raise OSError(f"can't locate manifest file: {exc}") from exc
    if len(found) != 1:
        raise ValueError("single manifest file expected")
    try:
        value = found[0].values("$.version")
    except (ValueError, OSError) as exc:
        raise ValueError(f"can't read manifest version: {exc}") from exc
    if not isinstance(value, str):
        raise ValueError("version is undefined")
    return value


def _to_string_list(value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("conversion error")
    return list(value)


def read_changelog(fsys: DirFS, json_path: str) -> list[str]:
    """Return the string values matching a JSONPath in the changelog."""
    try:
        found = files(fsys, "changelog.yml")
    except OSError as exc:
        raise OSError(f"can't locate changelog file: {exc}") from exc
    if len(found) != 1:
        raise ValueError("single changelog file expected")
    try:
        values = found[0].values(json_path)
    except (ValueError, OSError) as exc:
        raise ValueError(f"can't changelog entries: {exc}") from exc
    try:
        return _to_string_list(values)
    except ValueError as exc:
        raise ValueError(f"can't convert slice entries: {exc}") from exc


def ensure_unique_versions(versions: list[str]) -> None:
    """Raise ValueError if a version appears more than once."""
    seen: set[str] = set()
    for version in versions:
        if version in seen:
            raise ValueError(
                "versions in changelog must be unique, found at least two same versions "
                f"({version})"
            )
        seen.add(version)


def ensure_manifest_version_has_changelog_entry(manifest_version: str, versions: list[str]) -> None:
    """Raise ValueError unless the manifest version heads the changelog.

    A leading entry ending in ``-next`` may precede the manifest version.
    """
    if versions and manifest_version == versions[0]:
        return
    if versions and versions[0].endswith("-next") and manifest_version in versions:
        return
    raise ValueError("current manifest version doesn't have changelog entry")