"""Version-dependent JSON patches (RFC 6902) applied to specifications."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

import semver


class PatchError(ValueError):
    """A patch could not be decoded or applied."""


@dataclass
class VersionPatch:
    """Patches to apply for spec versions older than ``before``."""

    before: str
    patch: list[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "VersionPatch":
        return cls(str(data.get("before", "")), list(data.get("patch") or []))


def _as_version(value: Any) -> semver.Version:
    if isinstance(value, semver.Version):
        return value
    return semver.Version.parse(str(value))


def patch_for_version(target: Any, versions: list[VersionPatch]) -> list[Any]:
    """Collect the patch operations that apply to the target version."""
    target_version = _as_version(target)
    operations: list[Any] = []
    for version in versions:
        before = semver.Version.parse(version.before)
        if not target_version < before:
            continue
        operations.extend(version.patch)
    return operations


def _tokens(pointer: str) -> list[str]:
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise PatchError(f"invalid JSON pointer: {pointer!r}")
    return [t.replace("~1", "/").replace("~0", "~") for t in pointer[1:].split("/")]


def _index(container: list, token: str, allow_end: bool) -> int:
    if token == "-" and allow_end:
        return len(container)
    if not token.isdigit():
        raise PatchError(f"invalid array index: {token}")
    idx = int(token)
    limit = len(container) if allow_end else len(container) - 1
    if idx > limit:
        raise PatchError(f"array index out of bounds: {idx}")
    return idx


def _child(container: Any, token: str) -> Any:
    if isinstance(container, dict):
        if token not in container:
            raise PatchError(f"missing key: {token}")
        return container[token]
    if isinstance(container, list):
        return container[_index(container, token, False)]
    raise PatchError(f"cannot traverse into scalar at {token}")


def _get(document: Any, pointer: str) -> Any:
    value = document
    for token in _tokens(pointer):
        value = _child(value, token)
    return value


def _parent(document: Any, pointer: str) -> tuple[Any, str]:
    tokens = _tokens(pointer)
    if not tokens:
        raise PatchError("operation on document root is not supported")
    container = document
    for token in tokens[:-1]:
        container = _child(container, token)
    return container, tokens[-1]


def _add(document: Any, pointer: str, value: Any) -> Any:
    if pointer == "":
        return value
    container, last = _parent(document, pointer)
    if isinstance(container, dict):
        container[last] = value
    elif isinstance(container, list):
        container.insert(_index(container, last, True), value)
    else:
        raise PatchError(f"cannot add to scalar at {pointer}")
    return document


def _remove(document: Any, pointer: str) -> Any:
    container, last = _parent(document, pointer)
    if isinstance(container, dict):
        if last not in container:
            raise PatchError(f"cannot remove missing key: {pointer}")
        return container.pop(last)
    if isinstance(container, list):
        return container.pop(_index(container, last, False))
    raise PatchError(f"cannot remove from scalar at {pointer}")


def apply_patch(document: Any, operations: list[Any]) -> Any:
    """Apply RFC 6902 operations to a copy of the document and return it."""
    result = copy.deepcopy(document)
    for op in operations:
        if not isinstance(op, dict) or "op" not in op or "path" not in op:
            raise PatchError(f"invalid patch operation: {op!r}")
        kind, path = op["op"], op["path"]
        if kind == "add":
            result = _add(result, path, copy.deepcopy(op.get("value")))
        elif kind == "remove":
            _remove(result, path)
        elif kind == "replace":
            if path == "":
                result = copy.deepcopy(op.get("value"))
                continue
            _remove(result, path)
            result = _add(result, path, copy.deepcopy(op.get("value")))
        elif kind == "move":
            value = _remove(result, op["from"])
            result = _add(result, path, value)
        elif kind == "copy":
            result = _add(result, path, copy.deepcopy(_get(result, op["from"])))
        elif kind == "test":
            if _get(result, path) != op.get("value"):
                raise PatchError(f"testing value {path} failed")
        else:
            raise PatchError(f"unexpected operation kind: {kind}")
    return result


def resolve_patch(spec: Any, patch: list[Any]) -> Any:
    """Apply a patch to the spec, wrapping failures in PatchError."""
    try:
        return apply_patch(spec, patch)
    except (KeyError, TypeError) as exc:
        raise PatchError(f"failed to decode patch: {exc}") from exc