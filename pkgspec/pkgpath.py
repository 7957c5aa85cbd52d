"""Files in a package and JSONPath queries over their YAML or JSON content."""

from __future__ import annotations

import json
import os
import posixpath
from dataclasses import dataclass
from typing import Any

import yaml

from .fspath import DirFS


class JSONPathError(ValueError):
    """A JSONPath expression is malformed or does not resolve."""


_WILD = ("wild", None)


def _parse_path(path: str) -> list[tuple[str, Any]]:
    if not path.startswith("$"):
        raise JSONPathError(f"path must start with '$': {path}")
    tokens: list[tuple[str, Any]] = []
    i, n = 1, len(path)
    while i < n:
        ch = path[i]
        if ch == ".":
            i += 1
            if i < n and path[i] == "*":
                tokens.append(_WILD)
                i += 1
                continue
            start = i
            while i < n and path[i] not in ".[":
                i += 1
            if start == i:
                raise JSONPathError(f"empty key in path: {path}")
            tokens.append(("key", path[start:i]))
        elif ch == "[":
            end = path.find("]", i)
            if end < 0:
                raise JSONPathError(f"unterminated bracket in path: {path}")
            inner = path[i + 1 : end].strip()
            if inner == "*":
                tokens.append(_WILD)
            elif len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in "\"'":
                tokens.append(("key", inner[1:-1]))
            else:
                try:
                    tokens.append(("index", int(inner)))
                except ValueError:
                    raise JSONPathError(f"invalid selector [{inner}] in path: {path}") from None
            i = end + 1
        else:
            raise JSONPathError(f"unexpected character {ch!r} in path: {path}")
    return tokens


def json_path_get(path: str, document: Any) -> Any:
    """Evaluate a JSONPath; with wildcards the result is a list of matches."""
    values = [document]
    wildcard = False
    for kind, arg in _parse_path(path):
        selected = []
        for value in values:
            if kind == "key":
                if isinstance(value, dict) and arg in value:
                    selected.append(value[arg])
                elif not wildcard:
                    raise JSONPathError(f"unknown key {arg}")
            elif kind == "index":
                if isinstance(value, list) and -len(value) <= arg < len(value):
                    selected.append(value[arg])
                elif not wildcard:
                    raise JSONPathError(f"index {arg} out of range")
            else:
                if isinstance(value, dict):
                    selected.extend(value[k] for k in sorted(value, key=str))
                elif isinstance(value, list):
                    selected.extend(value)
                elif not wildcard:
                    raise JSONPathError("wildcard applied to a scalar value")
        if kind == "wild":
            wildcard = True
        values = selected
    return values if wildcard else values[0]


@dataclass(frozen=True)
class PackageFile:
    """A file found in a package file system."""

    fsys: DirFS
    path: str
    stat: os.stat_result

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    def values(self, path: str) -> Any:
        """Return the values matching a JSONPath in a YAML or JSON file."""
        ext = posixpath.splitext(self.name)[1].lstrip(".")
        if ext not in ("json", "yaml", "yml"):
            raise ValueError(f"cannot extract values from file type = {ext}")
        try:
            contents = self.fsys.read_bytes(self.path)
        except OSError as exc:
            raise OSError(f"reading file content failed: {exc}") from exc
        if ext == "json":
            try:
                document = json.loads(contents)
            except ValueError as exc:
                raise ValueError(
                    f"unmarshalling JSON file failed (path: {self.fsys.path(self.name)}): {exc}"
                ) from exc
        else:
            try:
                document = yaml.safe_load(contents)
            except yaml.YAMLError as exc:
                raise ValueError(
                    f"unmarshalling YAML file failed (path: {self.fsys.path(self.name)}): {exc}"
                ) from exc
        return json_path_get(path, document)


def files(fsys: DirFS, glob: str) -> list[PackageFile]:
    """Find the files matching a glob in the file system."""
    return [PackageFile(fsys, p, fsys.stat(p)) for p in fsys.glob(glob)]