"""A directory-rooted file system that can report paths relative to its location."""

from __future__ import annotations

import glob as _glob
import os
import posixpath


def _join(*elements: str) -> str:
    parts = [e for e in elements if e]
    if not parts:
        return ""
    return posixpath.normpath("/".join(parts))


class DirFS:
    """Read-only access to files below a root directory."""

    def __init__(self, root: str) -> None:
        self.root = root

    def path(self, *names: str) -> str:
        """Return the location of the given names, joined to the root."""
        return _join(self.root, *names)

    def _real(self, name: str) -> str:
        if name in ("", "."):
            return self.root
        return os.path.join(self.root, name)

    def read_bytes(self, name: str) -> bytes:
        with open(self._real(name), "rb") as f:
            return f.read()

    def open(self, name: str, mode: str = "rb"):
        return open(self._real(name), mode)

    def read_dir(self, name: str) -> list[os.DirEntry]:
        """Return the entries of a directory, sorted by name."""
        with os.scandir(self._real(name)) as it:
            return sorted(it, key=lambda e: e.name)

    def stat(self, name: str) -> os.stat_result:
        return os.stat(self._real(name))

    def glob(self, pattern: str) -> list[str]:
        """Return the sorted relative paths matching a pattern."""
        matches = _glob.glob(pattern, root_dir=self.root)
        return sorted(m.replace(os.sep, "/") for m in matches)