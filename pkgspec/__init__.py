"""Semantic checks for package directories, with file system, JSONPath and patch helpers."""

__version__ = "0.1.0"