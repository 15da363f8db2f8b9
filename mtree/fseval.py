"""Pluggable filesystem access used when walking and checking trees."""

from __future__ import annotations

import os
from typing import BinaryIO, Callable, Protocol, runtime_checkable

__all__ = ["FsEval", "DefaultFsEval"]

KeywordFunc = Callable[..., list]


@runtime_checkable
class FsEval(Protocol):
    """How filesystem operations are carried out.

    Implementations must keep the semantics described for each method.
    """

    def open(self, path: str) -> BinaryIO:
        """Open ``path`` for binary reading."""

    def lstat(self, path: str) -> os.stat_result:
        """Stat ``path`` without following a final symbolic link."""

    def readdir(self, path: str) -> list[tuple[str, os.stat_result]]:
        """List a directory as ``(name, lstat result)`` pairs."""

    def keyword_func(self, fn: KeywordFunc) -> KeywordFunc:
        """Return a wrapper around ``fn`` that computes the same keyword."""


class DefaultFsEval:
    """Filesystem access straight through the ``os`` module."""

    def open(self, path: str) -> BinaryIO:
        """Open ``path`` for binary reading."""
        return open(path, "rb")

    def lstat(self, path: str) -> os.stat_result:
        """Stat ``path`` without following a final symbolic link."""
        return os.lstat(path)

    def readdir(self, path: str) -> list[tuple[str, os.stat_result]]:
        """List a directory as ``(name, lstat result)`` pairs."""
        with os.scandir(path) as entries:
            return [(entry.name, entry.stat(follow_symlinks=False)) for entry in entries]

    def keyword_func(self, fn: KeywordFunc) -> KeywordFunc:
        """Return ``fn`` unchanged."""
        return fn