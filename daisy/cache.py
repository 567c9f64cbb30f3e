"""Directory size cache keyed by path string."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from daisy.models import CacheEntry

logger = logging.getLogger(__name__)


def normalize_path(path: str | os.PathLike[str]) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path)))


class SizeCache:
    """Scalar side-table of ``path -> (size, mtime)`` for directories.

    Entries are only valid while the recorded mtime equals the directory's
    current mtime. Invalidating a path also drops every ancestor up to
    ``root`` since their aggregates derive from it.
    """

    def __init__(self, root: str | os.PathLike[str] | None = None):
        self.root = normalize_path(root) if root is not None else None
        self._entries: dict[str, CacheEntry] = {}

    def get(self, path: str) -> CacheEntry | None:
        return self._entries.get(path)

    def set(self, path: str, size: int, mtime: int) -> None:
        self._entries[path] = CacheEntry(size=size, mtime=mtime)

    def update(self, entries: Mapping[str, CacheEntry]) -> None:
        self._entries.update(entries)

    def invalidate(self, path: str | os.PathLike[str]) -> int:
        """Drop ``path`` and its ancestors. Returns the number of entries removed."""
        current = normalize_path(path)
        removed = 0
        while True:
            if self._entries.pop(current, None) is not None:
                removed += 1
            if current == self.root:
                break
            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent

        logger.debug("Invalidated %d cache entries for %s", removed, path)
        return removed

    def invalidate_all(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries
