"""Recursive directory scanner producing immutable size-annotated trees."""

from __future__ import annotations

import asyncio
import logging
import os
import stat
import time
from dataclasses import dataclass, field
from typing import Callable

from daisy.cache import SizeCache, normalize_path
from daisy.errors import RootInvalidError
from daisy.ignore import IgnoreFilter
from daisy.models import CacheEntry, NodeKind, ScanningEvent, ScanOptions, SnapshotEvent, TreeNode
from daisy.utils import format_bytes

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanningEvent], None]
SnapshotCallback = Callable[[SnapshotEvent], None]


def _sort_key(node: TreeNode) -> tuple[int, str]:
    return (-node.size, node.name)


@dataclass(slots=True)
class _Entry:
    """Directory entry that survived the ignore filter and lstat."""

    name: str
    path: str
    is_dir: bool
    size: int
    mtime: int


@dataclass(slots=True)
class _DirBuilder:
    """Mutable directory under construction; frozen into a TreeNode when done."""

    name: str
    path: str
    depth: int
    children: list[TreeNode] = field(default_factory=list)
    pending: dict[str, _DirBuilder] = field(default_factory=dict)

    def freeze(self) -> TreeNode:
        children = list(self.children)
        children.extend(builder.freeze() for builder in list(self.pending.values()))
        children.sort(key=_sort_key)
        return TreeNode(
            name=self.name,
            path=self.path,
            kind=NodeKind.DIRECTORY,
            size=sum(child.size for child in children),
            depth=self.depth,
            children=tuple(children),
        )


class Scanner:
    """Depth-first scanner with post-order size aggregation.

    Subdirectories of one level are scanned concurrently; the number of
    outstanding filesystem operations is bounded by ``max_concurrency``.
    Entry-level failures drop only that entry. A missing, non-directory or
    unlistable root raises :class:`RootInvalidError`.

    Cached sizes are consulted only when no snapshots are requested, since
    a cache hit yields a directory without live children. When a previous
    full tree is supplied its subtree is reused for such hits.
    """

    def __init__(
        self,
        options: ScanOptions | None = None,
        *,
        cache: SizeCache | None = None,
        generation: int = 0,
        on_progress: ProgressCallback | None = None,
        on_snapshot: SnapshotCallback | None = None,
        previous: TreeNode | None = None,
    ):
        self.options = options or ScanOptions()
        self.ignore = IgnoreFilter(self.options.ignore_patterns)
        self.cache = cache
        self.generation = generation
        self.on_progress = on_progress
        self.on_snapshot = on_snapshot if self.options.snapshot_every > 0 else None
        self.use_cache = self.options.cache_enabled and cache is not None and self.on_snapshot is None

        self.scanned = 0
        self.fresh_entries: dict[str, CacheEntry] = {}
        self._previous = previous
        self._previous_index: dict[str, TreeNode] | None = None
        self._semaphore = asyncio.Semaphore(self.options.max_concurrency)
        self._root: _DirBuilder | None = None
        self._last_progress_at = float("-inf")
        self._last_snapshot_at = float("-inf")

    async def scan(self, root: str | os.PathLike[str]) -> TreeNode:
        """Scan ``root`` and return the complete tree."""
        root_path = normalize_path(root)
        try:
            root_stat = await asyncio.to_thread(os.stat, root_path)
        except FileNotFoundError as exc:
            raise RootInvalidError(root_path, "scan root does not exist") from exc
        except OSError as exc:
            raise RootInvalidError(root_path, f"cannot stat scan root ({exc.strerror})") from exc

        if not stat.S_ISDIR(root_stat.st_mode):
            raise RootInvalidError(root_path, "scan root is not a directory")

        started = time.monotonic()
        name = os.path.basename(root_path) or root_path
        tree = await self._scan_directory(name, root_path, 0, root_stat.st_mtime_ns, parent=None)

        logger.debug(
            "Scanned %s: %s across %d entries in %.3fs (generation %d)",
            root_path,
            format_bytes(tree.size),
            self.scanned,
            time.monotonic() - started,
            self.generation,
        )
        return tree

    async def _scan_directory(
        self,
        name: str,
        path: str,
        depth: int,
        mtime: int,
        parent: _DirBuilder | None,
    ) -> TreeNode:
        self._visited()

        if depth >= self.options.max_depth:
            return TreeNode(name=name, path=path, kind=NodeKind.DIRECTORY, size=0, depth=depth)

        if self.use_cache:
            cached = self.cache.get(path)
            if cached is not None and cached.mtime == mtime:
                return self._from_cache(name, path, depth, cached)

        builder = _DirBuilder(name=name, path=path, depth=depth)
        if parent is None:
            self._root = builder
        else:
            parent.pending[path] = builder

        try:
            entries = await self._list(path)
        except OSError as exc:
            if parent is None:
                raise RootInvalidError(path, f"cannot list scan root ({exc.strerror})") from exc
            raise

        subdirectories: list[_Entry] = []
        for entry in entries:
            if entry.is_dir:
                subdirectories.append(entry)
                continue
            builder.children.append(
                TreeNode(
                    name=entry.name,
                    path=entry.path,
                    kind=NodeKind.FILE,
                    size=entry.size,
                    depth=depth + 1,
                )
            )
            self._visited()

        await asyncio.gather(
            *(self._scan_child(entry, depth + 1, builder) for entry in subdirectories)
        )

        node = builder.freeze()
        if self.options.cache_enabled:
            self.fresh_entries[path] = CacheEntry(size=node.size, mtime=mtime)
        return node

    async def _scan_child(self, entry: _Entry, depth: int, parent: _DirBuilder) -> None:
        try:
            node = await self._scan_directory(entry.name, entry.path, depth, entry.mtime, parent)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", entry.path, exc)
            return
        finally:
            parent.pending.pop(entry.path, None)

        parent.children.append(node)
        self._maybe_snapshot()

    def _from_cache(self, name: str, path: str, depth: int, cached: CacheEntry) -> TreeNode:
        self.fresh_entries[path] = cached
        previous = self._previous_node(path)
        if (
            previous is not None
            and previous.is_directory
            and previous.depth == depth
            and previous.size == cached.size
        ):
            logger.debug("Cache hit for %s, reusing previous subtree", path)
            return previous

        logger.debug("Cache hit for %s", path)
        return TreeNode(name=name, path=path, kind=NodeKind.DIRECTORY, size=cached.size, depth=depth)

    def _previous_node(self, path: str) -> TreeNode | None:
        if self._previous is None:
            return None
        if self._previous_index is None:
            self._previous_index = {node.path: node for node in self._previous.iter_nodes()}
        return self._previous_index.get(path)

    async def _list(self, path: str) -> list[_Entry]:
        async with self._semaphore:
            return await asyncio.to_thread(self._read_entries, path)

    def _read_entries(self, path: str) -> list[_Entry]:
        """List ``path`` and lstat each surviving entry. Runs in a worker thread."""
        entries: list[_Entry] = []
        with os.scandir(path) as iterator:
            for dir_entry in iterator:
                if self.ignore.matches(dir_entry.name):
                    continue

                try:
                    entry_stat = dir_entry.stat(follow_symlinks=False)
                except OSError as exc:
                    logger.debug("Skipping unreadable entry %s: %s", dir_entry.path, exc)
                    continue

                is_dir = stat.S_ISDIR(entry_stat.st_mode)
                entries.append(
                    _Entry(
                        name=dir_entry.name,
                        path=dir_entry.path,
                        is_dir=is_dir,
                        size=0 if is_dir else entry_stat.st_size,
                        mtime=entry_stat.st_mtime_ns,
                    )
                )
        return entries

    def _visited(self) -> None:
        self.scanned += 1
        self._maybe_progress()
        self._maybe_snapshot()

    def _maybe_progress(self) -> None:
        if self.on_progress is None or self.scanned % self.options.progress_every:
            return
        now = time.monotonic()
        if now - self._last_progress_at < self.options.min_emit_interval:
            return
        self._last_progress_at = now
        self.on_progress(ScanningEvent(generation=self.generation, progress=self.scanned))

    def _maybe_snapshot(self) -> None:
        if self.on_snapshot is None or self._root is None:
            return
        if self.scanned % self.options.snapshot_every:
            return
        now = time.monotonic()
        if now - self._last_snapshot_at < self.options.min_emit_interval:
            return
        self._last_snapshot_at = now
        self.on_snapshot(
            SnapshotEvent(generation=self.generation, tree=self._root.freeze(), scanned=self.scanned)
        )
