"""One-shot and continuous entry points used by transport layers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

from daisy.cache import SizeCache
from daisy.ignore import IgnoreFilter
from daisy.models import ScanOptions, TreeNode
from daisy.scanner import ProgressCallback, Scanner, SnapshotCallback
from daisy.settings import WatchSettings
from daisy.watcher import BurstCallback, ChangeWatcher, ErrorCallback


async def scan(
    root: str | os.PathLike[str],
    options: ScanOptions | None = None,
    *,
    cache: SizeCache | None = None,
    generation: int = 0,
    on_progress: ProgressCallback | None = None,
    on_snapshot: SnapshotCallback | None = None,
    previous: TreeNode | None = None,
) -> TreeNode:
    """Scan ``root`` once and return its complete tree.

    Fresh directory sizes are written back to ``cache`` when one is given
    and caching is enabled.

    Raises:
        RootInvalidError: If ``root`` is missing, not a directory or unreadable.
    """
    scanner = Scanner(
        options,
        cache=cache,
        generation=generation,
        on_progress=on_progress,
        on_snapshot=on_snapshot,
        previous=previous,
    )
    tree = await scanner.scan(root)
    if cache is not None and scanner.options.cache_enabled:
        cache.update(scanner.fresh_entries)
    return tree


def watch(
    root: str | os.PathLike[str],
    on_burst: BurstCallback,
    *,
    cache: SizeCache | None = None,
    settings: WatchSettings | None = None,
    ignore_patterns: list[str] | None = None,
    on_error: ErrorCallback | None = None,
) -> Callable[[], None]:
    """Watch ``root`` and call ``on_burst`` once per debounced burst of changes.

    Must be called from a running event loop. Returns the watcher's
    ``stop`` which guarantees no further callbacks once it returns. A native
    watch that fails later is reported to ``on_error``.

    Raises:
        WatchStartError: If ``root`` cannot be watched.
    """
    settings = settings or WatchSettings()
    watcher = ChangeWatcher(
        cache,
        debounce=settings.debounce_seconds,
        batch_ms=settings.batch_ms,
        ignore=IgnoreFilter(ignore_patterns) if ignore_patterns is not None else None,
        on_error=on_error,
    )
    watcher.start(Path(root), on_burst)
    return watcher.stop
