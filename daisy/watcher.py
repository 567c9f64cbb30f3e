"""Debounced filesystem watcher that invalidates cached sizes."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from watchfiles import Change, awatch

from daisy.cache import SizeCache, normalize_path
from daisy.errors import WatchStartError
from daisy.ignore import IgnoreFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeBurst:
    """Raw events coalesced over one debounce window."""

    paths: tuple[str, ...] = ()
    everything: bool = False


BurstCallback = Callable[[ChangeBurst], None]
ErrorCallback = Callable[[WatchStartError], None]


class ChangeWatcher:
    """Watch a root recursively and report quiet-period bursts of changes.

    Every raw event pushes an explicit deadline ``debounce`` seconds out.
    When the deadline passes without further events the affected cache
    entries are invalidated and ``on_change_burst`` runs exactly once.

    Event paths are reported under ``root`` as given, even when the native
    watch reports them under the root's symlink-resolved location. A native
    watch that fails after ``start`` returned is reported to ``on_error``.
    """

    def __init__(
        self,
        cache: SizeCache | None = None,
        *,
        debounce: float = 0.3,
        batch_ms: int = 50,
        ignore: IgnoreFilter | None = None,
        on_error: ErrorCallback | None = None,
    ):
        self.cache = cache
        self.debounce = debounce
        self.batch_ms = batch_ms
        self.ignore = ignore
        self.on_error = on_error
        self.root: Path | None = None
        self._real_root: str | None = None

        self._on_burst: BurstCallback | None = None
        self._active = False
        self._stop_event: asyncio.Event | None = None
        self._watch_task: asyncio.Task[None] | None = None
        self._timer_task: asyncio.Task[None] | None = None
        self._deadline: float | None = None
        self._pending: set[str] = set()
        self._pending_all = False

    def start(self, path: Path | str, on_change_burst: BurstCallback) -> None:
        """Begin watching ``path``. Restarts cleanly when already active."""
        root = Path(normalize_path(path))
        if not root.is_dir():
            raise WatchStartError(str(root), "not a directory")

        if self._active:
            self.stop()

        loop = asyncio.get_running_loop()
        self.root = root
        self._real_root = os.path.realpath(root)
        self._on_burst = on_change_burst
        self._stop_event = asyncio.Event()
        self._active = True
        self._watch_task = loop.create_task(self._watch(self._stop_event))
        self._watch_task.add_done_callback(self._on_watch_done)
        logger.info("Watching %s for changes", root)

    def stop(self) -> None:
        """Stop watching. No burst callback fires after this returns."""
        if not self._active and self._watch_task is None:
            return

        self._active = False
        if self._stop_event is not None:
            self._stop_event.set()
        for task in (self._watch_task, self._timer_task):
            if task is not None and not task.done():
                task.cancel()

        self._watch_task = None
        self._timer_task = None
        self._deadline = None
        self._pending.clear()
        self._pending_all = False
        logger.info("Stopped watching %s", self.root)

    def is_active(self) -> bool:
        return self._active

    def notify(self, path: str | None = None) -> None:
        """Record one raw event; ``None`` means the location is unknown."""
        if not self._active:
            return

        if path is None:
            self._pending_all = True
        else:
            self._pending.add(path)

        loop = asyncio.get_running_loop()
        self._deadline = loop.time() + self.debounce
        if self._timer_task is None or self._timer_task.done():
            self._timer_task = loop.create_task(self._await_deadline())

    async def _watch(self, stop_event: asyncio.Event) -> None:
        async for changes in awatch(
            self.root,
            watch_filter=self.should_watch,
            debounce=self.batch_ms,
            step=min(self.batch_ms, 50),
            stop_event=stop_event,
            recursive=True,
        ):
            for _change_type, path_str in changes:
                self.notify(self.under_root(path_str))

    def under_root(self, path: str) -> str:
        """Map ``path`` onto ``root`` when it lies under the resolved root."""
        path = normalize_path(path)
        if self.root is None or self._real_root is None:
            return path

        root = str(self.root)
        if self._real_root == root:
            return path
        if path == self._real_root:
            return root
        if path.startswith(self._real_root + os.sep):
            return root + path[len(self._real_root):]
        return path

    async def _await_deadline(self) -> None:
        loop = asyncio.get_running_loop()
        while self._deadline is not None:
            remaining = self._deadline - loop.time()
            if remaining > 0:
                await asyncio.sleep(remaining)
                continue

            self._deadline = None
            self._flush()

    def _flush(self) -> None:
        if not self._active or self._on_burst is None:
            return

        burst = ChangeBurst(paths=tuple(sorted(self._pending)), everything=self._pending_all)
        self._pending = set()
        self._pending_all = False

        if self.cache is not None:
            if burst.everything:
                self.cache.invalidate_all()
            else:
                for path in burst.paths:
                    self.cache.invalidate(path)

        logger.debug("Change burst under %s: %d paths", self.root, len(burst.paths))
        try:
            self._on_burst(burst)
        except Exception:
            logger.exception("Change burst callback failed for %s", self.root)

    def _on_watch_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or task is not self._watch_task:
            return

        self._active = False
        self._watch_task = None
        if self._timer_task is not None and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = None

        exc = task.exception()
        if exc is None:
            return

        logger.warning(
            "Watching disabled, native watch failed",
            extra={"root": str(self.root), "error": repr(exc)},
        )
        if self.on_error is not None:
            self.on_error(WatchStartError(str(self.root), str(exc) or type(exc).__name__))

    def should_watch(self, change: Change, path: str) -> bool:
        """Drop events under ignored names before they reach the debounce."""
        if self.ignore is None or self.root is None:
            return True

        try:
            rel_parts = Path(self.under_root(path)).relative_to(self.root).parts
        except ValueError:
            return True

        return not any(self.ignore.matches(part) for part in rel_parts)
