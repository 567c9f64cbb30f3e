"""Scan/update cycle for one watched root."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from daisy.cache import SizeCache, normalize_path
from daisy.errors import RootInvalidError, WatchStartError
from daisy.generation import GenerationSequencer
from daisy.ignore import IgnoreFilter
from daisy.models import (
    ErrorEvent,
    FullEvent,
    ScanningEvent,
    TreeDiff,
    TreeNode,
    UpdateEvent,
)
from daisy.reconcile import diff, reanchor
from daisy.scanner import Scanner
from daisy.settings import ScanSettings, WatchSettings
from daisy.utils import format_bytes
from daisy.watcher import ChangeBurst, ChangeWatcher

logger = logging.getLogger(__name__)

Listener = Callable[[UpdateEvent], None]


class MonitorState(str, Enum):
    """Lifecycle of the owning scan/update cycle."""

    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETE = "complete"
    ERROR = "error"


class TreeMonitor:
    """Keep a size-annotated tree of ``root`` current and reconciled.

    Owns its cache, generation counter, watcher, current tree and focus
    path. All of them are only mutated on the event loop; commits of a
    finished scan are additionally serialized by a lock.
    """

    def __init__(
        self,
        root: Path | str,
        scan_settings: ScanSettings | None = None,
        watch_settings: WatchSettings | None = None,
        cache: SizeCache | None = None,
        sequencer: GenerationSequencer | None = None,
    ):
        self.root = normalize_path(root)
        self.scan_settings = scan_settings or ScanSettings()
        self.watch_settings = watch_settings or WatchSettings()
        self.options = self.scan_settings.to_options()

        self.cache = cache or SizeCache(self.root)
        self.sequencer = sequencer or GenerationSequencer()
        self.watcher = ChangeWatcher(
            self.cache,
            debounce=self.watch_settings.debounce_seconds,
            batch_ms=self.watch_settings.batch_ms,
            ignore=IgnoreFilter(self.options.ignore_patterns),
            on_error=self._on_watch_error,
        )

        self.state = MonitorState.IDLE
        self.state_changed_at = time.time()
        self.current_tree: TreeNode | None = None
        self.focus_path: str | None = None
        self.last_diff: TreeDiff | None = None
        self.last_error: str | None = None
        self.watch_error: str | None = None
        self.started_at: float | None = None

        self._listeners: list[Listener] = []
        self._commit_lock = asyncio.Lock()
        self._scan_tasks: set[asyncio.Task[TreeNode | None]] = set()
        self._periodic_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Run the initial scan trigger and begin watching if enabled."""
        if self.started_at is not None:
            return

        self.started_at = time.time()
        self.request_rescan()

        if self.watch_settings.enabled:
            self.watch_error = None
            try:
                self.watcher.start(self.root, self._on_change_burst)
            except WatchStartError as exc:
                self._on_watch_error(exc)

        if self.watch_settings.rescan_interval is not None:
            self._periodic_task = asyncio.create_task(
                self._periodic_loop(self.watch_settings.rescan_interval)
            )

    async def stop(self) -> None:
        """Stop watching and abandon in-flight scans. Idempotent."""
        self.watcher.stop()

        if self._periodic_task is not None:
            self._periodic_task.cancel()
            self._periodic_task = None

        tasks = list(self._scan_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.started_at = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for update events; returns an unsubscribe callable.

        The current full tree, if any, is delivered immediately.
        """
        self._listeners.append(listener)
        if self.current_tree is not None and self.focus_path is not None:
            self._deliver(
                listener,
                FullEvent(
                    generation=self.sequencer.current,
                    tree=self.current_tree,
                    diff=None,
                    focus_path=self.focus_path,
                ),
            )

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def request_rescan(self) -> int:
        """Schedule a scan and return its generation."""
        generation = self.sequencer.next()
        task = asyncio.create_task(self._run_scan(generation))
        self._scan_tasks.add(task)
        task.add_done_callback(self._scan_tasks.discard)
        return generation

    async def rescan(self) -> TreeNode | None:
        """Run one scan to completion; None if it failed or was superseded."""
        return await self._run_scan(self.sequencer.next())

    async def wait_idle(self) -> None:
        """Wait until every in-flight scan has finished."""
        while self._scan_tasks:
            await asyncio.gather(*list(self._scan_tasks), return_exceptions=True)

    def set_focus(self, path: str | None) -> str | None:
        """Move the focus, snapping to the nearest node of the current tree."""
        if self.current_tree is None:
            self.focus_path = path
            return path
        self.focus_path = reanchor(path, self.current_tree)
        return self.focus_path

    def is_watching(self) -> bool:
        return self.watcher.is_active()

    def info(self) -> dict[str, Any]:
        """Describe this monitor for transport consumers."""
        return {
            "path": self.root,
            "depth": self.options.max_depth,
            "ignore": list(self.options.ignore_patterns),
            "watching": self.is_watching(),
            "started_at": self.started_at,
            "generation": self.sequencer.current,
            "state": self.state.value,
            "watch_error": self.watch_error,
        }

    async def _run_scan(self, generation: int) -> TreeNode | None:
        self._transition(MonitorState.SCANNING)
        self._emit(ScanningEvent(generation=generation, progress=0))

        scanner = Scanner(
            self.options,
            cache=self.cache,
            generation=generation,
            on_progress=self._emit,
            on_snapshot=self._emit,
            previous=self.current_tree,
        )
        try:
            tree = await scanner.scan(self.root)
        except RootInvalidError as exc:
            if not self.sequencer.is_current(generation):
                logger.debug("Dropping failure of superseded scan %d", generation)
                return None
            self.last_error = str(exc)
            self._transition(MonitorState.ERROR)
            logger.error("Scan of %s failed: %s", self.root, exc)
            self._emit(ErrorEvent(generation=generation, message=str(exc)))
            return None

        async with self._commit_lock:
            if not self.sequencer.is_current(generation):
                logger.debug("Dropping result of superseded scan %d", generation)
                return None

            if self.options.cache_enabled:
                self.cache.update(scanner.fresh_entries)

            tree_diff = diff(self.current_tree, tree)
            focus = reanchor(self.focus_path, tree)

            self.current_tree = tree
            self.focus_path = focus
            self.last_diff = tree_diff
            self.last_error = None

            self._transition(MonitorState.COMPLETE)
            logger.info(
                "Scanned %s: %s in %d entries (generation %d)",
                self.root,
                format_bytes(tree.size),
                scanner.scanned,
                generation,
            )
            self._emit(FullEvent(generation=generation, tree=tree, diff=tree_diff, focus_path=focus))
            self._transition(MonitorState.IDLE)
            return tree

    def _emit(self, event: UpdateEvent) -> None:
        if not self.sequencer.is_current(event.generation):
            return
        for listener in list(self._listeners):
            self._deliver(listener, event)

    def _deliver(self, listener: Listener, event: UpdateEvent) -> None:
        try:
            listener(event)
        except Exception:
            logger.exception("Update listener failed on %s event", event.type)

    def _on_watch_error(self, exc: WatchStartError) -> None:
        """Fall back to scan-only operation and tell listeners why."""
        self.watch_error = str(exc)
        logger.warning("Watching disabled, continuing with scans only: %s", exc)
        self._emit(
            ErrorEvent(
                generation=self.sequencer.current,
                message=f"watching disabled: {exc}",
            )
        )

    def _on_change_burst(self, burst: ChangeBurst) -> None:
        logger.info("Change detected under %s, rescanning", self.root)
        self.request_rescan()

    async def _periodic_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.request_rescan()

    def _transition(self, new_state: MonitorState) -> None:
        self.state = new_state
        self.state_changed_at = time.time()
