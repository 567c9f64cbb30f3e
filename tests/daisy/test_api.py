"""Tests for the one-shot and continuous entry points."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from daisy import watcher as watcher_module
from daisy.api import scan, watch
from daisy.cache import SizeCache
from daisy.errors import WatchStartError
from daisy.models import ScanOptions
from daisy.settings import WatchSettings


@pytest.mark.asyncio
async def test_scan_without_cache_leaves_nothing_behind(make_fs) -> None:
    root = make_fs({"a": {"b.txt": 3}})

    tree = await scan(root)

    assert tree.size == 3


@pytest.mark.asyncio
async def test_scan_with_caching_disabled_does_not_write_cache(make_fs) -> None:
    root = make_fs({"a": {"b.txt": 3}})
    cache = SizeCache(root)

    await scan(root, ScanOptions(cache_enabled=False), cache=cache)

    assert len(cache) == 0


@pytest.mark.asyncio
async def test_watch_returns_stop_handle(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    async def awatch(*paths, stop_event=None, **kwargs):
        while not stop_event.is_set():
            await asyncio.sleep(0.01)
        return
        yield

    monkeypatch.setattr(watcher_module, "awatch", awatch)
    bursts = []

    stop = watch(tmp_path, bursts.append, settings=WatchSettings(debounce_ms=20), ignore_patterns=[".git"])
    stop()
    stop()
    await asyncio.sleep(0.05)

    assert bursts == []


@pytest.mark.asyncio
async def test_watch_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(WatchStartError):
        watch(tmp_path / "missing", lambda burst: None)
