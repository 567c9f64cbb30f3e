"""Tests for the directory size cache and ancestor invalidation."""

from __future__ import annotations

from daisy.cache import SizeCache
from daisy.models import CacheEntry


def test_get_set_roundtrip() -> None:
    cache = SizeCache("/data")

    cache.set("/data/a", 100, 12345)

    assert cache.get("/data/a") == CacheEntry(size=100, mtime=12345)
    assert cache.get("/data/b") is None
    assert "/data/a" in cache
    assert len(cache) == 1


def test_invalidate_drops_path_and_ancestors_up_to_root() -> None:
    cache = SizeCache("/data")
    for path in ("/", "/data", "/data/a", "/data/a/b", "/data/a/b/c", "/data/other"):
        cache.set(path, 1, 1)

    removed = cache.invalidate("/data/a/b/file.txt")

    assert removed == 3
    assert cache.get("/data/a/b") is None
    assert cache.get("/data/a") is None
    assert cache.get("/data") is None
    # descendants and siblings are untouched, and nothing above the root
    assert cache.get("/data/a/b/c") is not None
    assert cache.get("/data/other") is not None
    assert cache.get("/") is not None


def test_invalidate_without_root_walks_to_filesystem_top() -> None:
    cache = SizeCache()
    cache.set("/", 1, 1)
    cache.set("/x", 1, 1)

    cache.invalidate("/x/y")

    assert len(cache) == 0


def test_invalidate_all_clears_everything() -> None:
    cache = SizeCache("/data")
    cache.update({"/data": CacheEntry(size=1, mtime=1), "/data/a": CacheEntry(size=2, mtime=2)})

    cache.invalidate_all()

    assert len(cache) == 0
