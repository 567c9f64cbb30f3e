"""Tests for name-based ignore rules."""

from __future__ import annotations

from hypothesis import given, strategies as st

from daisy.ignore import DEFAULT_IGNORE, IgnoreFilter


def test_exact_prefix_and_suffix_patterns() -> None:
    ignore = IgnoreFilter(["node_modules", "*.swp", "tmp*"])

    assert ignore.matches("node_modules")
    assert ignore.matches("notes.swp")
    assert ignore.matches("tmp-build")
    assert not ignore.matches("node_modules2")
    assert not ignore.matches("notes.swpx")
    assert not ignore.matches("atmp")


def test_empty_filter_matches_nothing() -> None:
    ignore = IgnoreFilter()

    assert not ignore.matches("anything")
    assert not ignore("")


def test_default_filter_covers_common_noise() -> None:
    ignore = IgnoreFilter.default()

    for name in (".git", "__pycache__", ".DS_Store", "dist", "file.swo"):
        assert ignore.matches(name)
    assert not ignore.matches("src")
    assert ignore.patterns == DEFAULT_IGNORE


def test_lone_star_matches_everything() -> None:
    assert IgnoreFilter(["*"]).matches("whatever.txt")


@given(name=st.text(min_size=1, max_size=30))
def test_exact_pattern_matches_only_itself(name: str) -> None:
    if name.startswith("*") or name.endswith("*"):
        return
    ignore = IgnoreFilter([name])

    assert ignore.matches(name)
    assert not ignore.matches(name + "_")


@given(stem=st.text(max_size=20), suffix=st.text(alphabet="abc.", min_size=1, max_size=5))
def test_suffix_pattern_matches_any_stem(stem: str, suffix: str) -> None:
    assert IgnoreFilter([f"*{suffix}"]).matches(stem + suffix)
