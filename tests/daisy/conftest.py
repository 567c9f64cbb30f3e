"""Pytest fixtures for daisy tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable

import pytest

from daisy.models import NodeKind, TreeNode

Layout = dict[str, Any]


def _write_layout(base: Path, layout: Layout) -> None:
    for name, value in layout.items():
        target = base / name
        if isinstance(value, dict):
            target.mkdir(parents=True, exist_ok=True)
            _write_layout(target, value)
        else:
            target.write_bytes(b"x" * value)


def _node_from_layout(path: str, layout: Layout | int, depth: int) -> TreeNode:
    name = os.path.basename(path) or path
    if isinstance(layout, int):
        return TreeNode(name=name, path=path, kind=NodeKind.FILE, size=layout, depth=depth)

    children = sorted(
        (_node_from_layout(os.path.join(path, child), value, depth + 1) for child, value in layout.items()),
        key=lambda node: (-node.size, node.name),
    )
    return TreeNode(
        name=name,
        path=path,
        kind=NodeKind.DIRECTORY,
        size=sum(child.size for child in children),
        depth=depth,
        children=tuple(children),
    )


@pytest.fixture
def make_fs(tmp_path: Path) -> Callable[[Layout], Path]:
    """Materialize ``{"name": size | {...}}`` under a fresh root directory."""

    def _make(layout: Layout) -> Path:
        root = tmp_path / "root"
        root.mkdir(exist_ok=True)
        _write_layout(root, layout)
        return root

    return _make


@pytest.fixture
def make_tree() -> Callable[[str, Layout], TreeNode]:
    """Build an in-memory tree from the same layout format, rooted at ``path``."""

    def _make(path: str, layout: Layout) -> TreeNode:
        return _node_from_layout(path, layout, 0)

    return _make


def assert_sizes_aggregate(node: TreeNode) -> None:
    for child in node.children:
        assert_sizes_aggregate(child)
    if node.is_directory:
        assert node.size == sum(child.size for child in node.children)
        keys = [(-child.size, child.name) for child in node.children]
        assert keys == sorted(keys)


@pytest.fixture
def check_tree() -> Callable[[TreeNode], None]:
    """Assert the aggregate-size and ordering invariants on a complete tree."""
    return assert_sizes_aggregate
