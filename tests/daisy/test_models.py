"""Tests for tree, diff and event models."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from daisy.models import (
    ErrorEvent,
    FullEvent,
    NodeKind,
    ScanOptions,
    TreeDiff,
    TreeNode,
    UpdateEvent,
)


def test_tree_node_is_immutable(make_tree) -> None:
    tree = make_tree("/r", {"a": 1})

    with pytest.raises(ValidationError):
        tree.size = 99


def test_file_nodes_cannot_have_children(make_tree) -> None:
    child = make_tree("/r/a", 1)

    with pytest.raises(ValidationError, match="cannot have children"):
        TreeNode(name="f", path="/r/f", kind=NodeKind.FILE, size=1, depth=1, children=(child,))


def test_payload_shape_omits_children_for_files(make_tree) -> None:
    tree = make_tree("/r", {"a.txt": 3, "sub": {}})

    payload = tree.to_payload()

    assert payload == {
        "name": "r",
        "path": "/r",
        "size": 3,
        "isDirectory": True,
        "depth": 0,
        "children": [
            {"name": "a.txt", "path": "/r/a.txt", "size": 3, "isDirectory": False, "depth": 1},
            {"name": "sub", "path": "/r/sub", "size": 0, "isDirectory": True, "depth": 1, "children": []},
        ],
    }
    assert TreeNode.from_payload(payload) == tree


def test_iter_nodes_visits_every_node(make_tree) -> None:
    tree = make_tree("/r", {"a": {"b": 1, "c": 2}, "d": 3})

    assert [node.name for node in tree.iter_nodes()] == ["r", "a", "c", "b", "d"]


def test_update_events_parse_by_type(make_tree) -> None:
    adapter = TypeAdapter(UpdateEvent)
    tree = make_tree("/r", {})

    full = adapter.validate_python(
        {"type": "full", "generation": 2, "tree": tree, "focus_path": "/r", "diff": TreeDiff()}
    )
    error = adapter.validate_python({"type": "error", "generation": 3, "message": "boom"})

    assert isinstance(full, FullEvent)
    assert isinstance(error, ErrorEvent)
    assert full.to_payload()["diff"] == {"added": [], "removed": [], "changed": []}
    assert error.to_payload() == {"type": "error", "generation": 3, "message": "boom"}


def test_scan_options_validation() -> None:
    assert ScanOptions().max_depth == 10
    assert ScanOptions(max_depth=0).max_depth == 0
    assert "node_modules" in ScanOptions().ignore_patterns

    with pytest.raises(ValidationError):
        ScanOptions(max_depth=-1)
    with pytest.raises(ValidationError):
        ScanOptions(ignore_patterns=[""])
    with pytest.raises(ValidationError):
        ScanOptions(max_concurrency=0)
