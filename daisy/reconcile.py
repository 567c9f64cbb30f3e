"""Reconciliation of successive full trees: diffs and focus re-anchoring.

Everything here works on path strings, never on node identity, so two
independently scanned trees can be compared by value.
"""

from __future__ import annotations

import os

from daisy.models import SizeChange, TreeDiff, TreeNode


def collect_paths(tree: TreeNode) -> list[str]:
    """Return every path of ``tree`` in pre-order."""
    return [node.path for node in tree.iter_nodes()]


def _size_index(tree: TreeNode) -> dict[str, int]:
    return {node.path: node.size for node in tree.iter_nodes()}


def find_node(tree: TreeNode, path: str) -> TreeNode | None:
    """Locate the node at ``path``, descending only through its ancestors."""
    node = tree
    while node.path != path:
        for child in node.children:
            if child.path == path or path.startswith(_as_prefix(child.path)):
                node = child
                break
        else:
            return None
    return node


def _as_prefix(path: str) -> str:
    return path if path.endswith(os.sep) else path + os.sep


def diff(previous: TreeNode | None, new: TreeNode) -> TreeDiff:
    """Compute paths added, removed and resized from ``previous`` to ``new``.

    Without a previous tree nothing counts as added. Only complete trees
    should be passed in; partial snapshots would produce unstable results.
    """
    if previous is None:
        return TreeDiff()

    before = _size_index(previous)
    after = _size_index(new)

    added = [path for path in after if path not in before]
    removed = [path for path in before if path not in after]
    changed = [
        SizeChange(path=path, size=size, previous_size=before[path])
        for path, size in after.items()
        if path in before and before[path] != size
    ]
    return TreeDiff(added=added, removed=removed, changed=changed)


def reanchor(previous_focus: str | None, new_tree: TreeNode) -> str:
    """Resolve the focus path to a node that exists in ``new_tree``.

    The focus stays put when still present, otherwise it climbs to the
    nearest surviving ancestor, falling back to the root.
    """
    if not previous_focus:
        return new_tree.path

    paths = set(collect_paths(new_tree))
    current = previous_focus
    while True:
        if current in paths:
            return current
        parent = os.path.dirname(current)
        if not parent or parent == current:
            return new_tree.path
        current = parent


def focus_chain(tree: TreeNode, focus_path: str | None) -> list[TreeNode]:
    """Nodes from the root down to ``focus_path`` (the zoom stack).

    Returns ``[tree]`` when the focus is unset or not part of the tree.
    """
    if not focus_path:
        return [tree]

    chain = [tree]
    node = tree
    while node.path != focus_path:
        for child in node.children:
            if child.path == focus_path or focus_path.startswith(_as_prefix(child.path)):
                node = child
                chain.append(child)
                break
        else:
            return [tree]
    return chain


def removed_highlight_paths(removed: list[str], new_tree: TreeNode) -> set[str]:
    """Ancestors of removed paths that survive in ``new_tree``.

    A renderer marks these briefly so that a shrinking region is visible.
    """
    if not removed:
        return set()

    paths = set(collect_paths(new_tree))
    highlights: set[str] = set()
    for removed_path in removed:
        current = removed_path
        while True:
            parent = os.path.dirname(current)
            if not parent or parent == current:
                break
            if parent in paths:
                highlights.add(parent)
            current = parent
    return highlights


def added_nodes(tree_diff: TreeDiff, tree: TreeNode) -> list[TreeNode]:
    """Nodes of ``tree`` behind each path in ``tree_diff.added``."""
    added = set(tree_diff.added)
    if not added:
        return []
    return [node for node in tree.iter_nodes() if node.path in added]
