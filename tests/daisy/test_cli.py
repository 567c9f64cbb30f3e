"""Tests for the daisy CLI command surface."""

from __future__ import annotations

import json
from pathlib import Path

from daisy.cli import build_parser, main


def test_scan_prints_summary(make_fs, capsys) -> None:
    root = make_fs({"big.bin": 2048, "docs": {"a.md": 10}})

    exit_code = main(["scan", str(root)])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == f"{root}\t2.0 KB"
    assert lines[1].endswith("big.bin")
    assert lines[2].endswith("docs/")


def test_scan_json_outputs_tree_payload(make_fs, capsys) -> None:
    root = make_fs({"a.txt": 3, "node_modules": {"x.js": 100}})

    exit_code = main(["scan", str(root), "--json"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["path"] == str(root)
    assert payload["size"] == 3
    assert [child["name"] for child in payload["children"]] == ["a.txt"]


def test_scan_with_extra_ignore_and_depth(make_fs, capsys) -> None:
    root = make_fs({"keep.txt": 1, "skip.log": 50, "a": {"b": {"c.txt": 9}}})

    exit_code = main(["scan", str(root), "--json", "-i", "*.log", "--depth", "2"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["size"] == 1
    names = [child["name"] for child in payload["children"]]
    assert "skip.log" not in names


def test_scan_missing_root_exits_with_error(tmp_path: Path, capsys) -> None:
    exit_code = main(["scan", str(tmp_path / "missing")])

    assert exit_code == 1
    assert "does not exist" in capsys.readouterr().out


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["watch"])

    assert args.path == "."
    assert args.debounce_ms == 300
    assert args.ignore is None
