"""Command-line interface for one-shot scans and live watching."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any

from daisy.api import scan
from daisy.errors import RootInvalidError
from daisy.ignore import DEFAULT_IGNORE
from daisy.models import UpdateEvent
from daisy.monitor import TreeMonitor
from daisy.settings import ScanSettings, WatchSettings
from daisy.utils import format_bytes


def _scan_settings(args: argparse.Namespace) -> ScanSettings:
    overrides: dict[str, Any] = {}
    if args.depth is not None:
        overrides["max_depth"] = args.depth

    base = [] if args.no_default_ignore else list(DEFAULT_IGNORE)
    if args.ignore or args.no_default_ignore:
        overrides["ignore_patterns"] = base + list(args.ignore or [])

    return ScanSettings(**overrides)


async def _run_scan(args: argparse.Namespace) -> int:
    options = _scan_settings(args).to_options()
    try:
        tree = await scan(args.path, options)
    except RootInvalidError as exc:
        print(f"Error: {exc}")
        return 1

    if args.json:
        print(json.dumps(tree.to_payload(), indent=2))
        return 0

    print(f"{tree.path}\t{format_bytes(tree.size)}")
    for child in tree.children[: args.top]:
        suffix = "/" if child.is_directory else ""
        print(f"  {format_bytes(child.size):>10}  {child.name}{suffix}")
    return 0


async def _run_watch(args: argparse.Namespace) -> int:
    monitor = TreeMonitor(
        args.path,
        scan_settings=_scan_settings(args),
        watch_settings=WatchSettings(debounce_ms=args.debounce_ms),
    )

    def print_event(event: UpdateEvent) -> None:
        print(json.dumps(event.to_payload()), flush=True)

    monitor.subscribe(print_event)
    await monitor.start()
    try:
        await asyncio.Event().wait()
    finally:
        await monitor.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="daisy")
    parser.add_argument("--log-level", default="WARNING")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("path", nargs="?", default=".")
    common.add_argument("-d", "--depth", type=int, default=None, help="Max directory depth to scan")
    common.add_argument("-i", "--ignore", action="append", help="Ignore pattern (repeatable)")
    common.add_argument("--no-default-ignore", action="store_true")

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", parents=[common], help="Scan once and print sizes")
    scan_parser.add_argument("--json", action="store_true", help="Print the full tree as JSON")
    scan_parser.add_argument("--top", type=int, default=20)
    scan_parser.set_defaults(handler=_run_scan)

    watch_parser = subparsers.add_parser("watch", parents=[common], help="Stream tree updates")
    watch_parser.add_argument("--debounce-ms", type=int, default=300)
    watch_parser.set_defaults(handler=_run_watch)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(args.handler(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
