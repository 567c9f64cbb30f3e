"""daisy: live size-annotated filesystem trees with change reconciliation."""

from daisy.api import scan, watch
from daisy.cache import SizeCache
from daisy.errors import DaisyError, RootInvalidError, WatchStartError
from daisy.generation import GenerationSequencer
from daisy.ignore import DEFAULT_IGNORE, IgnoreFilter
from daisy.models import (
    CacheEntry,
    ErrorEvent,
    FullEvent,
    NodeKind,
    ScanningEvent,
    ScanOptions,
    SizeChange,
    SnapshotEvent,
    TreeDiff,
    TreeNode,
    UpdateEvent,
)
from daisy.monitor import MonitorState, TreeMonitor
from daisy.reconcile import (
    added_nodes,
    collect_paths,
    diff,
    find_node,
    focus_chain,
    reanchor,
    removed_highlight_paths,
)
from daisy.scanner import Scanner
from daisy.settings import ScanSettings, WatchSettings
from daisy.utils import format_bytes
from daisy.watcher import ChangeBurst, ChangeWatcher

__all__ = [
    "DEFAULT_IGNORE",
    "CacheEntry",
    "ChangeBurst",
    "ChangeWatcher",
    "DaisyError",
    "ErrorEvent",
    "FullEvent",
    "GenerationSequencer",
    "IgnoreFilter",
    "MonitorState",
    "NodeKind",
    "RootInvalidError",
    "ScanOptions",
    "ScanSettings",
    "Scanner",
    "ScanningEvent",
    "SizeCache",
    "SizeChange",
    "SnapshotEvent",
    "TreeDiff",
    "TreeMonitor",
    "TreeNode",
    "UpdateEvent",
    "WatchSettings",
    "WatchStartError",
    "added_nodes",
    "collect_paths",
    "diff",
    "find_node",
    "focus_chain",
    "format_bytes",
    "reanchor",
    "removed_highlight_paths",
    "scan",
    "watch",
]

__version__ = "0.1.0"
