"""Pydantic models for size-annotated trees, diffs and update events."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from daisy.ignore import DEFAULT_IGNORE


class NodeKind(str, Enum):
    """Kind of filesystem entry a tree node stands for."""

    FILE = "file"
    DIRECTORY = "directory"


class TreeNode(BaseModel):
    """Immutable node of a size-annotated filesystem tree.

    Directory sizes are the aggregate of their children. Children are
    ordered by size descending, then by name ascending.

    Examples:
        >>> leaf = TreeNode(
        ...     name="a.txt",
        ...     path="/data/a.txt",
        ...     kind=NodeKind.FILE,
        ...     size=10,
        ...     depth=1,
        ... )
        >>> root = TreeNode(
        ...     name="data",
        ...     path="/data",
        ...     kind=NodeKind.DIRECTORY,
        ...     size=10,
        ...     depth=0,
        ...     children=(leaf,),
        ... )
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Entry base name")
    path: str = Field(description="Absolute path, unique within a tree")
    kind: NodeKind = Field(description="File or directory")
    size: int = Field(ge=0, description="Size in bytes (aggregate for directories)")
    depth: int = Field(ge=0, description="Distance from the scan root")
    children: tuple[TreeNode, ...] = Field(
        default=(),
        description="Child nodes, directories only",
    )

    @model_validator(mode="after")
    def validate_children(self) -> TreeNode:
        if self.kind is NodeKind.FILE and self.children:
            raise ValueError("file nodes cannot have children")
        return self

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def iter_nodes(self):
        """Yield this node and all descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the shape consumed by transport and render layers.

        ``children`` is omitted for files.
        """
        payload: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "isDirectory": self.is_directory,
            "depth": self.depth,
        }
        if self.is_directory:
            payload["children"] = [child.to_payload() for child in self.children]
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TreeNode:
        """Rebuild a tree from :meth:`to_payload` output."""
        is_directory = bool(payload["isDirectory"])
        return cls(
            name=payload["name"],
            path=payload["path"],
            kind=NodeKind.DIRECTORY if is_directory else NodeKind.FILE,
            size=payload["size"],
            depth=payload["depth"],
            children=tuple(cls.from_payload(child) for child in payload.get("children") or ()),
        )


class CacheEntry(BaseModel):
    """Aggregate size of a directory recorded at a given modification time."""

    model_config = ConfigDict(frozen=True)

    size: int = Field(ge=0, description="Aggregate size in bytes")
    mtime: int = Field(description="Directory mtime in nanoseconds")


class SizeChange(BaseModel):
    """Path present in two trees whose size differs."""

    model_config = ConfigDict(frozen=True)

    path: str
    size: int
    previous_size: int


class TreeDiff(BaseModel):
    """Paths added, removed and resized between two full trees."""

    model_config = ConfigDict(frozen=True)

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    changed: list[SizeChange] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


class ScanOptions(BaseModel):
    """Options recognized by a single scan.

    Examples:
        >>> options = ScanOptions(max_depth=3, ignore_patterns=["*.log"])
        >>> options = ScanOptions(cache_enabled=False, snapshot_every=50)
    """

    max_depth: int = Field(default=10, ge=0, description="Deepest depth that is descended into")
    ignore_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE),
        description="Exact names, 'prefix*' or '*suffix' rules",
    )
    cache_enabled: bool = Field(
        default=True,
        description="Reuse cached directory sizes when no snapshots are requested",
    )
    snapshot_every: int = Field(
        default=250,
        ge=0,
        description="Item-count modulus for partial snapshots (0 disables them)",
    )
    progress_every: int = Field(default=100, ge=1, description="Item-count modulus for progress")
    min_emit_interval: float = Field(
        default=0.2,
        ge=0,
        description="Minimum seconds between two progress or snapshot emissions",
    )
    max_concurrency: int = Field(
        default=32,
        ge=1,
        description="Upper bound on outstanding filesystem operations",
    )

    @field_validator("ignore_patterns")
    @classmethod
    def validate_ignore_patterns(cls, value: list[str]) -> list[str]:
        if any(not pattern for pattern in value):
            raise ValueError("ignore patterns must be non-empty")
        return value


class ScanningEvent(BaseModel):
    """Periodic progress of a running scan."""

    type: Literal["scanning"] = "scanning"
    generation: int
    progress: int = Field(description="Number of entries visited so far")

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "generation": self.generation, "progress": self.progress}


class SnapshotEvent(BaseModel):
    """Partial tree of a running scan. Never diffed."""

    type: Literal["snapshot"] = "snapshot"
    generation: int
    tree: TreeNode
    scanned: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "generation": self.generation, "data": self.tree.to_payload()}


class FullEvent(BaseModel):
    """Authoritative tree of a completed scan with its reconciliation."""

    type: Literal["full"] = "full"
    generation: int
    tree: TreeNode
    diff: Optional[TreeDiff] = None
    focus_path: str

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.type,
            "generation": self.generation,
            "data": self.tree.to_payload(),
            "focus": self.focus_path,
        }
        if self.diff is not None:
            payload["diff"] = self.diff.model_dump()
        return payload


class ErrorEvent(BaseModel):
    """Fatal scan failure. The last full tree stays authoritative."""

    type: Literal["error"] = "error"
    generation: int
    message: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "generation": self.generation, "message": self.message}


UpdateEvent = Annotated[
    Union[ScanningEvent, SnapshotEvent, FullEvent, ErrorEvent],
    Field(discriminator="type"),
]
