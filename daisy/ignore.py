"""Name-based ignore rules applied before any stat call."""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_IGNORE: tuple[str, ...] = (
    "node_modules",
    ".git",
    ".DS_Store",
    "*.swp",
    "*.swo",
    ".Trash",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "coverage",
    "dist",
    ".next",
    ".turbo",
)


class IgnoreFilter:
    """Match entry base names against an ordered list of patterns.

    A pattern starting with ``*`` matches by suffix, one ending with ``*``
    matches by prefix, anything else must equal the name exactly.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = tuple(patterns)
        self._exact: frozenset[str] = frozenset(
            p for p in self.patterns if not p.startswith("*") and not p.endswith("*")
        )
        self._suffixes = tuple(p[1:] for p in self.patterns if p.startswith("*"))
        self._prefixes = tuple(
            p[:-1] for p in self.patterns if p.endswith("*") and not p.startswith("*")
        )

    @classmethod
    def default(cls) -> IgnoreFilter:
        return cls(DEFAULT_IGNORE)

    def matches(self, name: str) -> bool:
        """Return True when ``name`` must be excluded along with its subtree."""
        if name in self._exact:
            return True
        if self._suffixes and name.endswith(self._suffixes):
            return True
        return bool(self._prefixes) and name.startswith(self._prefixes)

    __call__ = matches

    def __repr__(self) -> str:
        return f"IgnoreFilter({list(self.patterns)!r})"
