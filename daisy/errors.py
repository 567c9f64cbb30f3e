"""Exception types raised by daisy components."""

from __future__ import annotations


class DaisyError(Exception):
    """Base class for daisy errors."""


class RootInvalidError(DaisyError, ValueError):
    """Scan root is missing, not a directory, or cannot be listed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class WatchStartError(DaisyError, RuntimeError):
    """Native change notification could not be established for a root."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot watch {path}: {reason}")
