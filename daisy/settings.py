"""Runtime settings for daisy components.

Settings are loaded from environment variables by default and can be overridden
by explicit values from constructors/CLI flags.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from daisy.ignore import DEFAULT_IGNORE
from daisy.models import ScanOptions


class ScanSettings(BaseSettings):
    """Settings for scan depth, filtering, caching and emission throttling.

    Cached directory sizes are only consulted by scans that emit no
    snapshots. A monitor streams snapshots unless ``snapshot_every`` is 0,
    so with the defaults ``cache_enabled`` only keeps the cache populated
    and the monitored cycle always rescans from disk.
    """

    model_config = SettingsConfigDict(env_prefix="DAISY_SCAN_", extra="ignore")

    max_depth: int = Field(default=10, description="0 scans the root alone")
    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE))
    cache_enabled: bool = Field(
        default=True,
        description="Only consulted when snapshot_every is 0",
    )
    snapshot_every: int = 250
    progress_every: int = 100
    min_emit_interval: float = Field(default=0.2, description="Seconds")
    max_concurrency: int = 32

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_depth must be >= 0")
        return value

    @field_validator("progress_every", "max_concurrency")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be >= 1")
        return value

    @field_validator("snapshot_every")
    @classmethod
    def validate_snapshot_every(cls, value: int) -> int:
        if value < 0:
            raise ValueError("snapshot_every must be >= 0")
        return value

    @field_validator("min_emit_interval")
    @classmethod
    def validate_min_emit_interval(cls, value: float) -> float:
        if value < 0:
            raise ValueError("min_emit_interval must be >= 0")
        return value

    def to_options(self) -> ScanOptions:
        return ScanOptions(**self.model_dump())


class WatchSettings(BaseSettings):
    """Settings for change watching, debouncing and periodic rescans."""

    model_config = SettingsConfigDict(env_prefix="DAISY_WATCH_", extra="ignore")

    enabled: bool = True
    debounce_ms: int = 300
    batch_ms: int = 50
    rescan_interval: float | None = Field(default=None, description="Seconds")

    @field_validator("debounce_ms", "batch_ms")
    @classmethod
    def validate_window(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("window must be positive")
        return value

    @field_validator("rescan_interval")
    @classmethod
    def validate_rescan_interval(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("rescan_interval must be positive")
        return value

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000
