"""Configuration loading and management for Agent Blame.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in AttributionConfig / DetectorConfig)
    2. Global config (~/.agent-blame.toml)
    3. Project config (./agent-blame.toml)
    4. Explicit config file
    5. Environment variables (AGENT_BLAME_* prefix)
    6. Keyword overrides (typically CLI flags)

Example:
    >>> config = load_config(retention_days=14)
    >>> config.retention_days
    14
    >>> config.detector.threshold_pure_ai
    0.9
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, get_args, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

MS_PER_DAY = 86_400_000

GLOBAL_CONFIG_NAME = ".agent-blame.toml"
PROJECT_CONFIG_NAME = "agent-blame.toml"
ENV_PREFIX = "AGENT_BLAME_"


@dataclass(frozen=True)
class DetectorConfig:
    """Thresholds and filter tunables for the contributor detector.

    Attributes:
        Classification:
            threshold_pure_ai: Similarity at or above this is pure AI output
            threshold_ai_modified: Similarity at or above this (and below
                threshold_pure_ai) is AI output edited by a human

        Candidate filtering:
            time_window_days: Records older than this many days are ignored
            length_tolerance: Allowed relative length difference (0.5 = ±50%)

        Instrumentation:
            performance_threshold_ms: Tracked detections slower than this
                raise a warning with a bottleneck analysis
    """

    # === Classification ===
    threshold_pure_ai: float = 0.90
    threshold_ai_modified: float = 0.70

    # === Candidate filtering ===
    time_window_days: int = 3
    length_tolerance: float = 0.5

    # === Instrumentation ===
    performance_threshold_ms: float = 500.0

    def __post_init__(self) -> None:
        """Validate detector configuration."""
        for name in ("threshold_pure_ai", "threshold_ai_modified"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConfigError(name, value, "must be between 0.0 and 1.0")

        if self.threshold_ai_modified >= self.threshold_pure_ai:
            raise InvalidConfigError(
                "threshold_ai_modified",
                self.threshold_ai_modified,
                f"must be below threshold_pure_ai ({self.threshold_pure_ai})",
            )
        if self.time_window_days < 0:
            raise InvalidConfigError("time_window_days", self.time_window_days, "must be non-negative")
        if self.length_tolerance < 0:
            raise InvalidConfigError("length_tolerance", self.length_tolerance, "must be non-negative")
        if self.performance_threshold_ms <= 0:
            raise InvalidConfigError(
                "performance_threshold_ms", self.performance_threshold_ms, "must be positive"
            )

    @property
    def time_window_ms(self) -> int:
        """Time window length in milliseconds."""
        return self.time_window_days * MS_PER_DAY


# Default detector configuration (singleton)
DEFAULT_DETECTOR_CONFIG = DetectorConfig()


@dataclass(frozen=True)
class AttributionConfig:
    """Configuration for the attribution service and its storage.

    Attributes:
        Storage:
            data_dir: Data directory name under the project root
            retention_days: Shards older than this many days are deleted

        Cleanup:
            auto_cleanup: Run retention cleanup automatically
            cleanup_interval_hours: Minimum hours between automatic cleanups

        Instrumentation:
            enable_tracking: Collect per-stage performance metrics
            log_performance: Append tracked detections to logs/performance.jsonl

        Caching:
            cache_enabled: Cache loaded agent records between detections
            cache_dir: Directory for the record cache
            cache_ttl_seconds: How long loaded records stay valid

        Reports:
            developer_mode: Embed the debug block and raise the candidate cap
            max_report_candidates: Candidate cap override (None = mode default)
    """

    # Storage
    data_dir: str = ".agent-blame"
    retention_days: int = 7

    # Cleanup
    auto_cleanup: bool = True
    cleanup_interval_hours: int = 24

    # Instrumentation
    enable_tracking: bool = False
    log_performance: bool = True

    # Caching
    cache_enabled: bool = True
    cache_dir: str = ".agent-blame/cache"
    cache_ttl_seconds: int = 5

    # Reports
    developer_mode: bool = False
    max_report_candidates: Optional[int] = None

    # Detector tunables (nested config)
    detector: DetectorConfig = field(default_factory=DetectorConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.data_dir:
            raise InvalidConfigError("data_dir", self.data_dir, "must not be empty")
        if self.retention_days < 0:
            raise InvalidConfigError("retention_days", self.retention_days, "must be non-negative")
        if self.cleanup_interval_hours < 0:
            raise InvalidConfigError(
                "cleanup_interval_hours", self.cleanup_interval_hours, "must be non-negative"
            )
        if self.cache_ttl_seconds < 0:
            raise InvalidConfigError(
                "cache_ttl_seconds", self.cache_ttl_seconds, "must be non-negative"
            )
        if self.max_report_candidates is not None and self.max_report_candidates < 1:
            raise InvalidConfigError(
                "max_report_candidates", self.max_report_candidates, "must be at least 1"
            )


def load_config(config_file: Optional[Path] = None, **overrides) -> AttributionConfig:
    """Merge every configuration source into one validated config.

    Args:
        config_file: Extra TOML file applied after the discovered ones
        **overrides: Highest-priority values (typically CLI flags). A
            ``detector`` override may be a dict or a DetectorConfig.

    Raises:
        ConfigurationError: If a file is missing or unparsable, or a key is unknown
        InvalidConfigError: If a merged value violates a constraint
    """
    if config_file is not None and not config_file.exists():
        raise ConfigurationError(f"Config file not found: {config_file}")

    sources = [Path.home() / GLOBAL_CONFIG_NAME, Path.cwd() / PROJECT_CONFIG_NAME]
    if config_file is not None:
        sources.append(config_file)

    merged: dict = {}
    for path in sources:
        if path.exists():
            _merge(merged, _read_toml(path))
    _merge(merged, _load_env_vars())
    _merge(merged, overrides)

    detector = merged.pop("detector", None)
    if isinstance(detector, dict):
        try:
            merged["detector"] = DetectorConfig(**detector)
        except TypeError as e:
            raise ConfigurationError(f"Invalid [detector] table: {e}")
    elif isinstance(detector, DetectorConfig):
        merged["detector"] = detector

    try:
        return AttributionConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _read_toml(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Cannot read config file '{path}': {e}")


def _merge(target: dict, source: dict) -> None:
    """Shallow merge, except that detector tables merge key by key."""
    for key, value in source.items():
        if key == "detector" and isinstance(value, dict) and isinstance(target.get(key), dict):
            target[key] = {**target[key], **value}
        else:
            target[key] = value


def _load_env_vars() -> dict[str, Any]:
    """Values from ``AGENT_BLAME_<FIELD>`` and ``AGENT_BLAME_DETECTOR_<FIELD>``."""
    result = _env_for(AttributionConfig, ENV_PREFIX)
    detector = _env_for(DetectorConfig, f"{ENV_PREFIX}DETECTOR_")
    if detector:
        result["detector"] = detector
    return result


def _env_for(config_cls: type, prefix: str) -> dict[str, Any]:
    hints = get_type_hints(config_cls)
    result: dict[str, Any] = {}

    for name in config_cls.__dataclass_fields__:
        raw = os.environ.get(f"{prefix}{name.upper()}")
        if raw is None or name == "detector":
            continue
        try:
            value = _coerce(raw, hints[name])
        except ValueError as e:
            raise ConfigurationError(f"Invalid {prefix}{name.upper()}: {e}")
        if value is not None:
            result[name] = value

    return result


_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


def _coerce(raw: str, hint: Any) -> Any:
    """Env string as the field's scalar type; None for non-scalar fields."""
    # Optional[int] and friends
    members = [t for t in get_args(hint) if t is not type(None)]
    if members:
        hint = members[0]

    if hint is bool:
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if hint in (int, float, str):
        return hint(raw)
    return None
