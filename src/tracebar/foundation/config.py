"""Tracebar configuration management.

Loads configuration from .tracebar/config.yaml with sensible defaults.
All settings can be overridden via environment variables (TRACEBAR_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .tracebar/config.yaml (project-local)
3. ~/.tracebar/config.yaml (user-global)
4. Built-in defaults

Thread Safety:
    Uses threading.Lock for thread-safe lazy initialization.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tracebar.foundation.errors import config_error

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "{span_child_prefix}{spinner} {span_name}{{{span_fields}}}"
DEFAULT_CHILD_PREFIX_SPACING = "  "
DEFAULT_CHILD_PREFIX_SYMBOL = "↳ "
DEFAULT_TICK_INTERVAL = 0.1
DEFAULT_SPINNER = "dots"


@dataclass
class ProgressConfig:
    """Configuration for the span indicator display."""

    template: str = DEFAULT_TEMPLATE
    """Indicator line template (keys: spinner, span_name, span_fields, span_child_prefix)."""

    child_prefix_spacing: str = DEFAULT_CHILD_PREFIX_SPACING
    """Repeated once per nesting level in front of child indicators."""

    child_prefix_symbol: str = DEFAULT_CHILD_PREFIX_SYMBOL
    """Placed after the spacing in front of child indicators."""

    tick_interval: float = DEFAULT_TICK_INTERVAL
    """Seconds between spinner redraws."""

    spinner: str = DEFAULT_SPINNER
    """Name of the rich spinner used for the indicator glyph."""


@dataclass
class TracebarConfig:
    """Root configuration for Tracebar."""

    progress: ProgressConfig = field(default_factory=ProgressConfig)
    """Indicator display configuration."""

    debug: bool = False
    """Enable debug logging by default."""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Global config instance (lazy-loaded, thread-safe)
_config: TracebarConfig | None = None
_config_lock = threading.Lock()


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply environment variable overrides.

    Examples:
        TRACEBAR_DEBUG=true
        TRACEBAR_PROGRESS_TICK_INTERVAL=0.25
        TRACEBAR_PROGRESS_CHILD_PREFIX_SYMBOL="-> "
    """
    prefix = "TRACEBAR_"
    progress_keys = set(ProgressConfig.__dataclass_fields__)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        path_str = key[len(prefix):].lower()

        if path_str == "debug":
            config_dict["debug"] = _parse_bool(value)
            continue

        if not path_str.startswith("progress_"):
            continue

        final_key = path_str[len("progress_"):]
        if final_key not in progress_keys:
            continue

        if final_key == "tick_interval":
            try:
                config_dict["progress"][final_key] = float(value)
            except ValueError as e:
                raise config_error(f"progress.{final_key}", f"not a number: {value!r}", e) from e
        else:
            config_dict["progress"][final_key] = value

    return config_dict


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _dict_to_config(data: dict) -> TracebarConfig:
    """Convert a dict to TracebarConfig."""
    progress_data = data.get("progress") or {}
    if not isinstance(progress_data, dict):
        raise config_error("progress", "must be a mapping")
    unknown = set(progress_data) - set(ProgressConfig.__dataclass_fields__)
    if unknown:
        raise config_error("progress", f"unknown keys: {', '.join(sorted(unknown))}")

    for key in ("template", "child_prefix_spacing", "child_prefix_symbol", "spinner"):
        if key in progress_data and not isinstance(progress_data[key], str):
            raise config_error(f"progress.{key}", "must be a string")

    progress_config = ProgressConfig(**progress_data)

    try:
        progress_config.tick_interval = float(progress_config.tick_interval)
    except (TypeError, ValueError) as e:
        raise config_error("progress.tick_interval", "not a number", e) from e
    if progress_config.tick_interval <= 0:
        raise config_error("progress.tick_interval", "must be positive")

    return TracebarConfig(
        progress=progress_config,
        debug=_parse_debug(data.get("debug", False)),
    )


def _parse_debug(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _parse_bool(value)
    raise config_error("debug", "must be a boolean")


def load_config(path: str | Path | None = None) -> TracebarConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (TRACEBAR_*)
    2. Explicit path if provided
    3. .tracebar/config.yaml (project-local)
    4. ~/.tracebar/config.yaml (user-global)
    5. Built-in defaults

    Args:
        path: Optional explicit config file path.

    Returns:
        Merged TracebarConfig instance.
    """
    global _config

    config_dict: dict[str, Any] = {
        "progress": {
            "template": DEFAULT_TEMPLATE,
            "child_prefix_spacing": DEFAULT_CHILD_PREFIX_SPACING,
            "child_prefix_symbol": DEFAULT_CHILD_PREFIX_SYMBOL,
            "tick_interval": DEFAULT_TICK_INTERVAL,
            "spinner": DEFAULT_SPINNER,
        },
        "debug": False,
    }

    config_paths = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".tracebar/config.yaml"),
        Path.home() / ".tracebar" / "config.yaml",
    ])

    for config_path in config_paths:
        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Skipping unreadable config file %s: %s", config_path, e)
                continue
            if not isinstance(file_config, dict):
                raise config_error(str(config_path), "top level must be a mapping")
            _deep_update(config_dict, file_config)
            break  # Use first found config

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> TracebarConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    # Fast path: already initialized
    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None
