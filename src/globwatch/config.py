"""Configuration loading utilities for the watcher command."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml # type: ignore

from .pattern import PatternError, compile
from .watcher import DEFAULT_BUFFER_SIZE, DEFAULT_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "**/*"


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


@dataclass
class WatchConfig:
    """Options describing what to watch and how often."""

    root_path: Optional[Path] = None
    pattern: str = DEFAULT_PATTERN
    poll_interval: float = DEFAULT_INTERVAL
    buffer_size: int = DEFAULT_BUFFER_SIZE


def load_config(path: Path) -> WatchConfig:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    config = _parse_watch_config(data.get("watch"), config_path=path)
    logger.info(
        "Loaded configuration from %s (pattern=%r, poll_interval=%s)",
        path,
        config.pattern,
        config.poll_interval,
    )
    return config


def _parse_watch_config(raw: Any, *, config_path: Path) -> WatchConfig:
    if not isinstance(raw, dict):
        raise ConfigError("'watch' section must be a mapping")

    root_path: Optional[Path] = None
    root_path_raw = raw.get("root_path")
    if root_path_raw is not None:
        if not isinstance(root_path_raw, str):
            raise ConfigError("watch.root_path must be a string")
        root_path = Path(root_path_raw)
        if not root_path.is_absolute():
            root_path = (config_path.parent / root_path).resolve()

    pattern = raw.get("pattern", DEFAULT_PATTERN)
    if not isinstance(pattern, str):
        raise ConfigError("watch.pattern must be a string")
    try:
        compile(pattern)
    except PatternError as exc:
        raise ConfigError(f"watch.pattern is invalid: {exc}") from exc

    poll_interval = raw.get("poll_interval", DEFAULT_INTERVAL)
    if isinstance(poll_interval, bool):
        raise ConfigError("watch.poll_interval must be numeric")
    try:
        poll_interval_val = float(poll_interval)
    except (TypeError, ValueError) as exc:
        raise ConfigError("watch.poll_interval must be numeric") from exc
    if poll_interval_val <= 0:
        raise ConfigError("watch.poll_interval must be positive")

    buffer_size = raw.get("buffer_size", DEFAULT_BUFFER_SIZE)
    if isinstance(buffer_size, bool) or not isinstance(buffer_size, int):
        raise ConfigError("watch.buffer_size must be an integer")
    if buffer_size < 1:
        raise ConfigError("watch.buffer_size must be at least 1")

    return WatchConfig(
        root_path=root_path,
        pattern=pattern,
        poll_interval=poll_interval_val,
        buffer_size=buffer_size,
    )
