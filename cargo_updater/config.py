"""
Configuration file parsing and management.

Reads YAML (or JSON, by extension) configuration files and merges them by
precedence: explicit path → project → user → defaults.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from typing import Any

import yaml

from .common import vlog
from .errors import ConfigError


CONFIG_LOCATIONS = [
    ".cargo-updater.yml",
    ".cargo-updater.yaml",
    os.path.expanduser("~/.config/cargo-updater/config.yml"),
    os.path.expanduser("~/.config/cargo-updater/config.yaml"),
]

DEFAULT_REGISTRY_URL = "https://crates.io"

FAILURE_POLICIES = {"isolate", "abort"}


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for a cargo-updater run.

    Attributes:
        version: Config schema version
        registry_url: Base URL of the crate registry
        cargo: Package manager executable used for listing and reinstalling
        timeout_seconds: Per-request registry timeout, None leaves the client default
        failure_policy: 'isolate' keeps going after a failed lookup, 'abort' fails the run
        locked: Always pass --locked when reinstalling
        source: Path of the file this config came from
    """
    version: int = 1
    registry_url: str = DEFAULT_REGISTRY_URL
    cargo: str = "cargo"
    timeout_seconds: float | None = None
    failure_policy: str = "isolate"
    locked: bool = False
    source: str = ""

    def __post_init__(self):
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

        if not self.registry_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid registry_url: {self.registry_url}. Must be an http(s) URL"
            )

        if not self.cargo:
            raise ValueError("cargo executable must not be empty")

        if self.timeout_seconds is not None and not 1 <= self.timeout_seconds <= 300:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 300"
            )

        if self.failure_policy not in FAILURE_POLICIES:
            raise ValueError(
                f"Invalid failure_policy: {self.failure_policy}. "
                f"Must be one of: {', '.join(sorted(FAILURE_POLICIES))}"
            )

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from a parsed configuration mapping."""
        return Config(
            version=data.get("version", 1),
            registry_url=str(data.get("registry_url", DEFAULT_REGISTRY_URL)).rstrip("/"),
            cargo=data.get("cargo", "cargo"),
            timeout_seconds=data.get("timeout_seconds"),
            failure_policy=data.get("failure_policy", "isolate"),
            locked=bool(data.get("locked", False)),
            source=source,
        )

    def merge_with(self, other: Config) -> Config:
        """
        Merge with a lower-priority config.

        Values that differ from the defaults win; otherwise the other
        config's value is kept.

        Args:
            other: Config with lower priority

        Returns:
            New merged Config
        """
        defaults = Config()
        merged: dict[str, Any] = {}
        for f in fields(Config):
            if f.name == "source":
                continue
            mine = getattr(self, f.name)
            merged[f.name] = mine if mine != getattr(defaults, f.name) else getattr(other, f.name)
        return Config(source=self.source or other.source, **merged)


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load a YAML configuration file.

    Returns:
        Parsed mapping, {} for a non-mapping document, None if unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load a JSON configuration file.

    Returns:
        Parsed mapping, {} for a non-object document, None if unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to a .yml/.yaml or .json file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if the file is missing or invalid
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    if file_path.endswith(".json"):
        data = _load_json(file_path)
    else:
        data = _load_yaml(file_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None

    vlog(f"Loaded config successfully: {file_path}", verbose)
    return config


def load_config(custom_path: str | None = None, verbose: bool = False) -> Config:
    """
    Load and merge configuration from all sources.

    Precedence (highest first):
    1. Custom path (if provided)
    2. Project .cargo-updater.yml
    3. User ~/.config/cargo-updater/config.yml
    4. Defaults

    Args:
        custom_path: Optional explicit configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config (defaults when nothing is found)

    Raises:
        ConfigError: If custom_path is given but cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ConfigError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)
            vlog(f"Found config at: {location}", verbose)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged
