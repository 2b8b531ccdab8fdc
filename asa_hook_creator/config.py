"""Configuration loader with layered priority: CLI args > env vars > YAML > defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from asa_hook_creator.patterns import defaults as pattern_defaults


CONFIG_FILENAMES = [
    "asa-hooks.yaml",
    "asa-hooks.yml",
]

GLOBAL_CONFIG_DIR = Path.home() / ".config" / "asa-hooks"


@dataclass
class Config:
    """Layered configuration for asa-hook-creator."""

    # Local headers
    source_root: str = ""
    header_extensions: list[str] = field(default_factory=lambda: list(pattern_defaults.HEADER_EXTENSIONS))

    # Remote header set
    remote_urls: list[str] = field(default_factory=lambda: list(pattern_defaults.DEFAULT_HEADER_URLS))
    remote_directory_label: str = pattern_defaults.REMOTE_DIRECTORY_LABEL
    request_timeout: float = 30.0

    # Indexing
    max_workers: Optional[int] = None
    search_limit: int = pattern_defaults.SEARCH_LIMIT

    # Live reload
    debounce_ms: int = pattern_defaults.DEBOUNCE_MS
    min_reload_interval_ms: int = pattern_defaults.MIN_RELOAD_INTERVAL_MS

    # Generated code
    hook_preset: str = pattern_defaults.DEFAULT_PRESET

    @property
    def worker_count(self) -> int:
        if self.max_workers and self.max_workers > 0:
            return self.max_workers
        return max(1, (os.cpu_count() or 1) - 1)

    @property
    def has_source(self) -> bool:
        return bool(self.source_root) and os.path.isdir(self.source_root)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def min_reload_interval_seconds(self) -> float:
        return self.min_reload_interval_ms / 1000.0

    def is_header(self, path: str) -> bool:
        ext = os.path.splitext(path)[1].lower()
        return ext in {e.lower() for e in self.header_extensions}


def _expand(path: str) -> str:
    """Expand ~ and env vars in a path string."""
    if not path:
        return path
    return os.path.expandvars(os.path.expanduser(path))


def _parse_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _find_config_file(start_dir: Optional[str] = None) -> Optional[Path]:
    """Search for config file in current dir, then global config dir."""
    search_dir = Path(start_dir) if start_dir else Path.cwd()

    for name in CONFIG_FILENAMES:
        candidate = search_dir / name
        if candidate.is_file():
            return candidate

    for name in CONFIG_FILENAMES:
        candidate = GLOBAL_CONFIG_DIR / name
        if candidate.is_file():
            return candidate

    return None


def load_config(
    config_path: Optional[str] = None,
    cli_overrides: Optional[dict] = None,
) -> Config:
    """Load configuration with priority: CLI args > env vars > YAML > defaults.

    Args:
        config_path: Explicit path to config file. If None, searches automatically.
        cli_overrides: Dict of CLI-provided overrides (e.g. {"source_root": "/path"}).

    Returns:
        Fully resolved Config instance.
    """
    cfg = Config()

    # --- Layer 1: YAML file ---
    yaml_path = Path(config_path) if config_path else _find_config_file()
    if yaml_path and yaml_path.is_file():
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}
        _apply_yaml(cfg, data)

    # --- Layer 2: Environment variables ---
    _apply_env(cfg)

    # --- Layer 3: CLI overrides ---
    if cli_overrides:
        _apply_cli(cfg, cli_overrides)

    cfg.source_root = _expand(cfg.source_root)

    return cfg


def _apply_yaml(cfg: Config, data: dict) -> None:
    """Apply YAML config data to Config."""
    source = data.get("source", {})
    if source:
        cfg.source_root = source.get("root", cfg.source_root)
        if "extensions" in source:
            cfg.header_extensions = source["extensions"]

    remote = data.get("remote", {})
    if remote:
        if "urls" in remote:
            cfg.remote_urls = remote["urls"]
        cfg.remote_directory_label = remote.get("directory_label", cfg.remote_directory_label)
        if "timeout" in remote:
            cfg.request_timeout = float(remote["timeout"])

    index = data.get("index", {})
    if index:
        if "max_workers" in index:
            cfg.max_workers = _parse_int(index["max_workers"])
        if "search_limit" in index:
            cfg.search_limit = int(index["search_limit"])

    watch = data.get("watch", {})
    if watch:
        if "debounce_ms" in watch:
            cfg.debounce_ms = int(watch["debounce_ms"])
        if "min_reload_interval_ms" in watch:
            cfg.min_reload_interval_ms = int(watch["min_reload_interval_ms"])

    hooks = data.get("hooks", {})
    if hooks:
        cfg.hook_preset = hooks.get("preset", cfg.hook_preset)


def _apply_env(cfg: Config) -> None:
    """Apply environment variable overrides."""
    val = os.environ.get("ASA_HOOKS_SOURCE_ROOT")
    if val:
        cfg.source_root = val

    val = os.environ.get("ASA_HOOKS_PRESET")
    if val:
        cfg.hook_preset = val

    val = os.environ.get("ASA_HOOKS_MAX_WORKERS")
    if val:
        cfg.max_workers = int(val)

    val = os.environ.get("ASA_HOOKS_DEBOUNCE_MS")
    if val:
        cfg.debounce_ms = int(val)


def _apply_cli(cfg: Config, overrides: dict) -> None:
    """Apply CLI argument overrides."""
    mapping = {
        "config": None,  # handled separately
        "source_root": "source_root",
        "max_workers": "max_workers",
        "hook_preset": "hook_preset",
    }
    for key, attr in mapping.items():
        if attr and key in overrides and overrides[key]:
            setattr(cfg, attr, overrides[key])
