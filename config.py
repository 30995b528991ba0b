"""Configuration management for the revision checker."""

import os
import sys
import json
from copy import deepcopy
from pathlib import Path

APP_NAME = "RevisionChecker"
CONFIG_ENV_VAR = "CHECKER_CONFIG"

DEFAULT_PIPELINES = {
    "fmt": "cargo fmt --all -- --check",
    "clippy": "cargo clippy --all-targets --all-features",
    "build": "cargo build --verbose",
    "test": "cargo test --verbose",
}

DEFAULT_CONFIG = {
    "pipelines": DEFAULT_PIPELINES,  # dict[str, str] - step name -> command
    "log_level": "INFO",  # str
    "log_to_file": False,  # bool - rotating log under the config dir
    "json_logs": False,  # bool - JSON lines in the log file
    "enable_metrics": False,  # bool - write run metrics under the config dir
    "banner_width": 80,  # int
}


def _config_dir() -> Path:
    """Get the platform-specific configuration directory."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(base) / APP_NAME
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        return Path(base) / APP_NAME


def _config_path() -> Path:
    """Get the configuration file path."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return _config_dir() / "settings.json"


def default_config() -> dict:
    """A fresh copy of the defaults."""
    return deepcopy(DEFAULT_CONFIG)


def load_config(path: Path | None = None) -> dict:
    """Load configuration from file, falling back to defaults."""
    p = path or _config_path()
    try:
        with p.open("r", encoding="utf-8") as f:
            cfg = json.load(f)
    except (OSError, ValueError):
        return default_config()
    if not isinstance(cfg, dict):
        return default_config()
    # Fill any missing keys with defaults
    for k, v in DEFAULT_CONFIG.items():
        cfg.setdefault(k, deepcopy(v))
    return cfg


def save_config(cfg: dict, path: Path | None = None):
    """Save configuration to file."""
    target = path or _config_path()
    d = target.parent
    d.mkdir(parents=True, exist_ok=True)
    tmp = d / f".{target.name}.tmp"
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)
    tmp.replace(target)


def get_pipeline_table(cfg: dict) -> dict[str, str]:
    """Get the step name -> command table, user entries over defaults."""
    table = dict(DEFAULT_PIPELINES)
    table.update(cfg.get("pipelines") or {})
    return table


def set_pipeline_command(cfg: dict, step: str, command: str):
    """Override the command run for a pipeline step."""
    cfg.setdefault("pipelines", {})[step] = command


def get_banner_width(cfg: dict) -> int:
    """Get the banner width, falling back to the default on bad values."""
    width = cfg.get("banner_width", DEFAULT_CONFIG["banner_width"])
    if isinstance(width, bool) or not isinstance(width, int) or width <= 0:
        return DEFAULT_CONFIG["banner_width"]
    return width
