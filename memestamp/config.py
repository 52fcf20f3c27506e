from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml

from memestamp.constants import DEFAULT_FONT_FAMILY

DEFAULT_CONFIG: dict[str, Any] = {
    "font_dirs": [],
    "default_font_family": DEFAULT_FONT_FAMILY,
    "fetch_timeout": None,
    "log_level": "info",
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
    },
}

CONFIG_ENV_VAR = "MEMESTAMP_CONFIG"


def get_user_data_dir() -> Path:
    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / "memestamp"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / "memestamp"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "memestamp"
    return Path.home() / ".config" / "memestamp"


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return get_user_data_dir() / "config.yaml"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    text = cfg_path.read_text(encoding="utf-8")
    loaded = yaml.safe_load(text) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    cfg = _deep_merge(DEFAULT_CONFIG, loaded)
    if not isinstance(cfg.get("font_dirs"), list):
        cfg["font_dirs"] = [str(cfg["font_dirs"])] if cfg.get("font_dirs") else []
    return cfg


def fetch_timeout(cfg: dict[str, Any]) -> float | None:
    value = cfg.get("fetch_timeout")
    if value in (None, "", 0):
        return None
    return float(value)


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg_path.write_text(yaml.safe_dump(cfg, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path
