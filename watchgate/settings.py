"""Configuration loading utilities for Watchgate."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml


ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = ROOT_DIR / "config" / "app_config.yaml"


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values loaded from YAML."""

    media_path: Path
    content_key: str
    unlock_threshold: float
    restore_margin: float
    rewind_seconds: float
    position_write_interval: float
    store_path: Path
    log_directory: Path
    log_level: str
    vlc_options: List[str]
    autoplay: bool
    next_step_url: str
    api_host: str
    api_port: int


def _ensure_path(path_value: Any) -> Path:
    """Return a resolved Path from a YAML scalar."""
    path = Path(str(path_value)).expanduser()
    if not path.is_absolute():
        path = (ROOT_DIR / path).resolve()
    return path


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _bounded_percent(value: Any) -> float:
    percent = float(value)
    if not 0 <= percent <= 100:
        raise ValueError(f"unlock_threshold must be between 0 and 100, got {percent}")
    return percent


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the application configuration from YAML."""
    path = config_path or Path(os.environ.get("WATCHGATE_CONFIG_PATH", DEFAULT_CONFIG_PATH))
    data = _load_yaml(path)

    return AppConfig(
        media_path=_ensure_path(data.get("media_path", "media/video.mp4")),
        content_key=str(data.get("content_key", "saa_video")),
        unlock_threshold=_bounded_percent(data.get("unlock_threshold", 50)),
        restore_margin=max(0.0, float(data.get("restore_margin", 1.0))),
        rewind_seconds=max(0.0, float(data.get("rewind_seconds", 15))),
        position_write_interval=max(0.0, float(data.get("position_write_interval", 0.0))),
        store_path=_ensure_path(data.get("store_path", "data/progress.json")),
        log_directory=_ensure_path(data.get("log_directory", "logs")),
        log_level=str(data.get("log_level", "INFO")),
        vlc_options=[str(arg) for arg in data.get("vlc_options", ["--quiet"])],
        autoplay=bool(data.get("autoplay", False)),
        next_step_url=str(data.get("next_step_url", "")),
        api_host=str(data.get("api_host", "0.0.0.0")),
        api_port=int(data.get("api_port", 8000)),
    )
