"""Configuration structures shared by the bridge packages.

Values originate from `config.yaml` (preferred). The app id may also come from
the `SteamAppId` environment variable, which is the same variable the Steam
client itself honours when launching a game outside of Steam.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

APP_ID_ENV = "SteamAppId"


@dataclass(slots=True)
class SteamConfig:
    """Native session parameters."""

    app_id: Optional[int] = None  # If None, the SDK falls back to steam_appid.txt
    library_dir: Optional[Path] = None  # Directory holding the steam_api redistributable
    restart_if_necessary: bool = False
    callback_interval_s: float = 1 / 30  # 0 disables the background callback pump
    hook_screenshots: bool = False


@dataclass(slots=True)
class CaptureValidationConfig:
    """Validation thresholds to guard against blank or occluded captures."""

    min_mean_luminance: float = 5.0
    min_luminance_stddev: float = 1.5


@dataclass(slots=True)
class RetentionConfig:
    """Capture file retention policy."""

    max_captures: int = 200


@dataclass(slots=True)
class CaptureConfig:
    """Host-side screenshot capture used when screenshots are hooked."""

    output_dir: Path = Path("screenshots")
    monitor: int = 1  # mss monitor index; 0 is the union of all monitors
    thumbnail_width: int = 200
    validation: CaptureValidationConfig = field(default_factory=CaptureValidationConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)


def load_configs(path: Optional[Path] = None) -> Tuple[SteamConfig, CaptureConfig]:
    """Load steam and capture configuration from YAML, falling back to defaults."""

    cfg_path = path or Path("config.yaml")
    steam_cfg = SteamConfig()
    capture_cfg = CaptureConfig()

    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}

        _apply_steam_config(steam_cfg, raw.get("steam", {}))
        _apply_capture_config(capture_cfg, raw.get("capture", {}))

    if steam_cfg.app_id is None:
        env_app_id = os.environ.get(APP_ID_ENV)
        if env_app_id and env_app_id.strip().isdigit():
            steam_cfg.app_id = int(env_app_id)

    return steam_cfg, capture_cfg


def _apply_steam_config(config: SteamConfig, data: Dict) -> None:
    if not data:
        return

    app_id = data.get("app_id")
    if app_id is not None:
        config.app_id = int(app_id)

    library_dir = data.get("library_dir")
    if library_dir:
        config.library_dir = Path(str(library_dir))

    if "restart_if_necessary" in data:
        config.restart_if_necessary = bool(data["restart_if_necessary"])

    if "callback_interval_s" in data:
        config.callback_interval_s = float(data["callback_interval_s"])

    if "hook_screenshots" in data:
        config.hook_screenshots = bool(data["hook_screenshots"])


def _apply_capture_config(config: CaptureConfig, data: Dict) -> None:
    if not data:
        return

    output_dir = data.get("output_dir")
    if output_dir:
        config.output_dir = Path(str(output_dir))

    if "monitor" in data:
        config.monitor = int(data["monitor"])

    if "thumbnail_width" in data:
        config.thumbnail_width = int(data["thumbnail_width"])

    validation_data = data.get("validation") or {}
    if validation_data:
        if "min_mean_luminance" in validation_data:
            config.validation.min_mean_luminance = float(validation_data["min_mean_luminance"])
        if "min_luminance_stddev" in validation_data:
            config.validation.min_luminance_stddev = float(validation_data["min_luminance_stddev"])

    retention_data = data.get("retention") or {}
    if retention_data and "max_captures" in retention_data:
        config.retention.max_captures = int(retention_data["max_captures"])


__all__ = [
    "APP_ID_ENV",
    "CaptureConfig",
    "CaptureValidationConfig",
    "RetentionConfig",
    "SteamConfig",
    "load_configs",
]
