"""Host-side screen capture used to answer hooked screenshot requests."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .config import CaptureConfig

try:  # pragma: no cover - import validated at runtime
    import mss
except Exception:  # pragma: no cover
    mss = None

Logger = logging.Logger

_THUMB_SUFFIX = "-thumb.png"


@dataclass(slots=True)
class CaptureValidation:
    """Basic image statistics used to validate captured content."""

    mean_luminance: float
    stddev_luminance: float
    size_px: Tuple[int, int]


@dataclass(slots=True)
class CaptureResult:
    """Files written for one capture, ready for add_screenshot_to_library."""

    image_path: Path
    thumbnail_path: Optional[Path]
    width: int
    height: int
    validation: CaptureValidation


class CaptureError(RuntimeError):
    """Raised when capture fails validation or system calls."""


class ScreenCapture:
    """Grabs a monitor and writes a PNG plus thumbnail to the output directory."""

    def __init__(self, config: CaptureConfig, logger: Optional[Logger] = None) -> None:
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._output_dir = config.output_dir
        self._output_dir.mkdir(parents=True, exist_ok=True)

    def capture(self, stem: Optional[str] = None) -> CaptureResult:
        """Capture the configured monitor and store it under ``stem``."""

        stem = stem or datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        image = self._grab()
        return self.store(image, stem)

    def store(self, image: Image.Image, stem: str) -> CaptureResult:
        """Validate and persist an already rendered image."""

        image = image.convert("RGB")
        validation = self._validate_capture(image)
        image_path = self._save(image, stem)
        thumbnail_path = None
        thumbnail = self._make_thumbnail(image)
        if thumbnail is not None:
            thumbnail_path = self._save(thumbnail, f"{stem}-thumb")

        self._enforce_retention()

        return CaptureResult(
            image_path=image_path,
            thumbnail_path=thumbnail_path,
            width=image.width,
            height=image.height,
            validation=validation,
        )

    def _grab(self) -> Image.Image:
        if mss is None:
            raise CaptureError("mss library is not available; install dependency before capturing")
        with mss.mss() as sct:
            monitors = sct.monitors
            if not 0 <= self._config.monitor < len(monitors):
                raise CaptureError(f"Monitor {self._config.monitor} not found ({len(monitors) - 1} available)")
            region = monitors[self._config.monitor]
            self._logger.debug("Capturing screen region %s", region)
            screenshot = sct.grab(region)
        return Image.frombytes("RGB", screenshot.size, screenshot.rgb)

    def _validate_capture(self, image: Image.Image) -> CaptureValidation:
        array = np.asarray(image, dtype=np.float32)
        luminance = 0.2126 * array[:, :, 0] + 0.7152 * array[:, :, 1] + 0.0722 * array[:, :, 2]
        mean_luma = float(luminance.mean())
        std_luma = float(luminance.std())

        validation_cfg = self._config.validation
        if mean_luma < validation_cfg.min_mean_luminance:
            raise CaptureError(f"Capture luminance too low ({mean_luma:.2f} < {validation_cfg.min_mean_luminance})")
        if std_luma < validation_cfg.min_luminance_stddev:
            raise CaptureError(
                f"Capture appears uniform (std {std_luma:.2f} < {validation_cfg.min_luminance_stddev})"
            )

        return CaptureValidation(mean_luminance=mean_luma, stddev_luminance=std_luma, size_px=(image.width, image.height))

    def _make_thumbnail(self, image: Image.Image) -> Optional[Image.Image]:
        target_width = self._config.thumbnail_width
        if target_width <= 0:
            return None
        if image.width <= target_width:
            return image.copy()
        target_height = max(int(round(image.height * target_width / image.width)), 1)
        return image.resize((target_width, target_height), Image.Resampling.LANCZOS)

    def _save(self, image: Image.Image, stem: str) -> Path:
        safe_stem = re.sub(r"[^A-Za-z0-9._-]", "_", stem)
        path = (self._output_dir / f"{safe_stem}.png").resolve()
        image.save(path, format="PNG")
        self._logger.debug("Saved capture to %s", path)
        return path

    def _enforce_retention(self) -> None:
        max_captures = self._config.retention.max_captures
        if max_captures <= 0:
            return

        captures = sorted(
            [p for p in self._output_dir.glob("*.png") if not p.name.endswith(_THUMB_SUFFIX)],
            key=lambda p: p.stat().st_mtime,
        )
        excess = len(captures) - max_captures
        for victim in captures[:excess]:
            self._logger.debug("Deleting capture %s", victim)
            victim.unlink(missing_ok=True)
            victim.with_name(f"{victim.stem}{_THUMB_SUFFIX}").unlink(missing_ok=True)


__all__ = [
    "CaptureError",
    "CaptureResult",
    "CaptureValidation",
    "ScreenCapture",
]
