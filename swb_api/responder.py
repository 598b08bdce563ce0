"""Answers hooked screenshot requests with a host-side capture."""
from __future__ import annotations

import logging
from typing import List, Optional

from swb_os.callbacks import CallbackHandle, CallbackPump, ScreenshotReady, ScreenshotRequested, SteamCallback
from swb_os.capture import CaptureError, ScreenCapture

from .screenshots import ScreenshotLibraryError, add_screenshot_to_library
from .types import ScreenshotHandle

Logger = logging.Logger


class ScreenshotResponder:
    """Captures the screen whenever Steam asks the hooked host for a screenshot.

    Attach it to the client's callback pump after hooking screenshots. The
    responder never changes the hook state itself.
    """

    def __init__(self, capture: ScreenCapture, logger: Optional[Logger] = None) -> None:
        self._capture = capture
        self._logger = logger or logging.getLogger(__name__)
        self._handles: List[CallbackHandle] = []
        self.last_handle: Optional[ScreenshotHandle] = None

    def attach(self, pump: CallbackPump) -> None:
        self.detach()
        self._handles = [
            pump.register(SteamCallback.SCREENSHOT_REQUESTED, self.on_requested),
            pump.register(SteamCallback.SCREENSHOT_READY, self.on_ready),
        ]

    def detach(self) -> None:
        for handle in self._handles:
            handle.disconnect()
        self._handles = []

    def on_requested(self, event: ScreenshotRequested) -> Optional[ScreenshotHandle]:
        try:
            result = self._capture.capture()
        except CaptureError as exc:
            self._logger.warning("Skipping screenshot request: %s", exc)
            return None

        try:
            handle = add_screenshot_to_library(
                result.image_path,
                result.thumbnail_path,
                result.width,
                result.height,
            )
        except ScreenshotLibraryError as exc:
            self._logger.error("Steam rejected screenshot %s: %s", result.image_path, exc)
            return None

        self.last_handle = handle
        return handle

    def on_ready(self, event: ScreenshotReady) -> None:
        if event.ok:
            self._logger.info("Screenshot %d written to library", event.handle)
        else:
            self._logger.warning("Screenshot %d failed with EResult %d", event.handle, event.result)


__all__ = ["ScreenshotResponder"]
