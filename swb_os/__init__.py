"""Native layer for the Steamworks bridge.

This package loads the Steamworks redistributable through ctypes, owns the
single process-wide client session, pumps Steam callbacks, and captures the
screen when the host takes over screenshot handling.

IMPORTANT: Call client.init() once at program startup before any friends or
screenshot operation, and client.shutdown() before exiting.
"""

from .callbacks import CallbackPump, ScreenshotReady, ScreenshotRequested, SteamCallback
from .capture import CaptureError, ScreenCapture
from .client import (
    Client,
    ClientNotInitializedError,
    get_client,
    init,
    restart_app_if_necessary,
    run_callbacks,
    shutdown,
)
from .config import CaptureConfig, SteamConfig, load_configs
from .native import SteamInitError, SteamLibraryError, UnsupportedPlatformError

__all__ = [
    "CallbackPump",
    "CaptureConfig",
    "CaptureError",
    "Client",
    "ClientNotInitializedError",
    "ScreenCapture",
    "ScreenshotReady",
    "ScreenshotRequested",
    "SteamCallback",
    "SteamConfig",
    "SteamInitError",
    "SteamLibraryError",
    "UnsupportedPlatformError",
    "get_client",
    "init",
    "load_configs",
    "restart_app_if_necessary",
    "run_callbacks",
    "shutdown",
]
