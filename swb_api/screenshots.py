"""Screenshot hooking, triggering and library registration.

Hooking is disabled by default, in which case the Steam overlay captures,
stores and announces screenshots on its own. Once hook_screenshots(True) is
called the overlay stops capturing: a hotkey press or trigger_screenshot()
raises a ScreenshotRequested callback instead, and the host is expected to
answer it by rendering an image and passing it to add_screenshot_to_library().
Nothing here answers requests automatically; see swb_api.responder for a
host-side responder.
"""
from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from swb_os.client import get_client
from swb_os.native import INVALID_SCREENSHOT_HANDLE, encode_path

from .types import ScreenshotHandle

PathLike = Union[str, Path]


class ScreenshotHookState(str, Enum):
    """Who owns screenshot capture."""

    UNHOOKED = "unhooked"  # Steam overlay captures
    HOOKED = "hooked"  # host application captures


class ScreenshotLibraryError(RuntimeError):
    """Raised when Steam refuses to add a screenshot to the library."""


def hook_screenshots(hook: bool) -> None:
    """Toggle whether the host (True) or the Steam overlay (False) handles screenshots.

    The mode is global to the process and stays until changed again.
    """
    client = get_client()
    client.library.SteamAPI_ISteamScreenshots_HookScreenshots(client.screenshots_interface, bool(hook))
    logging.getLogger(__name__).info(
        "Screenshots %s", "hooked by host" if hook else "handled by Steam overlay"
    )


def is_screenshots_hooked() -> bool:
    """Return True if the host is expected to handle screenshot requests."""
    client = get_client()
    return bool(client.library.SteamAPI_ISteamScreenshots_IsScreenshotsHooked(client.screenshots_interface))


def screenshot_hook_state() -> ScreenshotHookState:
    return ScreenshotHookState.HOOKED if is_screenshots_hooked() else ScreenshotHookState.UNHOOKED


def trigger_screenshot() -> None:
    """Request a screenshot now.

    Unhooked, the overlay takes and saves it. Hooked, Steam posts a
    ScreenshotRequested callback and the host must call
    add_screenshot_to_library itself. Either way this returns immediately.
    """
    client = get_client()
    client.library.SteamAPI_ISteamScreenshots_TriggerScreenshot(client.screenshots_interface)
    logging.getLogger(__name__).debug("Screenshot triggered")


def _resolve(path: PathLike) -> Path:
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise ScreenshotLibraryError(f"Invalid path: {path}") from exc


def add_screenshot_to_library(
    filename: PathLike,
    thumbnail_filename: Optional[PathLike] = None,
    width: int = 0,
    height: int = 0,
) -> ScreenshotHandle:
    """Add an image on disk to the user's Steam screenshot library.

    Args:
        filename: Path to the screenshot image (JPEG, TGA or PNG).
        thumbnail_filename: Optional thumbnail; None lets Steam generate one.
        width: Width of the screenshot in pixels.
        height: Height of the screenshot in pixels.

    Returns:
        The screenshot handle assigned by Steam.

    Raises:
        ScreenshotLibraryError: If a path does not exist or Steam rejects the file.

    The dimensions are passed through unchecked. This call reads the file and
    can block; from asyncio code use add_screenshot_to_library_async().
    """
    image_path = _resolve(filename)
    thumbnail_path = _resolve(thumbnail_filename) if thumbnail_filename is not None else None

    client = get_client()
    handle = client.library.SteamAPI_ISteamScreenshots_AddScreenshotToLibrary(
        client.screenshots_interface,
        encode_path(image_path),
        encode_path(thumbnail_path) if thumbnail_path is not None else None,
        int(width),
        int(height),
    )
    if handle == INVALID_SCREENSHOT_HANDLE:
        raise ScreenshotLibraryError(f"The screenshot file could not be saved: {image_path}")

    logging.getLogger(__name__).info("Added %s to screenshot library (handle %d)", image_path, handle)
    return ScreenshotHandle(int(handle))


async def add_screenshot_to_library_async(
    filename: PathLike,
    thumbnail_filename: Optional[PathLike] = None,
    width: int = 0,
    height: int = 0,
    *,
    executor: Optional[Executor] = None,
) -> ScreenshotHandle:
    """add_screenshot_to_library() on a worker thread so the event loop keeps running."""
    loop = asyncio.get_running_loop()
    call = functools.partial(add_screenshot_to_library, filename, thumbnail_filename, width, height)
    return await loop.run_in_executor(executor, call)


__all__ = [
    "ScreenshotHookState",
    "ScreenshotLibraryError",
    "add_screenshot_to_library",
    "add_screenshot_to_library_async",
    "hook_screenshots",
    "is_screenshots_hooked",
    "screenshot_hook_state",
    "trigger_screenshot",
]
