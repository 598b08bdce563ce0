"""Friends and screenshot operations over the shared Steam client.

Every call resolves the process-wide client through swb_os.client.get_client(),
so swb_os.client.init() must have run first.
"""

from .friends import FriendFlags, get_friend_name, get_friends
from .screenshots import (
    ScreenshotHookState,
    ScreenshotLibraryError,
    add_screenshot_to_library,
    add_screenshot_to_library_async,
    hook_screenshots,
    is_screenshots_hooked,
    screenshot_hook_state,
    trigger_screenshot,
)
from .types import Friend, ScreenshotHandle, SteamId64

__all__ = [
    "Friend",
    "FriendFlags",
    "ScreenshotHandle",
    "ScreenshotHookState",
    "ScreenshotLibraryError",
    "SteamId64",
    "add_screenshot_to_library",
    "add_screenshot_to_library_async",
    "get_friend_name",
    "get_friends",
    "hook_screenshots",
    "is_screenshots_hooked",
    "screenshot_hook_state",
    "trigger_screenshot",
]
