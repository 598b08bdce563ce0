"""ctypes bindings over the Steamworks flat C API.

Only the entry points used by this project are declared. Every function is
looked up on the loaded ``steam_api`` library and given explicit argtypes and
restype so 64-bit identifiers and C strings cross the boundary without
truncation or pointer mangling.

The redistributable shipped with the Steamworks SDK must sit next to the
executable, on the loader search path, or in the configured ``library_dir``.
"""
from __future__ import annotations

import ctypes
import ctypes.util
import logging
import platform
import sys
from pathlib import Path
from typing import Any, Optional

Logger = logging.Logger

_IS_WINDOWS = sys.platform.startswith("win32")

FRIENDS_ACCESSOR = "SteamAPI_SteamFriends_v017"
SCREENSHOTS_ACCESSOR = "SteamAPI_SteamScreenshots_v003"

INVALID_SCREENSHOT_HANDLE = 0
STEAM_ERR_MSG_SIZE = 1024
K_ERESULT_OK = 1


class UnsupportedPlatformError(RuntimeError):
    """Raised when no Steamworks redistributable exists for the host platform."""


class SteamLibraryError(RuntimeError):
    """Raised when the steam_api library cannot be loaded or lacks a symbol."""


class SteamInitError(RuntimeError):
    """Raised when SteamAPI initialisation fails (Steam not running, bad app id, ...)."""


class ClientNotInitializedError(RuntimeError):
    """Raised when a Steam operation runs before init() or after shutdown().

    This is a lifecycle bug in the host application, not a recoverable state.
    """


class CallbackMsg(ctypes.Structure):
    """Mirror of ``CallbackMsg_t`` used by manual callback dispatch."""

    # Steam packs callback structs to 8 bytes on Windows and 4 elsewhere.
    _pack_ = 8 if _IS_WINDOWS else 4
    _fields_ = [
        ("user", ctypes.c_int32),
        ("callback_id", ctypes.c_int),
        ("param", ctypes.c_void_p),
        ("param_size", ctypes.c_int),
    ]


class ScreenshotReadyPayload(ctypes.Structure):
    """Mirror of ``ScreenshotReady_t``."""

    _pack_ = 8 if _IS_WINDOWS else 4
    _fields_ = [
        ("handle", ctypes.c_uint32),
        ("result", ctypes.c_int),
    ]


_c_pipe = ctypes.c_int32

_SIGNATURES = {
    "SteamAPI_InitFlat": ([ctypes.c_char_p], ctypes.c_int),
    "SteamAPI_Init": ([], ctypes.c_bool),
    "SteamAPI_Shutdown": ([], None),
    "SteamAPI_RestartAppIfNecessary": ([ctypes.c_uint32], ctypes.c_bool),
    "SteamAPI_GetHSteamPipe": ([], _c_pipe),
    "SteamAPI_ManualDispatch_Init": ([], None),
    "SteamAPI_ManualDispatch_RunFrame": ([_c_pipe], None),
    "SteamAPI_ManualDispatch_GetNextCallback": ([_c_pipe, ctypes.POINTER(CallbackMsg)], ctypes.c_bool),
    "SteamAPI_ManualDispatch_FreeLastCallback": ([_c_pipe], None),
    FRIENDS_ACCESSOR: ([], ctypes.c_void_p),
    SCREENSHOTS_ACCESSOR: ([], ctypes.c_void_p),
    "SteamAPI_ISteamFriends_GetFriendCount": ([ctypes.c_void_p, ctypes.c_int], ctypes.c_int),
    "SteamAPI_ISteamFriends_GetFriendByIndex": ([ctypes.c_void_p, ctypes.c_int, ctypes.c_int], ctypes.c_uint64),
    "SteamAPI_ISteamFriends_GetFriendPersonaName": ([ctypes.c_void_p, ctypes.c_uint64], ctypes.c_char_p),
    "SteamAPI_ISteamScreenshots_HookScreenshots": ([ctypes.c_void_p, ctypes.c_bool], None),
    "SteamAPI_ISteamScreenshots_IsScreenshotsHooked": ([ctypes.c_void_p], ctypes.c_bool),
    "SteamAPI_ISteamScreenshots_TriggerScreenshot": ([ctypes.c_void_p], None),
    "SteamAPI_ISteamScreenshots_AddScreenshotToLibrary": (
        [ctypes.c_void_p, ctypes.c_char_p, ctypes.c_char_p, ctypes.c_int, ctypes.c_int],
        ctypes.c_uint32,
    ),
}

# SDK 1.58 replaced the exported SteamAPI_Init with SteamAPI_InitFlat; either may be missing.
_OPTIONAL_SYMBOLS = frozenset({"SteamAPI_InitFlat", "SteamAPI_Init"})


def library_filename(platform_name: Optional[str] = None, machine: Optional[str] = None) -> str:
    """Return the redistributable file name for a platform/architecture pair."""

    platform_name = platform_name or sys.platform
    machine = (machine or platform.machine()).lower()
    is_64bit = machine in ("amd64", "x86_64", "x64", "arm64", "aarch64")

    if platform_name.startswith("win32"):
        return "steam_api64.dll" if is_64bit else "steam_api.dll"
    if platform_name.startswith("linux") and machine in ("x86_64", "amd64"):
        return "libsteam_api.so"
    if platform_name.startswith("darwin"):
        return "libsteam_api.dylib"
    raise UnsupportedPlatformError(f"Unsupported OS: {platform_name}, architecture: {machine}")


def load_library(library_dir: Optional[Path] = None, logger: Optional[Logger] = None) -> ctypes.CDLL:
    """Load steam_api and declare the signatures of every entry point we call."""

    logger = logger or logging.getLogger(__name__)
    filename = library_filename()
    candidates = []
    if library_dir is not None:
        candidates.append(str(Path(library_dir) / filename))
    candidates.append(filename)
    found = ctypes.util.find_library("steam_api64" if filename == "steam_api64.dll" else "steam_api")
    if found:
        candidates.append(found)

    errors = []
    for candidate in candidates:
        try:
            library = ctypes.CDLL(candidate)
        except OSError as exc:
            errors.append(f"{candidate}: {exc}")
            continue
        logger.debug("Loaded Steamworks library from %s", candidate)
        declare_signatures(library)
        return library

    raise SteamLibraryError("Could not load the Steamworks library (" + "; ".join(errors) + ")")


def declare_signatures(library: Any) -> None:
    """Attach argtypes/restype to each flat API function on ``library``."""

    for name, (argtypes, restype) in _SIGNATURES.items():
        try:
            function = getattr(library, name)
        except AttributeError as exc:
            if name in _OPTIONAL_SYMBOLS:
                continue
            raise SteamLibraryError(f"Steamworks library is missing symbol {name}") from exc
        function.argtypes = argtypes
        function.restype = restype


def initialize(library: Any) -> None:
    """Start the Steam API session on ``library``; raises SteamInitError on failure."""

    init_flat = getattr(library, "SteamAPI_InitFlat", None)
    if init_flat is not None:
        message = ctypes.create_string_buffer(STEAM_ERR_MSG_SIZE)
        result = init_flat(message)
        if result != 0:
            detail = decode_string(message.value) or f"SteamAPI_InitFlat returned {result}"
            raise SteamInitError(detail)
        return

    init = getattr(library, "SteamAPI_Init", None)
    if init is None:
        raise SteamLibraryError("Steamworks library exports neither SteamAPI_InitFlat nor SteamAPI_Init")
    if not init():
        raise SteamInitError("SteamAPI_Init failed; make sure Steam is running and the app id is valid")


def decode_string(raw: Optional[bytes]) -> str:
    """Decode a native UTF-8 C string; NULL becomes an empty string."""

    if raw is None:
        return ""
    return raw.decode("utf-8", errors="replace")


def encode_path(path: Path) -> bytes:
    return str(path).encode("utf-8")


__all__ = [
    "CallbackMsg",
    "ClientNotInitializedError",
    "FRIENDS_ACCESSOR",
    "INVALID_SCREENSHOT_HANDLE",
    "K_ERESULT_OK",
    "SCREENSHOTS_ACCESSOR",
    "ScreenshotReadyPayload",
    "SteamInitError",
    "SteamLibraryError",
    "UnsupportedPlatformError",
    "declare_signatures",
    "decode_string",
    "encode_path",
    "initialize",
    "library_filename",
    "load_library",
]
