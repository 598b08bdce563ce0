"""Process-wide access to the native Steam client session.

The surrounding application calls init() once at startup; everything else
resolves the live session through get_client(). There is never more than one
session per process.
"""
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Optional

from . import native
from .native import ClientNotInitializedError, SteamLibraryError
from .callbacks import CallbackPump
from .config import SteamConfig

Logger = logging.Logger


class Client:
    """Handle over an initialised Steam API session."""

    def __init__(self, library: Any, app_id: Optional[int] = None, logger: Optional[Logger] = None) -> None:
        self._library = library
        self._app_id = app_id
        self._logger = logger or logging.getLogger(__name__)
        self._friends = _interface(library, native.FRIENDS_ACCESSOR)
        self._screenshots = _interface(library, native.SCREENSHOTS_ACCESSOR)
        self._pipe = library.SteamAPI_GetHSteamPipe()
        self._callbacks = CallbackPump(library, self._pipe, logger=self._logger)

    @property
    def library(self) -> Any:
        return self._library

    @property
    def app_id(self) -> Optional[int]:
        return self._app_id

    @property
    def friends_interface(self) -> Any:
        """ISteamFriends pointer passed as ``self`` to friends calls."""
        return self._friends

    @property
    def screenshots_interface(self) -> Any:
        """ISteamScreenshots pointer passed as ``self`` to screenshot calls."""
        return self._screenshots

    @property
    def pipe(self) -> int:
        return self._pipe

    @property
    def callbacks(self) -> CallbackPump:
        return self._callbacks


def _interface(library: Any, accessor: str) -> Any:
    pointer = getattr(library, accessor)()
    if not pointer:
        raise SteamLibraryError(f"{accessor} returned NULL; the running Steam client does not provide this interface")
    return pointer


_client: Optional[Client] = None
_client_lock = threading.Lock()


def init(
    app_id: Optional[int] = None,
    *,
    config: Optional[SteamConfig] = None,
    library: Any = None,
    logger: Optional[Logger] = None,
) -> Client:
    """Initialise the Steam API and publish the process-wide client.

    Args:
        app_id: App to run as. If None, ``config.app_id`` is used, and failing
            that the SDK searches for a steam_appid.txt next to the executable.
        config: Session configuration (library location, callback pump rate).
        library: Pre-loaded steam_api library; loaded from disk when omitted.
        logger: Optional logger instance.

    Raises:
        SteamLibraryError: If the native library cannot be loaded or lacks a
            required interface.
        SteamInitError: If the Steam API refuses to start.
    """
    global _client

    logger = logger or logging.getLogger(__name__)
    config = config or SteamConfig()
    if app_id is None:
        app_id = config.app_id

    with _client_lock:
        if _client is not None:
            logger.warning("Steam client already initialised; reusing existing session")
            return _client

        if app_id is not None:
            os.environ["SteamAppId"] = str(app_id)
            os.environ["SteamGameId"] = str(app_id)

        if library is None:
            library = native.load_library(config.library_dir, logger=logger)
        native.initialize(library)
        try:
            library.SteamAPI_ManualDispatch_Init()
            client = Client(library, app_id=app_id, logger=logger)
        except Exception:
            library.SteamAPI_Shutdown()
            raise

        if config.callback_interval_s > 0:
            client.callbacks.start(config.callback_interval_s)
        _client = client

    logger.info("Steam client initialised (app id %s)", app_id if app_id is not None else "from steam_appid.txt")
    return client


def get_client() -> Client:
    """Return the live client; raises ClientNotInitializedError if there is none."""
    client = _client
    if client is None:
        raise ClientNotInitializedError("Steam client not initialized; call swb_os.client.init() first")
    return client


def is_initialized() -> bool:
    return _client is not None


def shutdown() -> None:
    """Stop the callback pump and close the Steam API session. Safe to call twice."""
    global _client

    with _client_lock:
        client = _client
        if client is None:
            return
        client.callbacks.stop()
        _client = None
        client.library.SteamAPI_Shutdown()
    logging.getLogger(__name__).info("Steam client shut down")


def run_callbacks() -> int:
    """Dispatch pending callbacks once, for hosts that drive their own loop."""
    return get_client().callbacks.run_frame()


def restart_app_if_necessary(app_id: int, *, library: Any = None, config: Optional[SteamConfig] = None) -> bool:
    """Ask Steam whether the process must relaunch through the Steam client.

    Returns True when Steam is restarting the app and this process should exit.
    """
    if library is None:
        library_dir = config.library_dir if config is not None else None
        library = native.load_library(library_dir)
    return bool(library.SteamAPI_RestartAppIfNecessary(int(app_id)))


__all__ = [
    "Client",
    "ClientNotInitializedError",
    "get_client",
    "init",
    "is_initialized",
    "restart_app_if_necessary",
    "run_callbacks",
    "shutdown",
]
