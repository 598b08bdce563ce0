"""Manual dispatch of Steam callbacks.

Steam queues notifications (screenshot requested, screenshot written, ...) on
the session pipe. They are only delivered when the host pumps the pipe, which
CallbackPump does either on demand via run_frame() or on a background thread
at a fixed rate. Callbacks the bridge does not know about are freed untouched.
"""
from __future__ import annotations

import ctypes
import logging
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Union

from .native import K_ERESULT_OK, CallbackMsg, ClientNotInitializedError, ScreenshotReadyPayload

Logger = logging.Logger


class SteamCallback(IntEnum):
    """Callback ids (k_iSteamScreenshotsCallbacks + n) the bridge decodes."""

    SCREENSHOT_READY = 2301
    SCREENSHOT_REQUESTED = 2302


@dataclass(frozen=True, slots=True)
class ScreenshotRequested:
    """The user pressed the screenshot hotkey (or trigger_screenshot ran) while hooked."""


@dataclass(frozen=True, slots=True)
class ScreenshotReady:
    """A screenshot finished writing to the library."""

    handle: int
    result: int

    @property
    def ok(self) -> bool:
        return self.result == K_ERESULT_OK


CallbackEvent = Union[ScreenshotRequested, ScreenshotReady]
Handler = Callable[[Any], None]


def decode_callback(callback_id: int, payload: bytes) -> Optional[CallbackEvent]:
    """Turn a raw callback payload into an event object, or None if unknown."""

    if callback_id == SteamCallback.SCREENSHOT_REQUESTED:
        return ScreenshotRequested()
    if callback_id == SteamCallback.SCREENSHOT_READY:
        if len(payload) < ctypes.sizeof(ScreenshotReadyPayload):
            return None
        raw = ScreenshotReadyPayload.from_buffer_copy(payload[: ctypes.sizeof(ScreenshotReadyPayload)])
        return ScreenshotReady(handle=int(raw.handle), result=int(raw.result))
    return None


class CallbackHandle:
    """Registration token returned by CallbackPump.register()."""

    def __init__(self, pump: "CallbackPump", callback: SteamCallback, handler: Handler) -> None:
        self._pump = pump
        self._callback = callback
        self._handler = handler

    def disconnect(self) -> None:
        self._pump._unregister(self._callback, self._handler)  # pylint: disable=protected-access


class CallbackPump:
    """Drains the manual-dispatch queue and fans events out to handlers."""

    def __init__(self, library: Any, pipe: int, logger: Optional[Logger] = None) -> None:
        self._library = library
        self._pipe = pipe
        self._logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[SteamCallback, List[Handler]] = {}
        self._handlers_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def register(self, callback: SteamCallback, handler: Handler) -> CallbackHandle:
        """Invoke ``handler(event)`` every time ``callback`` is dispatched."""
        callback = SteamCallback(callback)
        with self._handlers_lock:
            self._handlers.setdefault(callback, []).append(handler)
        self._logger.debug("Registered handler for %s", callback.name)
        return CallbackHandle(self, callback, handler)

    def _unregister(self, callback: SteamCallback, handler: Handler) -> None:
        with self._handlers_lock:
            handlers = self._handlers.get(callback, [])
            if handler in handlers:
                handlers.remove(handler)

    def run_frame(self) -> int:
        """Pump the pipe once and dispatch every queued callback.

        Returns:
            Number of callbacks drained from the queue (known or not).
        """
        library = self._library
        library.SteamAPI_ManualDispatch_RunFrame(self._pipe)

        drained = 0
        message = CallbackMsg()
        while library.SteamAPI_ManualDispatch_GetNextCallback(self._pipe, ctypes.pointer(message)):
            drained += 1
            try:
                payload = b""
                if message.param and message.param_size > 0:
                    payload = ctypes.string_at(message.param, message.param_size)
                event = decode_callback(message.callback_id, payload)
                if event is not None:
                    self._dispatch(SteamCallback(message.callback_id), event)
            finally:
                library.SteamAPI_ManualDispatch_FreeLastCallback(self._pipe)
        return drained

    def _dispatch(self, callback: SteamCallback, event: CallbackEvent) -> None:
        with self._handlers_lock:
            handlers = list(self._handlers.get(callback, ()))
        self._logger.debug("Dispatching %s to %d handler(s)", callback.name, len(handlers))
        for handler in handlers:
            try:
                handler(event)
            except ClientNotInitializedError:
                raise
            except Exception:
                self._logger.exception("Handler for %s failed", callback.name)

    def start(self, interval_s: float = 1 / 30) -> None:
        """Run run_frame() every ``interval_s`` seconds on a daemon thread."""
        self.stop()
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._loop,
            args=(interval_s, stop_event),
            name="steam-callbacks",
            daemon=True,
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()
        self._logger.debug("Callback pump started (%.3fs interval)", interval_s)

    def stop(self) -> None:
        if self._thread is None or self._stop_event is None:
            return
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            # A frame in progress must free its callback before SteamAPI_Shutdown.
            self._thread.join()
        self._thread = None
        self._stop_event = None
        self._logger.debug("Callback pump stopped")

    def _loop(self, interval_s: float, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.run_frame()
            except ClientNotInitializedError:
                self._logger.critical("Steam client went away under the callback pump; stopping")
                raise
            except Exception:
                self._logger.exception("Steam callback frame failed")
            stop_event.wait(interval_s)


__all__ = [
    "CallbackEvent",
    "CallbackHandle",
    "CallbackPump",
    "ScreenshotReady",
    "ScreenshotRequested",
    "SteamCallback",
    "decode_callback",
]
