"""In-process stand-in for the steam_api flat C API."""
from __future__ import annotations

import ctypes
from typing import Dict, List, Optional, Tuple

import pytest

from swb_api.friends import FriendFlags
from swb_os import client as steam_client
from swb_os.config import SteamConfig
from swb_os.native import CallbackMsg, declare_signatures

FRIENDS_PTR = 0x1000
SCREENSHOTS_PTR = 0x2000
PIPE = 7

ALICE = 76561197985341433
BOB = 76561198034399293
MALLORY = 76561198000000001
CAROL = 76561198000000002
ZOE = 76561198000000003
STRANGER = 76561198999999999


class FakeSteamLibrary:
    """Implements just enough of steam_api for the bridge to run against."""

    def __init__(self, friends: Optional[List[Tuple[int, int, str]]] = None, init_ok: bool = True) -> None:
        self.friends = list(friends or [])
        self.init_ok = init_ok
        self.init_calls = 0
        self.shutdown_calls = 0
        self.manual_dispatch = False
        self.restart_answer = False
        self.restart_checked: Optional[int] = None
        self.count_override: Optional[int] = None
        self.hooked = False
        self.triggered = 0
        self.added: List[Tuple[bytes, Optional[bytes], int, int]] = []
        self.reject_add = False
        self.next_handle = 1
        self.queue: List[Tuple[int, bytes]] = []
        self.frames = 0
        self.freed = 0
        self._current: Optional[ctypes.Array] = None

    # lifecycle
    def SteamAPI_Init(self) -> bool:
        self.init_calls += 1
        return self.init_ok

    def SteamAPI_Shutdown(self) -> None:
        self.shutdown_calls += 1

    def SteamAPI_RestartAppIfNecessary(self, app_id: int) -> bool:
        self.restart_checked = app_id
        return self.restart_answer

    def SteamAPI_GetHSteamPipe(self) -> int:
        return PIPE

    # manual dispatch
    def SteamAPI_ManualDispatch_Init(self) -> None:
        self.manual_dispatch = True

    def SteamAPI_ManualDispatch_RunFrame(self, pipe: int) -> None:
        assert pipe == PIPE
        self.frames += 1

    def SteamAPI_ManualDispatch_GetNextCallback(self, pipe: int, message) -> bool:
        if not self.queue:
            return False
        callback_id, payload = self.queue.pop(0)
        msg = message.contents
        msg.callback_id = callback_id
        if payload:
            self._current = ctypes.create_string_buffer(payload, len(payload))
            msg.param = ctypes.addressof(self._current)
        else:
            self._current = None
            msg.param = None
        msg.param_size = len(payload)
        return True

    def SteamAPI_ManualDispatch_FreeLastCallback(self, pipe: int) -> None:
        self.freed += 1
        self._current = None

    # interface accessors
    def SteamAPI_SteamFriends_v017(self) -> int:
        return FRIENDS_PTR

    def SteamAPI_SteamScreenshots_v003(self) -> int:
        return SCREENSHOTS_PTR

    # ISteamFriends
    def _matching(self, flags: int) -> List[Tuple[int, int, str]]:
        return [entry for entry in self.friends if entry[1] & flags]

    def SteamAPI_ISteamFriends_GetFriendCount(self, interface: int, flags: int) -> int:
        assert interface == FRIENDS_PTR
        if self.count_override is not None:
            return self.count_override
        return len(self._matching(flags))

    def SteamAPI_ISteamFriends_GetFriendByIndex(self, interface: int, index: int, flags: int) -> int:
        return self._matching(flags)[index][0]

    def SteamAPI_ISteamFriends_GetFriendPersonaName(self, interface: int, steam_id: int) -> Optional[bytes]:
        assert 0 <= steam_id < 2**64
        names: Dict[int, str] = {entry[0]: entry[2] for entry in self.friends}
        if steam_id in names:
            return names[steam_id].encode("utf-8")
        return b""

    # ISteamScreenshots
    def SteamAPI_ISteamScreenshots_HookScreenshots(self, interface: int, hook: bool) -> None:
        assert interface == SCREENSHOTS_PTR
        self.hooked = bool(hook)

    def SteamAPI_ISteamScreenshots_IsScreenshotsHooked(self, interface: int) -> bool:
        return self.hooked

    def SteamAPI_ISteamScreenshots_TriggerScreenshot(self, interface: int) -> None:
        self.triggered += 1

    def SteamAPI_ISteamScreenshots_AddScreenshotToLibrary(
        self, interface: int, filename: bytes, thumbnail: Optional[bytes], width: int, height: int
    ) -> int:
        self.added.append((filename, thumbnail, width, height))
        if self.reject_add:
            return 0
        handle = self.next_handle
        self.next_handle += 1
        return handle


def default_friends() -> List[Tuple[int, int, str]]:
    return [
        (ALICE, FriendFlags.IMMEDIATE, "XXX"),
        (BOB, FriendFlags.IMMEDIATE, "YYY"),
        (MALLORY, FriendFlags.BLOCKED, "Mallory"),
        (CAROL, FriendFlags.REQUESTING_FRIENDSHIP, "Carol"),
        (ZOE, FriendFlags.IMMEDIATE | FriendFlags.CLAN_MEMBER, "Zoë"),
    ]


@pytest.fixture
def fake_library() -> FakeSteamLibrary:
    return FakeSteamLibrary(friends=default_friends())


@pytest.fixture(autouse=True)
def _isolate_client(monkeypatch):
    monkeypatch.delenv("SteamAppId", raising=False)
    monkeypatch.delenv("SteamGameId", raising=False)
    yield
    steam_client.shutdown()


@pytest.fixture
def steam(fake_library) -> FakeSteamLibrary:
    steam_client.init(480, config=SteamConfig(callback_interval_s=0), library=fake_library)
    return fake_library


_C_ABI = {
    "SteamAPI_Init": (ctypes.c_bool,),
    "SteamAPI_Shutdown": (None,),
    "SteamAPI_RestartAppIfNecessary": (ctypes.c_bool, ctypes.c_uint32),
    "SteamAPI_GetHSteamPipe": (ctypes.c_int32,),
    "SteamAPI_ManualDispatch_Init": (None,),
    "SteamAPI_ManualDispatch_RunFrame": (None, ctypes.c_int32),
    "SteamAPI_ManualDispatch_GetNextCallback": (ctypes.c_bool, ctypes.c_int32, ctypes.POINTER(CallbackMsg)),
    "SteamAPI_ManualDispatch_FreeLastCallback": (None, ctypes.c_int32),
    "SteamAPI_SteamFriends_v017": (ctypes.c_void_p,),
    "SteamAPI_SteamScreenshots_v003": (ctypes.c_void_p,),
    "SteamAPI_ISteamFriends_GetFriendCount": (ctypes.c_int, ctypes.c_void_p, ctypes.c_int),
    "SteamAPI_ISteamFriends_GetFriendByIndex": (ctypes.c_uint64, ctypes.c_void_p, ctypes.c_int, ctypes.c_int),
    # const char*, handed back as a raw address so the buffer stays owned here
    "SteamAPI_ISteamFriends_GetFriendPersonaName": (ctypes.c_void_p, ctypes.c_void_p, ctypes.c_uint64),
    "SteamAPI_ISteamScreenshots_HookScreenshots": (None, ctypes.c_void_p, ctypes.c_bool),
    "SteamAPI_ISteamScreenshots_IsScreenshotsHooked": (ctypes.c_bool, ctypes.c_void_p),
    "SteamAPI_ISteamScreenshots_TriggerScreenshot": (None, ctypes.c_void_p),
    "SteamAPI_ISteamScreenshots_AddScreenshotToLibrary": (
        ctypes.c_uint32,
        ctypes.c_void_p,
        ctypes.c_char_p,
        ctypes.c_char_p,
        ctypes.c_int,
        ctypes.c_int,
    ),
}


class CtypesSteamLibrary:
    """Exposes a FakeSteamLibrary as C function pointers.

    Every entry point is a real foreign function whose argtypes/restype are
    set by declare_signatures(), so arguments and results go through the
    same ctypes conversions as calls into steam_api.
    """

    def __init__(self, backend: FakeSteamLibrary) -> None:
        self.backend = backend
        self._thunks = []
        self._strings = []
        for name, (restype, *argtypes) in _C_ABI.items():
            setattr(self, name, self._export(name, restype, argtypes))
        declare_signatures(self)

    def _export(self, name: str, restype, argtypes):
        def call(*args):
            return getattr(self.backend, name)(*args)

        if name == "SteamAPI_ISteamFriends_GetFriendPersonaName":
            call = self._returning_string(call)

        thunk = ctypes.CFUNCTYPE(restype, *argtypes)(call)
        self._thunks.append(thunk)
        address = ctypes.cast(thunk, ctypes.c_void_p).value
        return ctypes.CFUNCTYPE(None)(address)

    def _returning_string(self, call):
        def wrapper(*args):
            raw = call(*args)
            if raw is None:
                return None
            buffer = ctypes.create_string_buffer(raw)
            self._strings.append(buffer)
            return ctypes.addressof(buffer)

        return wrapper


@pytest.fixture
def ctypes_steam(fake_library) -> FakeSteamLibrary:
    steam_client.init(480, config=SteamConfig(callback_interval_s=0), library=CtypesSteamLibrary(fake_library))
    return fake_library
