"""Read-only queries over the Steam friend list."""
from __future__ import annotations

import logging
from enum import IntFlag
from typing import List, Union

from swb_os.client import get_client
from swb_os.native import decode_string

from .types import Friend, Intable, SteamId64, to_steam_id64


class FriendFlags(IntFlag):
    """EFriendFlags bit layout, kept identical to the native enum."""

    NONE = 0x00
    BLOCKED = 0x01
    FRIENDSHIP_REQUESTED = 0x02
    IMMEDIATE = 0x04
    CLAN_MEMBER = 0x08
    ON_GAME_SERVER = 0x10
    REQUESTING_FRIENDSHIP = 0x80
    REQUESTING_INFO = 0x100
    ALL = 0xFFFF


KNOWN_FRIEND_FLAGS = int(FriendFlags.ALL)


def truncate_flags(flags: Union[FriendFlags, int]) -> FriendFlags:
    """Drop bits outside the native 16-bit flag width instead of rejecting them."""
    return FriendFlags(int(flags) & KNOWN_FRIEND_FLAGS)


def get_friends(flags: Union[FriendFlags, int] = FriendFlags.IMMEDIATE) -> List[Friend]:
    """Get the friends matching ``flags``.

    The order is whatever the Steam client reports and may change between
    calls. An empty list simply means nobody matched.

    Example:
        friends = get_friends(FriendFlags.IMMEDIATE)
        # [Friend(steam_id=76561197985341433, name="XXX"), ...]
    """
    client = get_client()
    library = client.library
    interface = client.friends_interface
    mask = int(truncate_flags(flags))

    count = library.SteamAPI_ISteamFriends_GetFriendCount(interface, mask)
    friends = []
    for index in range(max(count, 0)):
        raw_id = library.SteamAPI_ISteamFriends_GetFriendByIndex(interface, index, mask)
        name = decode_string(library.SteamAPI_ISteamFriends_GetFriendPersonaName(interface, raw_id))
        friends.append(Friend(steam_id=SteamId64(int(raw_id)), name=name))

    logging.getLogger(__name__).debug("get_friends(0x%04x) -> %d friend(s)", mask, len(friends))
    return friends


def get_friend_name(steam_id64: Intable) -> str:
    """Get the persona name of an account.

    Unknown accounts are not an error: the Steam client answers with an empty
    string (or its own placeholder), which is returned as-is.
    """
    client = get_client()
    steam_id = to_steam_id64(steam_id64)
    raw = client.library.SteamAPI_ISteamFriends_GetFriendPersonaName(client.friends_interface, steam_id)
    return decode_string(raw)


__all__ = [
    "FriendFlags",
    "KNOWN_FRIEND_FLAGS",
    "get_friend_name",
    "get_friends",
    "truncate_flags",
]
