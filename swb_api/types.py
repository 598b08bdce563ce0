"""Value types that cross the Python/native boundary."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, NewType, SupportsInt, Union

SteamId64 = NewType("SteamId64", int)  # u64
ScreenshotHandle = NewType("ScreenshotHandle", int)  # u32

U64_MASK = 0xFFFF_FFFF_FFFF_FFFF

Intable = Union[SupportsInt, str]  # anything int(x) accepts


def to_steam_id64(value: Intable) -> SteamId64:
    """Reduce ``value`` to the unsigned 64-bit range native code expects.

    Python ints never lose precision, so this only drops bits a caller set
    above bit 63 (or the sign of a negative value), the same way a wide
    integer is narrowed to u64.
    """
    if isinstance(value, str):
        return SteamId64(int(value, 0) & U64_MASK)
    return SteamId64(int(value) & U64_MASK)


@dataclass(frozen=True, slots=True)
class Friend:
    """A friend-list entry as seen at query time."""

    steam_id: SteamId64
    name: str

    def to_dict(self) -> Dict[str, object]:
        return {"steamId": int(self.steam_id), "name": self.name}


__all__ = [
    "Friend",
    "ScreenshotHandle",
    "SteamId64",
    "U64_MASK",
    "to_steam_id64",
]
