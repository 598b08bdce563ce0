"""Command-line helper for poking the Steam client by hand.

Every command initialises the client, runs one operation, prints JSON and
shuts the session down again. Steam must be running and logged in.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

try:
    from . import client as steam_client
    from .config import load_configs
    from .native import SteamInitError, SteamLibraryError, UnsupportedPlatformError
except ImportError:  # pragma: no cover - direct execution fallback
    sys.path.append(str(Path(__file__).resolve().parent.parent))
    from swb_os import client as steam_client  # type: ignore
    from swb_os.config import load_configs  # type: ignore
    from swb_os.native import SteamInitError, SteamLibraryError, UnsupportedPlatformError  # type: ignore

from swb_api import friends, screenshots


def parse_flags(text: str) -> int:
    """Accept ``4``, ``0x104`` or ``IMMEDIATE|REQUESTING_INFO``."""

    text = text.strip()
    try:
        return int(text, 0)
    except ValueError:
        pass

    value = 0
    for part in text.split("|"):
        name = part.strip().upper().replace("-", "_")
        try:
            value |= friends.FriendFlags[name]
        except KeyError as exc:
            raise argparse.ArgumentTypeError(f"Unknown friend flag {part.strip()!r}") from exc
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query friends and drive screenshots through Steamworks.")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"), help="Path to config YAML.")
    parser.add_argument("--app-id", type=int, help="App id to run as (overrides config).")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    friends_parser = subparsers.add_parser("friends", help="List friends matching a flag mask.")
    friends_parser.add_argument(
        "--flags",
        type=parse_flags,
        default=int(friends.FriendFlags.IMMEDIATE),
        help="Mask as a number or names joined by '|' (default: IMMEDIATE).",
    )

    name_parser = subparsers.add_parser("friend-name", help="Print the persona name of a SteamID64.")
    name_parser.add_argument("steam_id", type=lambda value: int(value, 0), help="SteamID64 of the account.")

    hook_parser = subparsers.add_parser("hook", help="Hand screenshot capture to the host or back to the overlay.")
    hook_parser.add_argument("state", choices=["on", "off"])

    subparsers.add_parser("hooked", help="Print whether screenshots are hooked.")
    subparsers.add_parser("trigger", help="Request a screenshot.")

    add_parser = subparsers.add_parser("add", help="Add an image file to the screenshot library.")
    add_parser.add_argument("filename", type=Path, help="Image to add.")
    add_parser.add_argument("--thumbnail", type=Path, help="Optional thumbnail image.")
    add_parser.add_argument("--width", type=int, required=True, help="Image width in pixels.")
    add_parser.add_argument("--height", type=int, required=True, help="Image height in pixels.")

    return parser


def _run_command(args: argparse.Namespace) -> Any:
    if args.command == "friends":
        return [friend.to_dict() for friend in friends.get_friends(args.flags)]

    if args.command == "friend-name":
        return {"steamId": args.steam_id, "name": friends.get_friend_name(args.steam_id)}

    if args.command == "hook":
        screenshots.hook_screenshots(args.state == "on")
        return {"hooked": screenshots.is_screenshots_hooked()}

    if args.command == "hooked":
        return {"hooked": screenshots.is_screenshots_hooked()}

    if args.command == "trigger":
        screenshots.trigger_screenshot()
        return {"triggered": True}

    if args.command == "add":
        handle = screenshots.add_screenshot_to_library(args.filename, args.thumbnail, args.width, args.height)
        return {"handle": handle}

    raise ValueError(f"Unknown command {args.command}")


def main(argv: Optional[list] = None, library: Any = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper()), format="[%(levelname)s] %(message)s")

    steam_cfg, _ = load_configs(args.config)
    steam_cfg.callback_interval_s = 0

    try:
        steam_client.init(args.app_id, config=steam_cfg, library=library)
    except (SteamInitError, SteamLibraryError, UnsupportedPlatformError) as exc:
        logging.error("Could not start Steam: %s", exc)
        return 1

    try:
        result = _run_command(args)
    except screenshots.ScreenshotLibraryError as exc:
        logging.error("Screenshot failed: %s", exc)
        return 1
    finally:
        steam_client.shutdown()

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - manual entry point
    raise SystemExit(main())
