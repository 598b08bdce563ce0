#!/usr/bin/env python3
"""Host entry point: keep a Steam session alive and answer screenshot requests."""
import logging
import sys
import time
from pathlib import Path

from swb_api import hook_screenshots, screenshot_hook_state
from swb_api.responder import ScreenshotResponder
from swb_os import client as steam_client
from swb_os.capture import ScreenCapture
from swb_os.config import load_configs
from swb_os.native import SteamInitError, SteamLibraryError, UnsupportedPlatformError


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application.

    Args:
        level: Logging level (default: INFO)

    Returns:
        Root logger instance
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger()


def main() -> int:
    """Main entry point."""
    logger = setup_logging(level=logging.INFO)

    config_path = Path("config.yaml")
    if not config_path.exists():
        logger.warning("config.yaml not found; using defaults")

    try:
        steam_cfg, capture_cfg = load_configs(config_path)
    except Exception as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1

    logger.info("Configuration loaded")
    logger.info("  App id: %s", steam_cfg.app_id if steam_cfg.app_id is not None else "steam_appid.txt")
    logger.info("  Hook screenshots: %s", steam_cfg.hook_screenshots)
    logger.info("  Capture dir: %s", capture_cfg.output_dir)

    try:
        if steam_cfg.restart_if_necessary and steam_cfg.app_id is not None:
            if steam_client.restart_app_if_necessary(steam_cfg.app_id, config=steam_cfg):
                logger.info("Steam is relaunching the app; exiting")
                return 0
        client = steam_client.init(config=steam_cfg, logger=logger)
    except (SteamInitError, SteamLibraryError, UnsupportedPlatformError) as exc:
        logger.error("Could not start Steam: %s", exc)
        return 1

    responder = None
    exit_code = 0
    try:
        if steam_cfg.hook_screenshots:
            hook_screenshots(True)
            responder = ScreenshotResponder(ScreenCapture(capture_cfg), logger=logger)
            responder.attach(client.callbacks)
        logger.info("Screenshot mode: %s", screenshot_hook_state().value)

        if not client.callbacks.running:
            client.callbacks.start(1 / 30)

        logger.info("Press Ctrl+C to stop")
        while client.callbacks.running:
            time.sleep(0.5)
        logger.error("Callback pump stopped unexpectedly")
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        if responder is not None:
            responder.detach()
            hook_screenshots(False)
        steam_client.shutdown()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
