# speed_playlist/app.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from speed_playlist.config import APP_TITLE, Settings, configure_logging
from speed_playlist.paths import CONFIG_FILE

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="speed-playlist",
        description=f"{APP_TITLE}: plays previews of a playlist picked for your current speed",
    )
    parser.add_argument("--endpoint", help="playlist endpoint, queried as ENDPOINT/<speed>")
    parser.add_argument("--speed", type=float, help="use a fixed speed in mph instead of gpsd")
    parser.add_argument("--gpsd", metavar="HOST[:PORT]", help="gpsd daemon to read speed from")
    parser.add_argument("--auto-skip", action="store_true", help="skip songs without preview")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_environment()
    if args.endpoint:
        settings.endpoint = args.endpoint.rstrip("/")
    if args.speed is not None:
        settings.fixed_speed = args.speed
    if args.gpsd:
        host, _, port = args.gpsd.partition(":")
        settings.gpsd_host = host or settings.gpsd_host
        if port:
            settings.gpsd_port = int(port)
    if args.auto_skip:
        settings.auto_skip = True
    return settings


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)

    settings = build_settings(args)
    try:
        settings.validate()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(2)

    from speed_playlist.ui.main_window import run_qt

    run_qt(settings, CONFIG_FILE)
