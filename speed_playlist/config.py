"""Configuration for the speed playlist player."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


APP_TITLE = "Speed Playlist"
USER_AGENT = "speed-playlist/0.1 (+desktop)"

# 1 m/s = 2.23694 mph
MPS_TO_MPH = 2.23694

LOCATION_INTERVAL_SEC = 30.0
FETCH_INTERVAL_SEC = 10.0
FETCH_TIMEOUT_SEC = 15
PREVIEW_TIMEOUT_SEC = 40

GPSD_DEFAULT_HOST = "127.0.0.1"
GPSD_DEFAULT_PORT = 2947

DEFAULT_VOLUME = 0.7

ENV_PREFIX = "SPEED_PLAYLIST_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_bool(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Runtime settings, usually read from the environment or a .env file."""

    endpoint: str = ""
    location_interval: float = LOCATION_INTERVAL_SEC
    fetch_interval: float = FETCH_INTERVAL_SEC
    gpsd_host: str = GPSD_DEFAULT_HOST
    gpsd_port: int = GPSD_DEFAULT_PORT
    fixed_speed: Optional[float] = None
    auto_skip: bool = False

    @classmethod
    def from_environment(cls, env_path: Path | None = None) -> "Settings":
        """Load settings from SPEED_PLAYLIST_* environment variables."""
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        fixed = _env("FIXED_SPEED")
        return cls(
            endpoint=(_env("ENDPOINT", "") or "").rstrip("/"),
            location_interval=float(_env("LOCATION_INTERVAL", str(LOCATION_INTERVAL_SEC))),
            fetch_interval=float(_env("FETCH_INTERVAL", str(FETCH_INTERVAL_SEC))),
            gpsd_host=_env("GPSD_HOST", GPSD_DEFAULT_HOST) or GPSD_DEFAULT_HOST,
            gpsd_port=int(_env("GPSD_PORT", str(GPSD_DEFAULT_PORT))),
            fixed_speed=float(fixed) if fixed is not None else None,
            auto_skip=_env_bool("AUTO_SKIP"),
        )

    def validate(self) -> None:
        if not self.endpoint:
            raise ValueError(
                "Missing playlist endpoint. Set SPEED_PLAYLIST_ENDPOINT or pass --endpoint"
            )
        if self.location_interval <= 0 or self.fetch_interval <= 0:
            raise ValueError("Polling intervals must be positive")
        if self.fixed_speed is not None and self.fixed_speed < 0:
            raise ValueError("Fixed speed cannot be negative")


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
