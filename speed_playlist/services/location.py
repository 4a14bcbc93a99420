from __future__ import annotations

import json
import logging
import socket
from typing import Optional, Protocol

from speed_playlist.config import GPSD_DEFAULT_HOST, GPSD_DEFAULT_PORT, MPS_TO_MPH
from speed_playlist.errors import LocationError

logger = logging.getLogger(__name__)


def mps_to_mph(speed_mps: Optional[float]) -> float:
    # a missing or negative speed reading counts as standing still
    return max(0.0, float(speed_mps or 0.0)) * MPS_TO_MPH


class SpeedSource(Protocol):
    def current_speed(self) -> float: ...


class FixedSpeedSource:
    """Always reports the same speed; for desks, demos and tests."""

    def __init__(self, mph: float) -> None:
        self.mph = float(mph)

    def current_speed(self) -> float:
        return self.mph


class GpsdSpeedSource:
    """
    Reads speed from a gpsd daemon.

    Opens the JSON socket, enables WATCH and waits for the first TPV report
    that carries a fix. gpsd reports speed in m/s.
    """

    WATCH = b'?WATCH={"enable":true,"json":true};\n'

    def __init__(
        self,
        host: str = GPSD_DEFAULT_HOST,
        port: int = GPSD_DEFAULT_PORT,
        timeout: float = 5.0,
        max_reports: int = 50,
    ) -> None:
        self.host = host
        self.port = int(port)
        self.timeout = timeout
        self.max_reports = max_reports

    def current_speed(self) -> float:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(self.WATCH)
                with sock.makefile("r", encoding="utf-8", newline="\n") as stream:
                    return self._read_speed(stream)
        except OSError as e:
            raise LocationError(f"gpsd at {self.host}:{self.port} unavailable: {e}") from e

    def _read_speed(self, stream) -> float:
        for _ in range(self.max_reports):
            line = stream.readline()
            if not line:
                break
            speed = parse_tpv_speed(line)
            if speed is not None:
                return mps_to_mph(speed)
        raise LocationError("No position fix reported by gpsd")


def parse_tpv_speed(line: str) -> Optional[float]:
    """Speed (m/s) from one gpsd JSON line, or None if it is not a usable TPV."""
    try:
        report = json.loads(line)
    except ValueError:
        logger.debug(f"gpsd: unparsable line {line[:80]!r}")
        return None
    if not isinstance(report, dict) or report.get("class") != "TPV":
        return None
    # mode: 0/1 = no fix, 2 = 2D, 3 = 3D
    if int(report.get("mode", 0) or 0) < 2:
        return None
    if "speed" not in report:
        return 0.0
    return float(report["speed"] or 0.0)
