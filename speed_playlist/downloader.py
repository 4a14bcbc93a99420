from __future__ import annotations

import hashlib
import logging
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from speed_playlist.config import PREVIEW_TIMEOUT_SEC, USER_AGENT
from speed_playlist.errors import PlaybackError

logger = logging.getLogger(__name__)


class PreviewDownloader:
    """
    Single responsibility: fetch a preview clip to a local file pygame can load.

    Files are named after a hash of the URI, so a second request for the
    same preview is served from disk.
    """

    def __init__(self, temp_dir: Path) -> None:
        self.temp_dir = temp_dir
        self.temp_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, uri: str) -> Path:
        suffix = Path(urlparse(uri).path).suffix.lower() or ".mp3"
        if len(suffix) > 5:
            suffix = ".mp3"
        digest = hashlib.sha1(uri.encode("utf-8")).hexdigest()[:20]
        return self.temp_dir / f"{digest}{suffix}"

    def cached(self, uri: str) -> Optional[Path]:
        """Local file for `uri` if it can be played without a download."""
        if not isinstance(uri, str) or not uri:
            return None
        if not uri.startswith(("http://", "https://")):
            local = Path(uri)
            return local if local.exists() else None
        out = self.path_for(uri)
        return out if out.exists() else None

    def fetch(self, uri: str, timeout: int = PREVIEW_TIMEOUT_SEC) -> Path:
        if not isinstance(uri, str) or not uri:
            raise PlaybackError(f"Invalid preview location: {uri!r}")
        if not uri.startswith(("http://", "https://")):
            local = Path(uri)
            if not local.exists():
                raise PlaybackError(f"Preview file not found: {uri}")
            return local

        out = self.path_for(uri)
        if out.exists():
            return out

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        try:
            r = requests.get(uri, timeout=timeout, headers={"user-agent": USER_AGENT})
            r.raise_for_status()
        except requests.RequestException as e:
            raise PlaybackError(f"Preview download failed: {e}") from e

        tmp = out.with_name(f"{out.name}.{uuid.uuid4().hex[:8]}.part")
        try:
            tmp.write_bytes(r.content)
            tmp.replace(out)
        except OSError as e:
            raise PlaybackError(f"Cannot store preview {out.name}: {e}") from e
        logger.debug(f"Downloaded preview {out.name} ({len(r.content)} bytes)")
        return out

    def cleanup_keep(self, keep_paths: set[str]) -> None:
        if not self.temp_dir.exists():
            return
        for p in self.temp_dir.iterdir():
            if not p.is_file() or p.suffix == ".part":
                continue
            rp = str(p.resolve())
            if rp not in keep_paths:
                try:
                    p.unlink(missing_ok=True)
                except OSError as e:
                    logger.debug(f"Could not remove {p.name}: {e}")
