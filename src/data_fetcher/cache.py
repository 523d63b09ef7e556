"""On-disk JSON store for the player directory and the stat write-through copy."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class LocalCache:
    """Keyed JSON documents under one directory, optionally expiring by age."""

    def __init__(self, directory: Path, *, max_age_seconds: Optional[int] = None) -> None:
        self.directory = directory
        self.max_age_seconds = max_age_seconds

    def load(self, key: str) -> Optional[Any]:
        """Return the stored document, or ``None`` when missing, stale or unreadable."""
        path = self.path_for(key)
        try:
            modified = path.stat().st_mtime
        except FileNotFoundError:
            return None

        if self.max_age_seconds is not None and time.time() - modified > self.max_age_seconds:
            logger.debug("Cache entry %s is older than %ss", key, self.max_age_seconds)
            return None

        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring unreadable cache entry %s", path)
            return None

    def save(self, key: str, payload: Any) -> None:
        """Write ``payload`` atomically so concurrent readers never see half a file."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        staging = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
        staging.write_text(json.dumps(payload, separators=(",", ":")), encoding="utf-8")
        os.replace(staging, path)

    def discard(self, key: str) -> bool:
        """Delete a stored document; returns whether one existed."""
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            return False
        return True

    def path_for(self, key: str) -> Path:
        safe_key = "".join(ch if ch.isalnum() or ch in {"-", "_"} else "_" for ch in key)
        return self.directory / f"{safe_key}.json"
