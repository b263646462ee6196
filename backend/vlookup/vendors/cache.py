"""
On-disk cache for downloaded vendor registries.

Every payload is stored as "<tag>_<sha256>.csv". Files whose content does not
match the hash in their name are ignored when the cache is loaded.
"""

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _digest(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


class VendorCache:
    """Registry CSV payloads keyed by tag, backed by a directory."""

    def __init__(self, path: str):
        self.path = Path(path).expanduser()
        self._entries: dict[str, bytes] = {}
        self._dirty: set[str] = set()

    def load(self) -> "VendorCache":
        """Create the directory if needed and read all valid files."""
        self.path.mkdir(parents=True, exist_ok=True)
        for file in sorted(self.path.glob("*.csv")):
            tag, sep, digest = file.stem.rpartition("_")
            if not sep or not tag:
                logger.warning(f"Ignoring unexpected file in vendor cache: {file.name}")
                continue
            payload = file.read_bytes()
            if _digest(payload) != digest:
                logger.warning(f"Ignoring corrupted vendor cache file: {file.name}")
                continue
            self._entries[tag] = payload
        logger.debug(f"Vendor cache loaded from {self.path}: {len(self._entries)} sources")
        return self

    def get(self, tag: str) -> Optional[bytes]:
        return self._entries.get(tag)

    def set(self, tag: str, payload: bytes) -> None:
        if self._entries.get(tag) == payload:
            return
        self._entries[tag] = payload
        self._dirty.add(tag)

    def flush(self) -> None:
        """Write new payloads to disk, replacing older files of the same tag."""
        self.path.mkdir(parents=True, exist_ok=True)
        for tag in sorted(self._dirty):
            payload = self._entries[tag]
            target = self.path / f"{tag}_{_digest(payload)}.csv"
            for old in self.path.glob(f"{tag}_*.csv"):
                if old != target and old.stem.rpartition("_")[0] == tag:
                    old.unlink()
            tmp = target.with_suffix(".tmp")
            tmp.write_bytes(payload)
            os.replace(tmp, target)
        self._dirty.clear()
