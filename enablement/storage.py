"""
Durable key-value stores used to persist the style catalog and learning
progress. Values are opaque bytes; callers own the encoding.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, namespace: str) -> Optional[bytes]:
        ...

    def set(self, namespace: str, value: bytes) -> None:
        ...


class InMemoryStore:
    """Process-local store; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, namespace: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(namespace)

    def set(self, namespace: str, value: bytes) -> None:
        with self._lock:
            self._data[namespace] = bytes(value)


class JsonFileStore:
    """
    Stores each namespace as `<directory>/<namespace>.json`.

    Writes go to a temporary sibling first and are renamed into place, so a
    crash mid-write leaves the previous value readable. I/O errors propagate
    as OSError; the style store decides how to absorb them.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def get(self, namespace: str) -> Optional[bytes]:
        path = self._path_for(namespace)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, namespace: str, value: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(namespace)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_bytes(value)
        os.replace(tmp_path, path)
        logger.debug("Persisted %d bytes to %s", len(value), path)

    def _path_for(self, namespace: str) -> Path:
        slug = "".join(ch if ch.isalnum() or ch in "-_" else "-" for ch in namespace)
        return self.directory / f"{slug}.json"
