"""Durable string key-value stores.

The registry only needs get/set/remove of string values. ``JsonFileStore``
keeps the whole map in one JSON file and rewrites it atomically on every
change; ``MemoryStore`` is the volatile equivalent used by tests and by
sessions that should not touch disk.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract string-keyed store of string values, no transactions."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; removing an absent key is a no-op."""


class MemoryStore(KeyValueStore):
    """In-process store backed by a dict."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def as_dict(self) -> Dict[str, str]:
        """Return a copy of the stored entries."""
        return dict(self._data)


class JsonFileStore(KeyValueStore):
    """Store persisted as a flat JSON object in a single file.

    The file is read once at construction. A missing, unreadable or corrupt
    file (or one that is not a JSON object) yields an empty store; only
    string values survive loading.
    """

    def __init__(self, path: Path | str):
        """Initialize the store.

        Args:
            path: JSON file holding the entries (parent directory is created)
        """
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._data: Dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            logger.info("No state file at %s, starting empty", self._path)
            return {}

        try:
            raw = self._path.read_text(encoding="utf-8").strip()
            if not raw:
                return {}
            data = json.loads(raw)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.error(f"Could not read state file {self._path}: {exc}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"State file {self._path} is not a JSON object, ignoring it")
            return {}

        entries = {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}
        dropped = len(data) - len(entries)
        if dropped:
            logger.warning("Ignored %d non-string entries in %s", dropped, self._path)
        return entries

    def _flush(self) -> None:
        """Write the map to disk atomically using a temporary file."""
        tmp_file = self._path.with_suffix(".tmp")
        tmp_file.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        tmp_file.replace(self._path)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()
