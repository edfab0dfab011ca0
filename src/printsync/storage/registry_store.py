"""Persistence adapter for the printer registry.

Two logical entries live in the key-value store:

* ``printers`` - JSON-encoded list of profile records, in display order
* ``activePrinterId`` - the active profile id as a bare string, absent when
  nothing is selected

Loading never fails: a missing or corrupt entry degrades to an empty
registry or no active printer, and individual bad records are skipped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from pydantic import ValidationError

from ..constants import ACTIVE_PRINTER_KEY, PRINTERS_KEY
from .base import KeyValueStore
from .models import PrinterProfile

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RegistrySnapshot:
    """Registry contents as read from or written to storage."""

    profiles: List[PrinterProfile] = field(default_factory=list)
    active_id: Optional[str] = None


class RegistryStore:
    """Reads and writes registry snapshots through a key-value store."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    def load(self) -> RegistrySnapshot:
        """Load the persisted registry, tolerating absent or corrupt data."""
        snapshot = RegistrySnapshot(
            profiles=self._load_profiles(),
            active_id=self._store.get(ACTIVE_PRINTER_KEY) or None,
        )
        logger.info(
            "Loaded %d printer profile(s), active=%s",
            len(snapshot.profiles),
            snapshot.active_id,
        )
        return snapshot

    def _load_profiles(self) -> List[PrinterProfile]:
        raw = self._store.get(PRINTERS_KEY)
        if not raw:
            return []

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error(f"Stored printer list is not valid JSON, ignoring it: {exc}")
            return []

        if not isinstance(records, list):
            logger.error("Stored printer list is not a list, ignoring it")
            return []

        profiles: List[PrinterProfile] = []
        seen: set[str] = set()
        for index, record in enumerate(records):
            try:
                profile = PrinterProfile.model_validate(record)
            except ValidationError as exc:
                logger.warning(f"Skipping invalid printer record #{index}: {exc}")
                continue
            if profile.id in seen:
                logger.warning("Skipping duplicate printer id %s", profile.id)
                continue
            seen.add(profile.id)
            profiles.append(profile)
        return profiles

    def save(self, profiles: Sequence[PrinterProfile], active_id: Optional[str]) -> None:
        """Write the full registry snapshot.

        Raises:
            OSError: If the underlying store cannot be written
        """
        payload = [profile.model_dump(mode="json") for profile in profiles]
        self._store.set(PRINTERS_KEY, json.dumps(payload))
        if active_id:
            self._store.set(ACTIVE_PRINTER_KEY, active_id)
        else:
            self._store.remove(ACTIVE_PRINTER_KEY)
        logger.debug("Saved %d printer profile(s), active=%s", len(payload), active_id)
