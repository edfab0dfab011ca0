"""In-memory registry of printer profiles and the active selection.

The registry is the single source of truth for which printers exist and
which one is active, and the only writer of the persisted state. It keeps
these invariants after every operation:

1. a non-empty registry always has an active printer (the first profile is
   picked when nothing valid is selected)
2. an active id that matches no profile is treated as unset
3. removing the active printer selects the new first profile, or nothing
4. adding a printer selects it

Expected failures (unknown ids) are reported through boolean results rather
than exceptions. Every mutation is written through to storage before the
call returns; a storage failure is logged and does not undo the mutation.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional
from uuid import uuid4

from .errors import UnknownProfileIdError
from .storage import PrinterProfile, ProfileDraft, ProfilePatch, RegistryStore

logger = logging.getLogger(__name__)

ActiveListener = Callable[[Optional[str]], None]

# None is a meaningful patch value only for optional fields
_CLEARABLE_FIELDS = {"color"}


class PrinterRegistry:
    """Owns printer profiles and the active-printer pointer."""

    def __init__(self, store: RegistryStore):
        """Load persisted state and repair it if needed.

        Args:
            store: Persistence adapter used for the initial load and for
                every subsequent write
        """
        self._store = store
        self._listeners: List[ActiveListener] = []

        snapshot = store.load()
        self._profiles: List[PrinterProfile] = list(snapshot.profiles)
        self._active_id: Optional[str] = snapshot.active_id

        if self._reconcile_active():
            logger.info("Repaired persisted active printer selection -> %s", self._active_id)
            self._persist()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> List[PrinterProfile]:
        """Return a snapshot of all profiles in display order."""
        return list(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, printer_id: object) -> bool:
        return self._index_of(printer_id) is not None

    @property
    def active_id(self) -> Optional[str]:
        """Id of the active printer, or None."""
        return self._active_id

    def get(self, printer_id: str) -> Optional[PrinterProfile]:
        """Return the profile with ``printer_id``, or None."""
        index = self._index_of(printer_id)
        return self._profiles[index] if index is not None else None

    def require(self, printer_id: str) -> PrinterProfile:
        """Return the profile with ``printer_id``.

        Raises:
            UnknownProfileIdError: If no profile has that id
        """
        profile = self.get(printer_id)
        if profile is None:
            raise UnknownProfileIdError(printer_id)
        return profile

    def get_active(self) -> Optional[PrinterProfile]:
        """Resolve the active id against the profiles; None if unset or dangling."""
        if self._active_id is None:
            return None
        return self.get(self._active_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, data: ProfileDraft | Mapping[str, Any]) -> str:
        """Append a new profile, make it active, and return its id.

        Duplicate names are allowed; the generated id is the identity.

        Raises:
            pydantic.ValidationError: If the profile data is invalid
                (nothing is changed in that case)
        """
        draft = data if isinstance(data, ProfileDraft) else ProfileDraft.model_validate(data)
        printer_id = self._new_id()
        profile = PrinterProfile(id=printer_id, **draft.model_dump())

        previous = self._active_id
        self._profiles.append(profile)
        self._active_id = printer_id
        logger.info("Added printer %s (%s)", profile.name, printer_id)

        self._persist()
        self._announce(previous)
        return printer_id

    def update(self, printer_id: str, patch: ProfilePatch | Mapping[str, Any]) -> bool:
        """Merge ``patch`` into the matching profile.

        Returns:
            True if the profile exists (an empty patch changes nothing),
            False if the id is unknown

        Raises:
            pydantic.ValidationError: If the patch or the merged profile is
                invalid (nothing is changed in that case)
        """
        index = self._index_of(printer_id)
        if index is None:
            logger.warning("Update for unknown printer id: %s", printer_id)
            return False

        if not isinstance(patch, ProfilePatch):
            patch = ProfilePatch.model_validate(patch)
        changes = {
            key: value
            for key, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or key in _CLEARABLE_FIELDS
        }

        current = self._profiles[index]
        self._profiles[index] = PrinterProfile.model_validate(
            {**current.model_dump(), **changes, "id": current.id}
        )
        if changes:
            logger.info("Updated printer %s: %s", printer_id, ", ".join(sorted(changes)))

        self._persist()
        return True

    def remove(self, printer_id: str) -> bool:
        """Remove a profile, re-selecting the first remaining one if it was active.

        Returns:
            True if removed, False if the id is unknown
        """
        index = self._index_of(printer_id)
        if index is None:
            logger.warning("Remove for unknown printer id: %s", printer_id)
            return False

        previous = self._active_id
        removed = self._profiles.pop(index)
        if self._active_id == printer_id:
            self._active_id = self._profiles[0].id if self._profiles else None
        logger.info("Removed printer %s (%s)", removed.name, printer_id)

        self._persist()
        self._announce(previous)
        return True

    def set_active(self, printer_id: str) -> bool:
        """Select the active printer.

        Returns:
            True on success; False for an unknown id, leaving state untouched
        """
        if self._index_of(printer_id) is None:
            logger.warning("Trying to set active printer to unknown id: %s", printer_id)
            return False

        previous = self._active_id
        self._active_id = printer_id
        self._persist()
        self._announce(previous)
        return True

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: ActiveListener) -> Callable[[], None]:
        """Call ``listener(active_id)`` whenever the active printer changes.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _announce(self, previous: Optional[str]) -> None:
        if previous == self._active_id:
            return
        logger.info("Active printer changed: %s -> %s", previous, self._active_id)
        for listener in list(self._listeners):
            try:
                listener(self._active_id)
            except Exception:
                logger.exception("Active printer listener %r failed", listener)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_of(self, printer_id: object) -> Optional[int]:
        for index, profile in enumerate(self._profiles):
            if profile.id == printer_id:
                return index
        return None

    def _new_id(self) -> str:
        while True:
            candidate = uuid4().hex
            if self._index_of(candidate) is None:
                return candidate

    def _reconcile_active(self) -> bool:
        """Apply the active-selection invariants; return True if anything changed."""
        before = self._active_id
        if self._active_id is not None and self._index_of(self._active_id) is None:
            logger.warning("Active printer id %s matches no profile", self._active_id)
            self._active_id = None
        if self._active_id is None and self._profiles:
            self._active_id = self._profiles[0].id
        return before != self._active_id

    def _persist(self) -> None:
        try:
            self._store.save(self._profiles, self._active_id)
        except OSError as exc:
            logger.error(f"Failed to persist printer registry: {exc}")
