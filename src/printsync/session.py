"""Printer session: the context object tying the core components together.

A session owns one registry, HTTP client, poller, dispatcher and notifier.
Nothing here is module-global; several independent sessions can live in
one process.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from .api.octoprint_client import OctoPrintClient
from .constants import STATE_FILE_NAME
from .dispatcher import CommandDispatcher
from .notifications import NotificationFeed, Notifier
from .poller import StatusPoller
from .registry import PrinterRegistry
from .storage import JsonFileStore, KeyValueStore, RegistryStore
from .utils import SessionSettings, load_settings

logger = logging.getLogger(__name__)


class PrinterSession:
    """Manages printer profiles, live status polling and command dispatch."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        settings: Optional[SessionSettings] = None,
        client: Optional[OctoPrintClient] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        """Build the session components.

        Args:
            store: Durable key-value store holding the registry
            settings: Runtime settings (defaults to the environment)
            client: Printer API client (one is created from settings if omitted)
            notifier: Notification sink (a NotificationFeed if omitted)
        """
        self.settings = settings or load_settings()
        self.client = client or OctoPrintClient(timeout=self.settings.http_timeout)
        self.notifier = notifier or NotificationFeed(self.settings.notification_history)
        self.registry = PrinterRegistry(RegistryStore(store))
        self.poller = StatusPoller(self.registry, self.client, self.settings.poll_interval)
        self.dispatcher = CommandDispatcher(
            self.registry, self.client, self.poller, self.notifier
        )
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._started = False

    @classmethod
    def from_settings(cls, settings: Optional[SessionSettings] = None) -> "PrinterSession":
        """Create a session persisted in ``<config_dir>/state.json``."""
        settings = settings or load_settings()
        store = JsonFileStore(Path(settings.config_dir) / STATE_FILE_NAME)
        logger.info("Printer state file: %s", store.path)
        return cls(store, settings=settings)

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Begin following the active printer with the poller (when auto-poll is on)."""
        if self._started:
            return
        self._started = True
        logger.info(
            "Session start: %d printer(s), active=%s, auto_poll=%s, interval=%.2fs",
            len(self.registry),
            self.registry.active_id,
            self.settings.auto_poll,
            self.settings.poll_interval,
        )
        if self.settings.auto_poll:
            self._unsubscribe = self.registry.subscribe(self.poller.follow)
            self.poller.follow(self.registry.active_id)

    async def stop(self) -> None:
        """Stop polling, cancel outstanding reads and close the HTTP client."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._started = False
        await self.poller.close()
        await self.client.close()
        logger.info("Session stopped")
