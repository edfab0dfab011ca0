"""Tests for PrinterSession wiring and lifecycle."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace

import pytest

from conftest import add_printer
from printsync.notifications import NotificationFeed
from printsync.session import PrinterSession
from printsync.storage import MemoryStore


@pytest.fixture
def session(settings, mock_client, memory_store):
    return PrinterSession(memory_store, settings=settings, client=mock_client)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_polls_active_printer(self, session):
        printer_id = add_printer(session.registry, "A")

        await session.start()
        await asyncio.sleep(0)
        await session.poller.drain()

        assert session.started
        assert session.poller.target_id == printer_id
        assert session.poller.printer_status is not None
        await session.stop()

    @pytest.mark.asyncio
    async def test_start_without_printers_is_idle(self, session):
        await session.start()
        assert not session.poller.is_polling
        await session.stop()

    @pytest.mark.asyncio
    async def test_poller_follows_registry_changes(self, session):
        await session.start()

        first = add_printer(session.registry, "A")
        assert session.poller.target_id == first

        second = add_printer(session.registry, "B")
        assert session.poller.target_id == second

        session.registry.set_active(first)
        assert session.poller.target_id == first

        session.registry.remove(first)
        assert session.poller.target_id == second

        session.registry.remove(second)
        assert not session.poller.is_polling
        await session.stop()

    @pytest.mark.asyncio
    async def test_stop_closes_client_and_unsubscribes(self, session, mock_client):
        add_printer(session.registry, "A")
        await session.start()
        await session.stop()

        mock_client.close.assert_awaited_once()
        assert not session.started
        assert not session.poller.is_polling

        add_printer(session.registry, "B")
        assert not session.poller.is_polling

    @pytest.mark.asyncio
    async def test_auto_poll_disabled(self, settings, mock_client, memory_store):
        session = PrinterSession(
            memory_store, settings=replace(settings, auto_poll=False), client=mock_client
        )
        add_printer(session.registry, "A")

        await session.start()

        assert not session.poller.is_polling
        add_printer(session.registry, "B")
        assert not session.poller.is_polling
        await session.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, session):
        add_printer(session.registry, "A")
        await session.start()
        await session.start()
        assert len(session.registry._listeners) == 1
        await session.stop()


def test_defaults(settings, mock_client):
    session = PrinterSession(MemoryStore(), settings=settings, client=mock_client)
    assert isinstance(session.notifier, NotificationFeed)
    assert session.poller.interval == settings.poll_interval


def test_sessions_are_independent(settings, mock_client):
    first = PrinterSession(MemoryStore(), settings=settings, client=mock_client)
    second = PrinterSession(MemoryStore(), settings=settings, client=mock_client)

    add_printer(first.registry, "A")

    assert len(first.registry) == 1
    assert len(second.registry) == 0


def test_from_settings_persists_to_config_dir(settings):
    session = PrinterSession.from_settings(settings)
    printer_id = add_printer(session.registry, "A")

    state = json.loads((settings.config_dir / "state.json").read_text())
    assert state["activePrinterId"] == printer_id
    assert json.loads(state["printers"])[0]["name"] == "A"

    reloaded = PrinterSession.from_settings(settings)
    assert reloaded.registry.active_id == printer_id
