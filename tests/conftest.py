"""Test configuration ensuring the src package is importable."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple
from unittest.mock import AsyncMock

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


# ========== Payload Fixtures ==========
# Minimal OctoPrint responses; real servers send many more fields.


def printer_payload(tool: float = 205.0, bed: float = 60.0, text: str = "Printing") -> Dict[str, Any]:
    """Build a ``GET /api/printer`` response body."""
    return {
        "state": {"text": text, "flags": {"operational": True, "printing": text == "Printing"}},
        "temperature": {
            "tool0": {"actual": tool, "target": 210.0, "offset": 0},
            "bed": {"actual": bed, "target": 60.0, "offset": 0},
            "history": [],
        },
    }


def job_payload(completion: float | None = 42.5, name: str = "benchy.gcode") -> Dict[str, Any]:
    """Build a ``GET /api/job`` response body."""
    return {
        "state": "Printing",
        "job": {"file": {"name": name, "origin": "local"}},
        "progress": {"completion": completion, "printTime": 600, "printTimeLeft": 900},
    }


def printer_state(**kwargs: Any):
    from printsync.api.models import PrinterState

    return PrinterState.model_validate(printer_payload(**kwargs))


def job_state(**kwargs: Any):
    from printsync.api.models import JobState

    return JobState.model_validate(job_payload(**kwargs))


class RecordingNotifier:
    """Notifier collecting (kind, message) pairs."""

    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []

    def notify(self, kind, message: str) -> None:
        self.messages.append((getattr(kind, "value", kind), message))


def gated(event: asyncio.Event, result: Any):
    """Side effect that blocks until ``event`` is set, then returns or raises ``result``."""

    async def _call(*args: Any, **kwargs: Any) -> Any:
        await event.wait()
        if isinstance(result, BaseException):
            raise result
        return result

    return _call


# ========== Fixtures ==========


@pytest.fixture
def memory_store():
    from printsync.storage import MemoryStore

    return MemoryStore()


@pytest.fixture
def registry(memory_store):
    from printsync.registry import PrinterRegistry
    from printsync.storage import RegistryStore

    return PrinterRegistry(RegistryStore(memory_store))


@pytest.fixture
def mock_client():
    """OctoPrintClient stand-in whose reads succeed immediately."""
    from printsync.api.octoprint_client import OctoPrintClient

    client = AsyncMock(spec=OctoPrintClient)
    client.get_printer_status.return_value = printer_state()
    client.get_job_status.return_value = job_state()
    client.list_files.return_value = []
    return client


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settings(tmp_path):
    """Session settings that never touch ~/.printsync and only tick once per test."""
    from printsync.utils import SessionSettings

    return SessionSettings(config_dir=tmp_path, poll_interval=3600.0, http_timeout=1.0)


def add_printer(registry, name: str, url: str = "http://printer.local", key: str = "KEY") -> str:
    return registry.add({"name": name, "serverUrl": url, "apiKey": key})
