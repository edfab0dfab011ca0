"""Operator commands sent to the active printer.

Every intent follows the same contract:

1. validate arguments (``InvalidCommandError``)
2. resolve the active printer from the registry (``NoActiveDeviceError``,
   no request is made)
3. send the request with that printer's URL and API key
4. on success, emit one success notification and trigger an out-of-cycle
   status refresh
5. on failure, classify the error, emit one error notification and raise
   the classified error; registry and cached status are left untouched

Confirmation of destructive intents (cancel, delete) belongs to the
presentation layer; once called, the dispatcher executes unconditionally.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Awaitable, Callable, List, Optional, TypeVar

from .api.models import FileEntry, VersionInfo
from .api.octoprint_client import OctoPrintClient
from .constants import (
    BED_TARGET,
    EXTRUDE_FEEDRATE,
    GCODE_EXTENSIONS,
    MOVABLE_AXES,
    MOVE_FEEDRATE,
)
from .errors import InvalidCommandError, NoActiveDeviceError, classify_failure
from .notifications import NotificationKind, Notifier
from .poller import StatusPoller
from .registry import PrinterRegistry
from .storage import PrinterProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TOOL_TARGET = re.compile(r"^tool\d+$")


def _format_number(value: float) -> str:
    """Render 10.0 as "10" and 0.5 as "0.5" for G-code and messages."""
    return f"{value:g}"


class CommandDispatcher:
    """Translates operator intents into printer API calls."""

    def __init__(
        self,
        registry: PrinterRegistry,
        client: OctoPrintClient,
        poller: StatusPoller,
        notifier: Notifier,
    ):
        self._registry = registry
        self._client = client
        self._poller = poller
        self._notifier = notifier

    async def _execute(
        self,
        action: str,
        call: Callable[[PrinterProfile], Awaitable[T]],
        success_message: Optional[str],
        *,
        refresh: bool = True,
    ) -> T:
        """Run ``call`` against the active printer and report the outcome.

        Args:
            action: Short label used in failure notifications and logs
            call: Coroutine function taking the resolved profile
            success_message: Notification text on success; None for silent reads
            refresh: Whether success triggers an out-of-cycle status read
        """
        profile = self._registry.get_active()
        try:
            if profile is None:
                raise NoActiveDeviceError(details={"action": action})
            result = await call(profile)
        except Exception as exc:
            error = classify_failure(exc)
            logger.error("%s failed (%s): %s", action, error.code.value, error.message)
            self._notifier.notify(NotificationKind.ERROR, f"{action} failed: {error.message}")
            if error is exc:
                raise
            raise error from exc

        logger.info("%s succeeded on %s", action, profile.name)
        if success_message:
            self._notifier.notify(NotificationKind.SUCCESS, success_message)
        if refresh:
            self._poller.refresh()
        return result

    def _reject(self, action: str, message: str) -> InvalidCommandError:
        self._notifier.notify(NotificationKind.ERROR, f"{action} failed: {message}")
        logger.warning("%s rejected: %s", action, message)
        return InvalidCommandError(message, details={"action": action})

    # ------------------------------------------------------------------
    # Job control
    # ------------------------------------------------------------------

    async def pause_job(self) -> None:
        """Pause the running print."""
        await self._execute(
            "Pause",
            lambda p: self._client.job_command(p, "pause", "pause"),
            "Print paused",
        )

    async def resume_job(self) -> None:
        """Resume a paused print."""
        await self._execute(
            "Resume",
            lambda p: self._client.job_command(p, "pause", "resume"),
            "Print resumed",
        )

    async def cancel_job(self) -> None:
        """Cancel the running print."""
        await self._execute(
            "Cancel",
            lambda p: self._client.job_command(p, "cancel"),
            "Print cancelled",
        )

    # ------------------------------------------------------------------
    # Temperature and motion
    # ------------------------------------------------------------------

    async def set_temperature(self, target: str, value: float) -> None:
        """Set the target temperature of ``bed`` or a tool (``tool0``...)."""
        action = "Set temperature"
        target = target.strip().lower()
        if target != BED_TARGET and not _TOOL_TARGET.match(target):
            raise self._reject(action, f"Unknown heater '{target}'")
        if not math.isfinite(value):
            raise self._reject(action, "Temperature must be a finite number")
        if value < 0:
            raise self._reject(action, "Temperature cannot be negative")

        label = "Bed" if target == BED_TARGET else "Nozzle"
        await self._execute(
            action,
            lambda p: self._client.set_target_temperature(p, target, value),
            f"{label} target set to {_format_number(value)}°C",
        )

    async def move_axis(self, axis: str, distance: float, feedrate: int = MOVE_FEEDRATE) -> None:
        """Jog one axis by a relative distance in millimetres."""
        action = "Move"
        axis = axis.strip().upper()
        if axis not in MOVABLE_AXES:
            raise self._reject(action, f"Unknown axis '{axis}'")
        if not math.isfinite(distance):
            raise self._reject(action, "Distance must be a finite number")
        if feedrate <= 0:
            raise self._reject(action, "Feed rate must be positive")

        step = _format_number(distance)
        commands = ["G91", f"G1 {axis}{step} F{feedrate}", "G90"]
        await self._execute(
            action,
            lambda p: self._client.send_commands(p, commands),
            f"Moved {axis} {step}mm",
        )

    async def home(self, axes: str = "XYZ") -> None:
        """Home the given axes (any combination of X, Y and Z)."""
        action = "Home"
        selected = [axis for axis in MOVABLE_AXES if axis in axes.upper()]
        unknown = set(axes.upper()) - set(MOVABLE_AXES) - {" ", ","}
        if not selected or unknown:
            raise self._reject(action, f"Invalid axes '{axes}'")

        commands = [f"G28 {' '.join(selected)}"]
        await self._execute(
            action,
            lambda p: self._client.send_commands(p, commands),
            f"Homed {''.join(selected)}",
        )

    async def extrude(self, amount: float, feedrate: int = EXTRUDE_FEEDRATE) -> None:
        """Extrude (positive amount) or retract (negative amount) filament in millimetres."""
        action = "Extrude" if amount >= 0 else "Retract"
        if not math.isfinite(amount):
            raise self._reject(action, "Amount must be a finite number")
        if amount == 0:
            raise self._reject(action, "Amount cannot be zero")
        if feedrate <= 0:
            raise self._reject(action, "Feed rate must be positive")

        commands = ["G91", f"G1 E{_format_number(amount)} F{feedrate}", "G90"]
        verb = "Extruded" if amount > 0 else "Retracted"
        await self._execute(
            action,
            lambda p: self._client.send_commands(p, commands),
            f"{verb} {_format_number(abs(amount))}mm",
        )

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def start_print(self, filename: str) -> None:
        """Select a stored file and start printing it."""
        action = "Start print"
        if not filename.strip():
            raise self._reject(action, "File name is required")
        await self._execute(
            action,
            lambda p: self._client.select_and_print(p, filename),
            f"Print started: {filename}",
        )

    async def delete_file(self, filename: str) -> None:
        """Delete a stored file."""
        action = "Delete file"
        if not filename.strip():
            raise self._reject(action, "File name is required")
        await self._execute(
            action,
            lambda p: self._client.delete_file(p, filename),
            f"File deleted: {filename}",
        )

    async def upload_file(self, filename: str, content: bytes) -> None:
        """Upload G-code to the printer's local storage."""
        action = "Upload"
        if not filename.strip():
            raise self._reject(action, "File name is required")
        if not filename.lower().endswith(GCODE_EXTENSIONS):
            raise self._reject(action, "Upload .gcode or .gco files only")
        await self._execute(
            action,
            lambda p: self._client.upload_file(p, filename, content),
            f"{filename} uploaded successfully",
        )

    async def list_files(self) -> List[FileEntry]:
        """List files on the active printer (failures are notified, success is silent)."""
        return await self._execute(
            "Load files",
            self._client.list_files,
            None,
            refresh=False,
        )

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def test_connection(self, server_url: str, api_key: str) -> VersionInfo:
        """Check a profile's URL and key before trusting it; needs no active printer."""
        try:
            info = await self._client.test_connection(server_url, api_key)
        except Exception as exc:
            error = classify_failure(exc)
            logger.warning("Connection test to %s failed: %s", server_url, error.message)
            self._notifier.notify(NotificationKind.ERROR, f"Connection failed: {error.message}")
            raise error from exc

        self._notifier.notify(NotificationKind.SUCCESS, "Connection successful")
        return info
