"""Recurring status polling of the active printer.

One :class:`PollCycle` is live at a time and is bound to a single printer id.
Starting a cycle performs an immediate read and then one read per interval.
A tick that fires while the cycle's previous read is still outstanding is
skipped rather than queued, so at most one scheduled read per cycle is ever
in flight.

Reads are tagged with their target id. When a read completes, its result is
applied only if that id is still the registry's active printer and its
cycle has not been cancelled; otherwise it is dropped. Switching printers
therefore never lets a late response for the old printer overwrite the
status shown for the new one.

Failures are classified and logged, never notified. A failed fetch leaves
the corresponding snapshot at its last known value.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

from .api.models import JobState, PrinterState
from .api.octoprint_client import OctoPrintClient
from .constants import POLL_INTERVAL_SECONDS
from .errors import ErrorCode, PrinterError, classify_failure
from .registry import PrinterRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PollCycle:
    """Recurring read loop bound to one printer."""

    target_id: str
    interval: float
    in_flight: bool = False
    cancelled: bool = False
    task: Optional[asyncio.Task] = None


class StatusPoller:
    """Keeps the latest printer and job status of the active printer."""

    def __init__(
        self,
        registry: PrinterRegistry,
        client: OctoPrintClient,
        interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._registry = registry
        self._client = client
        self._interval = interval
        self._cycle: Optional[PollCycle] = None
        self._reads: Set[asyncio.Task] = set()
        self._failures: Dict[str, ErrorCode] = {}

        self._status_owner: Optional[str] = None
        self.printer_status: Optional[PrinterState] = None
        self.job_status: Optional[JobState] = None
        self.printer_updated_at: Optional[float] = None
        self.job_updated_at: Optional[float] = None
        self.last_error: Optional[PrinterError] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def target_id(self) -> Optional[str]:
        """Printer id of the live cycle, if any."""
        return self._cycle.target_id if self._cycle else None

    @property
    def is_polling(self) -> bool:
        return self._cycle is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, printer_id: str) -> None:
        """Start polling ``printer_id``, replacing any live cycle."""
        self.stop()
        if self._status_owner != printer_id:
            self._reset_snapshots(printer_id)

        cycle = PollCycle(target_id=printer_id, interval=self._interval)
        cycle.task = asyncio.create_task(self._run(cycle), name=f"poll-{printer_id}")
        self._cycle = cycle
        logger.info("Polling printer %s every %.2fs", printer_id, self._interval)

    def stop(self) -> None:
        """Cancel the live cycle; a read already in flight finishes but is discarded."""
        cycle = self._cycle
        if cycle is None:
            return
        self._cycle = None
        cycle.cancelled = True
        if cycle.task is not None and not cycle.task.done():
            cycle.task.cancel()
        logger.info("Stopped polling printer %s", cycle.target_id)

    def follow(self, active_id: Optional[str]) -> None:
        """Align polling with the registry's active printer."""
        if active_id is None:
            self.stop()
            self._reset_snapshots(None)
        elif self.target_id != active_id:
            self.start(active_id)

    async def drain(self) -> None:
        """Wait until every outstanding read has completed."""
        while self._reads:
            await asyncio.gather(*list(self._reads), return_exceptions=True)

    async def close(self) -> None:
        """Stop polling and cancel outstanding reads."""
        cycle = self._cycle
        self.stop()
        pending = list(self._reads)
        for task in pending:
            task.cancel()
        if cycle is not None and cycle.task is not None:
            pending.append(cycle.task)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug("Cancelled %d poller task(s) during close()", len(pending))

    async def _run(self, cycle: PollCycle) -> None:
        try:
            while not cycle.cancelled:
                self._tick(cycle)
                await asyncio.sleep(cycle.interval)
        except asyncio.CancelledError:
            logger.debug("Poll loop for %s cancelled", cycle.target_id)
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def tick(self) -> bool:
        """Fire one scheduled read of the live cycle.

        Returns:
            True if a read was issued, False if skipped (no cycle, or the
            previous read of the cycle is still in flight)
        """
        if self._cycle is None:
            return False
        return self._tick(self._cycle)

    def _tick(self, cycle: PollCycle) -> bool:
        if cycle.in_flight:
            logger.debug("Previous read of %s still in flight, skipping tick", cycle.target_id)
            return False

        cycle.in_flight = True
        task = self._spawn_read(cycle.target_id, cycle)

        def _done(_: asyncio.Task) -> None:
            cycle.in_flight = False

        task.add_done_callback(_done)
        return True

    def refresh(self) -> Optional[asyncio.Task]:
        """Issue an out-of-cycle read of the current target.

        Used after a successful command so the new state shows up without
        waiting for the next tick. Not subject to the overlap skip.

        Returns:
            The read task, or None when there is no printer to read
        """
        target_id = self.target_id or self._registry.active_id
        if target_id is None:
            return None
        logger.debug("Out-of-cycle refresh of %s", target_id)
        return self._spawn_read(target_id, None)

    def _spawn_read(self, target_id: str, cycle: Optional[PollCycle]) -> asyncio.Task:
        task = asyncio.create_task(self._read(target_id, cycle), name=f"read-{target_id}")
        self._reads.add(task)
        task.add_done_callback(self._reads.discard)
        return task

    def _accepts(self, target_id: str, cycle: Optional[PollCycle]) -> bool:
        if cycle is not None and cycle.cancelled:
            return False
        return self._registry.active_id == target_id

    async def _read(self, target_id: str, cycle: Optional[PollCycle]) -> None:
        if not self._accepts(target_id, cycle):
            return
        profile = self._registry.get(target_id)
        if profile is None:
            return

        printer_result, job_result = await asyncio.gather(
            self._client.get_printer_status(profile),
            self._client.get_job_status(profile),
            return_exceptions=True,
        )

        # Checked at resolution time: the active printer may have changed
        # while the requests were outstanding.
        if not self._accepts(target_id, cycle):
            logger.debug("Discarding stale status read for %s", target_id)
            return
        if self._status_owner != target_id:
            self._reset_snapshots(target_id)

        now = time.time()
        if self._succeeded("printer", target_id, printer_result):
            self.printer_status = printer_result
            self.printer_updated_at = now
        if self._succeeded("job", target_id, job_result):
            self.job_status = job_result
            self.job_updated_at = now

    def _succeeded(self, field: str, target_id: str, result: Any) -> bool:
        """Return True for a usable result; classify and log a failure otherwise."""
        if not isinstance(result, BaseException):
            if self._failures.pop(field, None) is not None:
                logger.info("%s status of %s recovered", field.capitalize(), target_id)
            return True
        if not isinstance(result, Exception):
            raise result

        error = classify_failure(result)
        self.last_error = error
        previous = self._failures.get(field)
        self._failures[field] = error.code
        level = logging.DEBUG if previous == error.code else logging.WARNING
        logger.log(level, "Polling %s status of %s failed: %s", field, target_id, error.message)
        return False

    def _reset_snapshots(self, owner: Optional[str]) -> None:
        self._status_owner = owner
        self.printer_status = None
        self.job_status = None
        self.printer_updated_at = None
        self.job_updated_at = None
        self.last_error = None
        self._failures.clear()

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Latest status as plain data for the HTTP layer."""
        job: Optional[Dict[str, Any]] = None
        if self.job_status is not None:
            job = self.job_status.model_dump()
            job["progress_percent"] = self.job_status.progress_percent
        return {
            "printer_id": self._status_owner,
            "polling": self.is_polling,
            "interval": self._interval,
            "printer": self.printer_status.model_dump() if self.printer_status else None,
            "job": job,
            "printer_updated_at": self.printer_updated_at,
            "job_updated_at": self.job_updated_at,
            "last_error": self.last_error.to_dict() if self.last_error else None,
        }
