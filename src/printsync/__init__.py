"""Printer session and live-state synchronization for OctoPrint printers."""

from .dispatcher import CommandDispatcher
from .errors import ErrorCode, PrinterError, classify_failure
from .notifications import NotificationFeed, NotificationKind
from .poller import PollCycle, StatusPoller
from .registry import PrinterRegistry
from .session import PrinterSession

__version__ = "1.0.0"

__all__ = [
    "CommandDispatcher",
    "ErrorCode",
    "NotificationFeed",
    "NotificationKind",
    "PollCycle",
    "PrinterError",
    "PrinterRegistry",
    "PrinterSession",
    "StatusPoller",
    "classify_failure",
]
