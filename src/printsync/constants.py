"""Application constants including device API paths and timing definitions.

Centralized constants to ensure consistency across the registry, poller,
dispatcher and HTTP layers.
"""

from __future__ import annotations

# ============================================================================
# Persisted State Keys
# ============================================================================

PRINTERS_KEY = "printers"
ACTIVE_PRINTER_KEY = "activePrinterId"
STATE_FILE_NAME = "state.json"

# ============================================================================
# Device API (OctoPrint)
# ============================================================================

API_KEY_HEADER = "X-Api-Key"

PRINTER_STATUS_PATH = "/api/printer"
JOB_PATH = "/api/job"
TOOL_PATH = "/api/printer/tool"
BED_PATH = "/api/printer/bed"
COMMAND_PATH = "/api/printer/command"
FILES_PATH = "/api/files"
LOCAL_FILES_PATH = "/api/files/local"
VERSION_PATH = "/api/version"

BED_TARGET = "bed"
PRIMARY_TOOL = "tool0"

GCODE_EXTENSIONS = (".gcode", ".gco")
MOVABLE_AXES = ("X", "Y", "Z")

# Feed rates (mm/min) used when composing jog and extrusion sequences
MOVE_FEEDRATE = 3000
EXTRUDE_FEEDRATE = 300

# ============================================================================
# Timing Constants
# ============================================================================

POLL_INTERVAL_SECONDS = 1.5  # Cadence of scheduled status reads
HTTP_TIMEOUT_SECONDS = 10.0  # Transport timeout for every device request

# ============================================================================
# Notifications
# ============================================================================

NOTIFICATION_HISTORY_DEFAULT = 50
