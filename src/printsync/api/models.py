"""Parsed representations of OctoPrint API payloads.

Only the fields the session needs are modelled; everything else in the
payload is ignored. A payload missing a required field fails validation,
which the error classifier reports as a malformed response.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import BED_TARGET, PRIMARY_TOOL


class TemperatureReading(BaseModel):
    """Actual/target temperature of one heater."""

    actual: Optional[float] = None
    target: Optional[float] = None
    offset: Optional[float] = None

    model_config = ConfigDict(extra="ignore")


class PrinterState(BaseModel):
    """Printer status from ``GET /api/printer``."""

    state_text: Optional[str] = None
    flags: Dict[str, bool] = Field(default_factory=dict)
    temperature: Dict[str, TemperatureReading]

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        state = data.get("state") or {}
        temperature = data.get("temperature")
        if isinstance(temperature, dict):
            # Drop history/profile entries that are not heater readings
            temperature = {k: v for k, v in temperature.items() if isinstance(v, dict)}
        return {
            "state_text": state.get("text") if isinstance(state, dict) else None,
            "flags": (state.get("flags") or {}) if isinstance(state, dict) else {},
            "temperature": temperature,
        }

    @property
    def bed(self) -> Optional[TemperatureReading]:
        """Heated bed reading, if the printer reports one."""
        return self.temperature.get(BED_TARGET)

    @property
    def tool(self) -> Optional[TemperatureReading]:
        """Primary tool (hotend) reading."""
        return self.temperature.get(PRIMARY_TOOL)


class JobState(BaseModel):
    """Current job status from ``GET /api/job``."""

    state: str
    file_name: Optional[str] = None
    completion: Optional[float] = None
    print_time: Optional[float] = None
    print_time_left: Optional[float] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        job = data.get("job") or {}
        file_info = (job.get("file") or {}) if isinstance(job, dict) else {}
        progress = data.get("progress")
        if not isinstance(progress, dict):
            progress = {}
        return {
            "state": data.get("state"),
            "file_name": file_info.get("name") if isinstance(file_info, dict) else None,
            "completion": progress.get("completion"),
            "print_time": progress.get("printTime"),
            "print_time_left": progress.get("printTimeLeft"),
        }

    @property
    def progress_percent(self) -> float:
        """Completion clamped to 0..100 (0 when unknown)."""
        if self.completion is None:
            return 0.0
        return min(max(self.completion, 0.0), 100.0)


class FileEntry(BaseModel):
    """One printable file stored on the printer."""

    name: str
    path: Optional[str] = None
    size: Optional[int] = None
    date: Optional[int] = None
    origin: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class VersionInfo(BaseModel):
    """Server identity from ``GET /api/version``, used for connection tests."""

    api: Optional[str] = None
    server: Optional[str] = None
    text: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


def flatten_file_listing(payload: Any) -> List[FileEntry]:
    """Extract files from a listing, descending into folders.

    Accepts ``{"files": [...]}`` as well as ``{"files": {"local": [...]}}``.

    Raises:
        ValueError: If the payload has no recognisable ``files`` entry
    """
    if not isinstance(payload, dict):
        raise ValueError("file listing is not an object")
    files = payload.get("files")
    if isinstance(files, dict):
        files = files.get("local")
    if not isinstance(files, list):
        raise ValueError("file listing has no 'files' list")

    entries: List[FileEntry] = []
    stack = list(reversed(files))
    while stack:
        item = stack.pop()
        if not isinstance(item, dict):
            continue
        if item.get("type") == "folder":
            stack.extend(reversed(item.get("children") or []))
            continue
        entries.append(FileEntry.model_validate(item))
    return entries
