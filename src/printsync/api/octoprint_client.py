"""
OctoPrint API Client

Async HTTP access to the printer API for status reads and control commands.
Every call takes the target profile explicitly so callers always act on the
profile they resolved from the registry, never on a cached one.

Failures are not swallowed here. Transport errors, error statuses and
unparseable payloads propagate as the original httpx/pydantic exceptions;
the poller and dispatcher classify them.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from ..constants import (
    API_KEY_HEADER,
    BED_PATH,
    BED_TARGET,
    COMMAND_PATH,
    FILES_PATH,
    HTTP_TIMEOUT_SECONDS,
    JOB_PATH,
    LOCAL_FILES_PATH,
    PRINTER_STATUS_PATH,
    TOOL_PATH,
    VERSION_PATH,
)
from ..storage import PrinterProfile
from .models import FileEntry, JobState, PrinterState, VersionInfo, flatten_file_listing

logger = logging.getLogger(__name__)


class OctoPrintClient:
    """Client for the OctoPrint REST API of any configured printer"""

    def __init__(self, timeout: float = HTTP_TIMEOUT_SECONDS):
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        base_url: str,
        api_key: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request with the API key header and raise on error statuses."""
        client = await self._get_client()
        url = f"{base_url.rstrip('/')}{path}"
        logger.debug("%s %s", method, url)
        response = await client.request(method, url, headers={API_KEY_HEADER: api_key}, **kwargs)
        response.raise_for_status()
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        """Decode a JSON body; empty bodies (204) decode to None."""
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _send(
        self, profile: PrinterProfile, method: str, path: str, **kwargs: Any
    ) -> Any:
        response = await self._request(method, profile.base_url, profile.apiKey, path, **kwargs)
        return self._json(response)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_printer_status(self, profile: PrinterProfile) -> PrinterState:
        """Fetch heater temperatures and printer state."""
        return PrinterState.model_validate(await self._send(profile, "GET", PRINTER_STATUS_PATH))

    async def get_job_status(self, profile: PrinterProfile) -> JobState:
        """Fetch the current job state and progress."""
        return JobState.model_validate(await self._send(profile, "GET", JOB_PATH))

    async def list_files(self, profile: PrinterProfile) -> List[FileEntry]:
        """List printable files, descending into folders."""
        payload = await self._send(profile, "GET", FILES_PATH, params={"recursive": "true"})
        return flatten_file_listing(payload)

    async def test_connection(self, server_url: str, api_key: str) -> VersionInfo:
        """
        Check that a (possibly unsaved) profile can reach its printer.

        Args:
            server_url: Base URL of the printer API
            api_key: API key to authenticate with

        Returns:
            Version information reported by the server
        """
        response = await self._request("GET", server_url, api_key, VERSION_PATH)
        return VersionInfo.model_validate(self._json(response) or {})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def job_command(
        self, profile: PrinterProfile, command: str, action: Optional[str] = None
    ) -> None:
        """Issue a job control command (``pause`` with an action, or ``cancel``)."""
        body: Dict[str, Any] = {"command": command}
        if action is not None:
            body["action"] = action
        await self._send(profile, "POST", JOB_PATH, json=body)

    async def set_target_temperature(
        self, profile: PrinterProfile, target: str, value: float
    ) -> None:
        """Set the target temperature of the bed or a tool (``tool0``, ``tool1``...)."""
        if target == BED_TARGET:
            await self._send(profile, "POST", BED_PATH, json={"command": "target", "target": value})
        else:
            await self._send(
                profile,
                "POST",
                TOOL_PATH,
                json={"command": "target", "targets": {target: value}},
            )

    async def send_commands(self, profile: PrinterProfile, commands: Sequence[str]) -> None:
        """Send raw G-code commands, executed in order."""
        await self._send(profile, "POST", COMMAND_PATH, json={"commands": list(commands)})

    async def select_and_print(self, profile: PrinterProfile, filename: str) -> None:
        """Select a stored file and start printing it."""
        await self._send(
            profile,
            "POST",
            f"{LOCAL_FILES_PATH}/{quote(filename, safe='/')}",
            json={"command": "select", "print": True},
        )

    async def delete_file(self, profile: PrinterProfile, filename: str) -> None:
        """Delete a stored file."""
        await self._send(profile, "DELETE", f"{LOCAL_FILES_PATH}/{quote(filename, safe='/')}")

    async def upload_file(
        self, profile: PrinterProfile, filename: str, content: bytes
    ) -> Dict[str, Any]:
        """Upload a file to local storage without selecting or printing it."""
        result = await self._send(
            profile,
            "POST",
            LOCAL_FILES_PATH,
            files={"file": (filename, content, "application/octet-stream")},
            data={"filename": filename, "select": "false", "print": "false"},
        )
        return result if isinstance(result, dict) else {}
