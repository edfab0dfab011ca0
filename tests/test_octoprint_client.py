"""
Tests for the OctoPrint API client
"""

import json
from typing import List

import httpx
import pytest
from pydantic import ValidationError

from conftest import job_payload, printer_payload
from printsync.api.models import flatten_file_listing
from printsync.api.octoprint_client import OctoPrintClient
from printsync.storage import PrinterProfile

PROFILE = PrinterProfile(
    id="p1", name="Ender", serverUrl="http://10.0.0.5:5000/", apiKey="SECRET"
)


class Recorder:
    """MockTransport handler that records requests and replies from a table."""

    def __init__(self, responses=None):
        self.requests: List[httpx.Request] = []
        self.responses = responses or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        status, body = self.responses.get(key, (204, None))
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def client(recorder):
    octoprint = OctoPrintClient(timeout=1.0)
    octoprint._client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return octoprint


class TestReads:
    """Status and file reads"""

    @pytest.mark.asyncio
    async def test_printer_status(self, client, recorder):
        """Should parse temperatures and send the API key"""
        recorder.responses[("GET", "/api/printer")] = (200, printer_payload(tool=199.5))

        state = await client.get_printer_status(PROFILE)

        assert state.tool.actual == 199.5
        assert state.bed.target == 60.0
        assert state.state_text == "Printing"
        assert "history" not in state.temperature
        assert recorder.last.headers["X-Api-Key"] == "SECRET"
        assert str(recorder.last.url) == "http://10.0.0.5:5000/api/printer"

    @pytest.mark.asyncio
    async def test_job_status(self, client, recorder):
        """Should flatten job file name and progress"""
        recorder.responses[("GET", "/api/job")] = (200, job_payload(completion=150.0))

        job = await client.get_job_status(PROFILE)

        assert job.state == "Printing"
        assert job.file_name == "benchy.gcode"
        assert job.print_time_left == 900
        assert job.progress_percent == 100.0

    @pytest.mark.asyncio
    async def test_job_status_idle(self, client, recorder):
        """Idle printers report null job fields"""
        recorder.responses[("GET", "/api/job")] = (
            200,
            {"state": "Operational", "job": {"file": {"name": None}}, "progress": None},
        )
        job = await client.get_job_status(PROFILE)
        assert job.file_name is None
        assert job.progress_percent == 0.0

    @pytest.mark.asyncio
    async def test_printer_status_missing_temperature(self, client, recorder):
        """A payload without temperatures is a validation error"""
        recorder.responses[("GET", "/api/printer")] = (200, {"state": {"text": "Offline"}})
        with pytest.raises(ValidationError):
            await client.get_printer_status(PROFILE)

    @pytest.mark.asyncio
    async def test_error_status_raises(self, client, recorder):
        """Error statuses propagate as HTTPStatusError"""
        recorder.responses[("GET", "/api/printer")] = (409, {"error": "Printer is not operational"})
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await client.get_printer_status(PROFILE)
        assert exc_info.value.response.status_code == 409

    @pytest.mark.asyncio
    async def test_list_files(self, client, recorder):
        """Should request a recursive listing and flatten folders"""
        recorder.responses[("GET", "/api/files")] = (
            200,
            {
                "files": [
                    {"name": "a.gcode", "path": "a.gcode", "type": "machinecode", "size": 10},
                    {
                        "name": "parts",
                        "type": "folder",
                        "children": [{"name": "b.gcode", "path": "parts/b.gcode"}],
                    },
                ]
            },
        )

        files = await client.list_files(PROFILE)

        assert [f.path for f in files] == ["a.gcode", "parts/b.gcode"]
        assert recorder.last.url.params["recursive"] == "true"

    @pytest.mark.asyncio
    async def test_connection(self, client, recorder):
        """Connection test uses the given credentials, not a profile"""
        recorder.responses[("GET", "/api/version")] = (
            200,
            {"api": "0.1", "server": "1.10.2", "text": "OctoPrint 1.10.2"},
        )

        info = await client.test_connection("http://other:80", "KEY2")

        assert info.server == "1.10.2"
        assert recorder.last.headers["X-Api-Key"] == "KEY2"
        assert recorder.last.url.host == "other"


class TestWrites:
    """Control commands"""

    @pytest.mark.asyncio
    async def test_pause(self, client, recorder):
        await client.job_command(PROFILE, "pause", "pause")
        assert recorder.last.method == "POST"
        assert recorder.last.url.path == "/api/job"
        assert json.loads(recorder.last.content) == {"command": "pause", "action": "pause"}

    @pytest.mark.asyncio
    async def test_cancel_has_no_action(self, client, recorder):
        await client.job_command(PROFILE, "cancel")
        assert json.loads(recorder.last.content) == {"command": "cancel"}

    @pytest.mark.asyncio
    async def test_bed_temperature(self, client, recorder):
        await client.set_target_temperature(PROFILE, "bed", 60)
        assert recorder.last.url.path == "/api/printer/bed"
        assert json.loads(recorder.last.content) == {"command": "target", "target": 60}

    @pytest.mark.asyncio
    async def test_tool_temperature(self, client, recorder):
        await client.set_target_temperature(PROFILE, "tool0", 215)
        assert recorder.last.url.path == "/api/printer/tool"
        assert json.loads(recorder.last.content) == {
            "command": "target",
            "targets": {"tool0": 215},
        }

    @pytest.mark.asyncio
    async def test_send_commands(self, client, recorder):
        await client.send_commands(PROFILE, ("G91", "G1 X10 F3000", "G90"))
        assert recorder.last.url.path == "/api/printer/command"
        assert json.loads(recorder.last.content) == {"commands": ["G91", "G1 X10 F3000", "G90"]}

    @pytest.mark.asyncio
    async def test_select_and_print_quotes_name(self, client, recorder):
        await client.select_and_print(PROFILE, "parts/my part.gcode")
        assert recorder.last.url.raw_path == b"/api/files/local/parts/my%20part.gcode"
        assert json.loads(recorder.last.content) == {"command": "select", "print": True}

    @pytest.mark.asyncio
    async def test_delete_file(self, client, recorder):
        await client.delete_file(PROFILE, "a.gcode")
        assert recorder.last.method == "DELETE"
        assert recorder.last.url.path == "/api/files/local/a.gcode"

    @pytest.mark.asyncio
    async def test_upload_file(self, client, recorder):
        recorder.responses[("POST", "/api/files/local")] = (201, {"done": True})

        result = await client.upload_file(PROFILE, "cube.gcode", b"G28\n")

        body = recorder.last.content
        assert recorder.last.headers["Content-Type"].startswith("multipart/form-data")
        assert b'filename="cube.gcode"' in body
        assert b"G28\n" in body
        assert b'name="print"' in body
        assert result == {"done": True}


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_client_created_lazily_and_closed(self):
        octoprint = OctoPrintClient(timeout=2.5)
        assert octoprint._client is None

        http = await octoprint._get_client()
        assert await octoprint._get_client() is http
        assert http.timeout.read == 2.5

        await octoprint.close()
        assert octoprint._client is None
        assert http.is_closed


def test_flatten_accepts_origin_map():
    files = flatten_file_listing({"files": {"local": [{"name": "x.gcode"}]}})
    assert [f.name for f in files] == ["x.gcode"]


def test_flatten_rejects_unknown_payload():
    with pytest.raises(ValueError):
        flatten_file_listing({"done": True})
