"""Tests for failure classification."""

from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from printsync.api.models import JobState
from printsync.errors import (
    ConnectivityError,
    DeviceRejectedError,
    ErrorCode,
    InvalidCommandError,
    MalformedResponseError,
    NoActiveDeviceError,
    classify_failure,
)

URL = "http://printer.local/api/job"


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", URL)
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestClassifyFailure:
    @pytest.mark.parametrize("status", [401, 403, 409, 500])
    def test_error_status_is_rejection(self, status):
        error = classify_failure(_status_error(status))
        assert isinstance(error, DeviceRejectedError)
        assert error.code is ErrorCode.DEVICE_REJECTED
        assert error.status_code == status
        assert error.details["url"] == URL
        assert str(status) in error.message

    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("connection refused", request=httpx.Request("GET", URL)),
            httpx.ReadTimeout("timed out", request=httpx.Request("GET", URL)),
        ],
    )
    def test_transport_errors_are_connectivity(self, exc):
        error = classify_failure(exc)
        assert isinstance(error, ConnectivityError)
        assert error.details["url"] == URL
        assert error.cause is exc

    def test_transport_error_without_request(self):
        error = classify_failure(httpx.ConnectError("boom"))
        assert error.code is ErrorCode.CONNECTIVITY_FAILURE
        assert error.details["url"] is None

    def test_os_error_is_connectivity(self):
        assert classify_failure(OSError("unreachable")).code is ErrorCode.CONNECTIVITY_FAILURE

    def test_validation_error_is_malformed(self):
        with pytest.raises(ValidationError) as exc_info:
            JobState.model_validate({"progress": {}})
        error = classify_failure(exc_info.value)
        assert isinstance(error, MalformedResponseError)
        assert "1 invalid field(s)" in error.message

    @pytest.mark.parametrize("exc", [ValueError("bad json"), KeyError("state"), TypeError("x")])
    def test_parse_errors_are_malformed(self, exc):
        assert classify_failure(exc).code is ErrorCode.MALFORMED_RESPONSE

    def test_printer_errors_pass_through(self):
        original = NoActiveDeviceError()
        assert classify_failure(original) is original
        invalid = InvalidCommandError("bad axis")
        assert classify_failure(invalid) is invalid

    def test_unknown_failures_are_connectivity(self):
        assert classify_failure(RuntimeError("??")).code is ErrorCode.CONNECTIVITY_FAILURE

    def test_classification_does_not_mutate_input(self):
        exc = ValueError("bad")
        first = classify_failure(exc)
        second = classify_failure(exc)
        assert first is not second
        assert first.message == second.message
        assert exc.args == ("bad",)


def test_to_dict():
    error = InvalidCommandError("Unknown axis 'Q'", details={"action": "Move"})
    assert error.to_dict() == {
        "code": "command_invalid",
        "message": "Unknown axis 'Q'",
        "details": {"action": "Move"},
    }
