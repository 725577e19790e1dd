#!/usr/bin/env python3
"""Unit tests for server error translation.

Tests cover:
    - Each known envelope code maps to its error class and kind
    - Unknown codes and unparsable bodies map to UncaughtServerError
    - Error context (status, endpoint, description) is preserved
"""
import json
import sys

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.iotticket.api.error_translator import (
    error_kind_for,
    parse_error_envelope,
    translate_error,
)
from src.iotticket.exceptions import (
    APIError,
    BadInputParameterError,
    CaseWriteFailedError,
    InternalServerError,
    PermissionNotSufficientError,
    QuotaViolationError,
    ServerError,
    ServerErrorKind,
    UncaughtServerError,
)


def _envelope(code, description="Something happened") -> bytes:
    return json.dumps({"code": code, "description": description}).encode("utf-8")


# ============================================
# Known Codes
# ============================================

class TestKnownCodes:
    """Test the fixed code -> kind mapping."""

    @pytest.mark.parametrize(
        "code,error_class,kind",
        [
            (8000, InternalServerError, ServerErrorKind.INTERNAL_SERVER_ERROR),
            (8001, PermissionNotSufficientError, ServerErrorKind.PERMISSION_NOT_SUFFICIENT),
            (8002, QuotaViolationError, ServerErrorKind.QUOTA_VIOLATION),
            (8003, BadInputParameterError, ServerErrorKind.BAD_INPUT_PARAMETER),
            (8004, CaseWriteFailedError, ServerErrorKind.CASE_WRITE_FAILED),
        ],
    )
    def test_code_maps_to_kind(self, code, error_class, kind):
        error = translate_error(400, _envelope(code))

        assert type(error) is error_class
        assert error.kind is kind
        assert error.server_code == code
        assert isinstance(error, ServerError)
        assert isinstance(error, APIError)

    def test_quota_violation(self):
        error = translate_error(403, _envelope(8002, "Quota exceeded"))

        assert isinstance(error, QuotaViolationError)
        assert error.description == "Quota exceeded"
        assert error.status_code == 403
        assert error.code == "QUOTA_VIOLATION"
        assert "Quota exceeded" in str(error)

    def test_context_preserved(self):
        error = translate_error(
            500,
            _envelope(8000),
            method="POST",
            endpoint="https://my.iot-ticket.com/api/v1/devices/",
        )
        assert error.method == "POST"
        assert error.endpoint.endswith("/devices/")
        assert error.details["server_code"] == 8000
        assert error.recoverable


# ============================================
# Uncaught Fallback
# ============================================

class TestUncaught:
    """Everything else should become UncaughtServerError."""

    def test_unknown_code(self):
        error = translate_error(400, _envelope(9999))
        assert isinstance(error, UncaughtServerError)
        assert error.kind is ServerErrorKind.UNCAUGHT_EXCEPTION
        assert error.server_code == 9999

    def test_missing_code(self):
        error = translate_error(400, json.dumps({"description": "no code"}).encode())
        assert isinstance(error, UncaughtServerError)
        assert error.server_code is None

    def test_missing_description(self):
        assert isinstance(translate_error(400, json.dumps({"code": 8002}).encode()), UncaughtServerError)

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"<html><body>502 Bad Gateway</body></html>",
            b"[8002]",
            json.dumps({"code": "8002", "description": "string code"}).encode(),
            json.dumps({"code": True, "description": "bool code"}).encode(),
            json.dumps({"code": 8002.5, "description": "float code"}).encode(),
            b"\xff\xfe\x00",
        ],
    )
    def test_unparsable_bodies(self, body):
        error = translate_error(502, body)
        assert isinstance(error, UncaughtServerError)
        assert error.status_code == 502

    def test_deeply_nested_body(self):
        """A body too deep for the JSON parser is still translated."""
        body = b"[" * 100000 + b"]" * 100000
        error = translate_error(500, body)
        assert isinstance(error, UncaughtServerError)
        assert error.status_code == 500

    def test_never_raises_for_text(self):
        error = translate_error(404, "Not Found")
        assert isinstance(error, UncaughtServerError)
        assert error.response_body == "Not Found"


class TestHelpers:
    def test_parse_envelope(self):
        assert parse_error_envelope(_envelope(8001, "nope")) == (8001, "nope")

    def test_error_kind_for(self):
        assert error_kind_for(8004) is ServerErrorKind.CASE_WRITE_FAILED
        assert error_kind_for(1) is ServerErrorKind.UNCAUGHT_EXCEPTION
        assert error_kind_for(None) is ServerErrorKind.UNCAUGHT_EXCEPTION


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
