"""Translation of non-2xx responses into typed server errors.

The IoT-Ticket server reports failures as a JSON envelope:

    {"code": 8002, "description": "Quota violation"}

translate_error() maps the envelope to one ServerError subclass. The mapping
is total: unknown codes, missing fields and bodies that are not JSON at all
yield UncaughtServerError. It never raises.
"""
import json
import logging
from typing import Any, Optional

from ..exceptions import (
    BadInputParameterError,
    CaseWriteFailedError,
    InternalServerError,
    PermissionNotSufficientError,
    QuotaViolationError,
    ServerError,
    ServerErrorKind,
    UncaughtServerError,
)

logger = logging.getLogger(__name__)

ERROR_CLASSES: dict[ServerErrorKind, type[ServerError]] = {
    ServerErrorKind.INTERNAL_SERVER_ERROR: InternalServerError,
    ServerErrorKind.PERMISSION_NOT_SUFFICIENT: PermissionNotSufficientError,
    ServerErrorKind.QUOTA_VIOLATION: QuotaViolationError,
    ServerErrorKind.BAD_INPUT_PARAMETER: BadInputParameterError,
    ServerErrorKind.CASE_WRITE_FAILED: CaseWriteFailedError,
    ServerErrorKind.UNCAUGHT_EXCEPTION: UncaughtServerError,
}


def parse_error_envelope(body: bytes | str) -> Optional[tuple[int, str]]:
    """Extract ``(code, description)`` from an error body, or None.

    Both fields must be present: ``code`` as a JSON integer and
    ``description`` as a string.
    """
    try:
        data: Any = json.loads(body)
    except (ValueError, UnicodeDecodeError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None

    code = data.get("code")
    description = data.get("description")
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    if not isinstance(description, str):
        return None
    return code, description


def error_kind_for(code: Optional[int]) -> ServerErrorKind:
    """Map an envelope code to its ServerErrorKind (unknown -> UNCAUGHT_EXCEPTION)."""
    if code is None:
        return ServerErrorKind.UNCAUGHT_EXCEPTION
    try:
        return ServerErrorKind(code)
    except ValueError:
        return ServerErrorKind.UNCAUGHT_EXCEPTION


def translate_error(
    status: int,
    body: bytes | str,
    *,
    method: str = "GET",
    endpoint: Optional[str] = None,
) -> ServerError:
    """Build the ServerError for a non-2xx response.

    Args:
        status: HTTP status code of the response
        body: Raw response body
        method: HTTP method of the request (for error details)
        endpoint: Request URL without query (for error details)

    Returns:
        Exactly one ServerError instance; the caller raises it.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    envelope = parse_error_envelope(body)

    if envelope is None:
        logger.warning(f"{method} {endpoint} failed with HTTP {status} and no error envelope")
        return UncaughtServerError(
            f"Server returned HTTP {status} without a valid error envelope",
            status_code=status,
            endpoint=endpoint,
            method=method,
            response_body=text,
        )

    code, description = envelope
    kind = error_kind_for(code)
    logger.warning(f"{method} {endpoint} failed with HTTP {status}: [{code}] {description}")

    return ERROR_CLASSES[kind](
        f"There was an error: {description} (code {code})",
        server_code=code,
        description=description,
        status_code=status,
        endpoint=endpoint,
        method=method,
        response_body=text,
    )
