#!/usr/bin/env python3
"""Exception Hierarchy for the IoT-Ticket API client.

This module provides a structured exception hierarchy for every failure the
client can surface: configuration mistakes, transport failures, server error
envelopes and undecodable success bodies.

Design Principles:
    - All exceptions inherit from IoTTicketError base class
    - Exceptions preserve context (original error, timestamps, details)
    - Exceptions are categorized by recoverability
    - Server-reported errors carry their ServerErrorKind

Exception Hierarchy:
    IoTTicketError (base)
    ├── ConfigurationError (unrecoverable - fix config)
    ├── InvalidDatanodeValueError (unrecoverable - fix the value)
    ├── APIError (non-2xx response)
    │   └── ServerError
    │       ├── InternalServerError          (8000)
    │       ├── PermissionNotSufficientError (8001)
    │       ├── QuotaViolationError          (8002)
    │       ├── BadInputParameterError       (8003)
    │       ├── CaseWriteFailedError         (8004)
    │       └── UncaughtServerError          (anything else)
    ├── ResponseDecodeError (2xx body could not be mapped)
    └── NetworkError (no response)
        ├── ConnectionError
        └── TimeoutError
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class IoTTicketError(Exception):
    """Base exception for all IoT-Ticket client errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "QUOTA_VIOLATION")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether this error might be recoverable with retry
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.insert(0, f"[{self.code}]")
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration / Programmer Errors
# ============================================

class ConfigurationError(IoTTicketError):
    """Raised when configuration is missing or invalid (e.g. a malformed base URL).

    These errors require fixing configuration before retry.
    """

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


class InvalidDatanodeValueError(IoTTicketError, TypeError):
    """Raised when a datanode value is not a number, boolean or string."""

    def __init__(self, value: Any, **kwargs):
        details = kwargs.pop("details", {})
        details["value_type"] = type(value).__name__
        super().__init__(
            f"Unsupported datanode value type: {type(value).__name__}",
            code="INVALID_DATANODE_VALUE",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.value = value


# ============================================
# Server Errors
# ============================================

class ServerErrorKind(Enum):
    """Error categories defined by the IoT-Ticket server.

    Values are the numeric codes of the error envelope; UNCAUGHT_EXCEPTION
    has no code of its own.
    """
    INTERNAL_SERVER_ERROR = 8000
    PERMISSION_NOT_SUFFICIENT = 8001
    QUOTA_VIOLATION = 8002
    BAD_INPUT_PARAMETER = 8003
    CASE_WRITE_FAILED = 8004
    UNCAUGHT_EXCEPTION = None


class APIError(IoTTicketError):
    """Base class for non-2xx API responses.

    Attributes:
        status_code: HTTP status code
        endpoint: API endpoint that was called
        response_body: Raw response body (may be truncated)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        endpoint: Optional[str] = None,
        response_body: Optional[str] = None,
        method: str = "GET",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        if endpoint:
            details["endpoint"] = endpoint
        if method:
            details["method"] = method
        if response_body:
            details["response_body"] = response_body[:500] if len(response_body) > 500 else response_body

        kwargs.setdefault("code", f"API_ERROR_{status_code}")

        super().__init__(
            message,
            details=details,
            **kwargs,
        )
        self.status_code = status_code
        self.endpoint = endpoint
        self.response_body = response_body
        self.method = method


class ServerError(APIError):
    """An error reported by the server through its `{code, description}` envelope.

    Subclasses pin ``kind``; callers can catch ServerError and switch on it,
    or catch the specific subclass.

    Attributes:
        kind: The ServerErrorKind this error represents
        server_code: The numeric code from the envelope, if one was parsed
        description: The description from the envelope, if one was parsed
    """

    kind: ServerErrorKind = ServerErrorKind.UNCAUGHT_EXCEPTION

    def __init__(
        self,
        message: Optional[str] = None,
        server_code: Optional[int] = None,
        description: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("status_code", 500)
        details = kwargs.pop("details", {})
        if server_code is not None:
            details["server_code"] = server_code
        kwargs.setdefault("code", self.kind.name)
        super().__init__(
            message or description or self.kind.name.replace("_", " ").capitalize(),
            details=details,
            **kwargs,
        )
        self.server_code = server_code
        self.description = description


class InternalServerError(ServerError):
    """Code 8000: the server failed while handling the request."""

    kind = ServerErrorKind.INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class PermissionNotSufficientError(ServerError):
    """Code 8001: the account may not access the resource."""

    kind = ServerErrorKind.PERMISSION_NOT_SUFFICIENT


class QuotaViolationError(ServerError):
    """Code 8002: a device, datanode, storage or request quota is exhausted."""

    kind = ServerErrorKind.QUOTA_VIOLATION


class BadInputParameterError(ServerError):
    """Code 8003: the request parameters or body were rejected."""

    kind = ServerErrorKind.BAD_INPUT_PARAMETER


class CaseWriteFailedError(ServerError):
    """Code 8004: the server could not store the written values."""

    kind = ServerErrorKind.CASE_WRITE_FAILED

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class UncaughtServerError(ServerError):
    """Unknown error code, or an error body that is not a valid envelope."""

    kind = ServerErrorKind.UNCAUGHT_EXCEPTION


# ============================================
# Decode Errors
# ============================================

class ResponseDecodeError(IoTTicketError):
    """Raised when a 2xx response body cannot be mapped to the expected result.

    Distinct from ServerError: there is no error envelope on this path.

    Attributes:
        result_type: Name of the entity the body was decoded into
        response_body: Raw response body (may be truncated)
    """

    def __init__(
        self,
        message: str,
        result_type: Optional[str] = None,
        response_body: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if result_type:
            details["result_type"] = result_type
        if response_body:
            details["response_body"] = response_body[:200]
        super().__init__(
            message,
            code="RESPONSE_DECODE_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.result_type = result_type
        self.response_body = response_body


# ============================================
# Network Errors (Usually Recoverable)
# ============================================

class NetworkError(IoTTicketError):
    """Base class for transport failures where no response was received."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class ConnectionError(NetworkError):
    """Raised when connection to server fails."""

    def __init__(
        self,
        message: str = "Failed to connect to server",
        host: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if host:
            details["host"] = host
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details=details,
            **kwargs,
        )


class TimeoutError(NetworkError):
    """Raised when request times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            code="TIMEOUT_ERROR",
            details=details,
            **kwargs,
        )


# ============================================
# Exports
# ============================================

__all__ = [
    # Base
    "IoTTicketError",
    # Programmer errors
    "ConfigurationError",
    "InvalidDatanodeValueError",
    # API
    "APIError",
    "ServerErrorKind",
    "ServerError",
    "InternalServerError",
    "PermissionNotSufficientError",
    "QuotaViolationError",
    "BadInputParameterError",
    "CaseWriteFailedError",
    "UncaughtServerError",
    # Decode
    "ResponseDecodeError",
    # Network
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
]
