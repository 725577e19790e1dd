#!/usr/bin/env python3
"""Client configuration for the IoT-Ticket API.

ClientConfig is an immutable value: the base URL and the Basic-auth
credentials are fixed at construction. To change credentials, build a new
config (``with_credentials``) and a new client; calls already in flight keep
the config they started with.

Environment Variables (read by ClientConfig.from_env):
    IOTTICKET_BASE_URL   e.g. https://my.iot-ticket.com/api/v1
    IOTTICKET_USERNAME   account registered on my.iot-ticket.com
    IOTTICKET_PASSWORD   password for the account
    IOTTICKET_TIMEOUT    optional, total request timeout in seconds (default 60)
"""
import base64
import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for IoTTicketClient.

    Attributes:
        base_url: URL to which the API calls are made. Always ends with "/".
        username: The username registered on my.iot-ticket.com
        password: Password for the account
        timeout: Total request timeout in seconds

    Raises:
        ConfigurationError: If base_url is not an absolute http(s) URL.
    """
    base_url: str
    username: str
    password: str = dataclasses.field(repr=False)
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        parts = urlsplit(self.base_url or "")
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigurationError(
                f"Invalid base URL: {self.base_url!r}. Expected an absolute http(s) URL.",
                details={"base_url": self.base_url},
            )
        if parts.query or parts.fragment:
            raise ConfigurationError(
                "Base URL must not contain a query string or fragment",
                details={"base_url": self.base_url},
            )
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")

    @classmethod
    def from_env(
        cls,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "ClientConfig":
        """Build a config from arguments, falling back to environment variables.

        Raises:
            ConfigurationError: If any of the three settings is missing.
        """
        load_dotenv()

        base_url = base_url or os.getenv("IOTTICKET_BASE_URL")
        username = username or os.getenv("IOTTICKET_USERNAME")
        password = password or os.getenv("IOTTICKET_PASSWORD")

        missing = []
        if not base_url:
            missing.append("IOTTICKET_BASE_URL")
        if not username:
            missing.append("IOTTICKET_USERNAME")
        if not password:
            missing.append("IOTTICKET_PASSWORD")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing_keys=missing,
            )

        timeout_raw = os.getenv("IOTTICKET_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError as e:
            raise ConfigurationError(
                f"IOTTICKET_TIMEOUT must be a number, got {timeout_raw!r}",
                cause=e,
            )

        return cls(base_url=base_url, username=username, password=password, timeout=timeout)

    def with_credentials(self, username: str, password: str) -> "ClientConfig":
        """Return a copy of this config using other credentials."""
        return dataclasses.replace(self, username=username, password=password)

    @property
    def authorization_header(self) -> str:
        """Value of the Authorization header for Basic authentication."""
        credentials = f"{self.username}:{self.password}".encode("utf-8")
        return f"Basic {base64.b64encode(credentials).decode('ascii')}"
