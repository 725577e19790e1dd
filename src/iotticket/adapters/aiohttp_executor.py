"""aiohttp implementation of the IHttpExecutor port.

Usage:
    async with AiohttpExecutor(timeout=30) as executor:
        response = await executor.execute(request)

The executor performs exactly one round trip per call. Any HTTP status is
returned as an HttpResponse; only failures without a response raise.
"""
import asyncio
import logging
from typing import Optional

import aiohttp
from yarl import URL

from ..domain.ports import HttpRequest, HttpResponse, IHttpExecutor
from ..exceptions import ConnectionError, NetworkError, TimeoutError

logger = logging.getLogger(__name__)


class AiohttpExecutor(IHttpExecutor):
    """Sends HttpRequests over a shared aiohttp.ClientSession.

    The session is created lazily on first use (or in ``__aenter__``) and is
    closed by ``close()``. A session passed in by the caller is never closed
    here.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "AiohttpExecutor":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    # ----------------------------------------
    # IHttpExecutor
    # ----------------------------------------

    async def execute(self, request: HttpRequest) -> HttpResponse:
        """Send ``request`` once.

        Raises:
            ConnectionError: If connection to server fails
            TimeoutError: If request times out
            NetworkError: For any other transport failure
        """
        session = self._ensure_session()
        endpoint = request.endpoint

        try:
            async with session.request(
                method=request.method,
                url=URL(request.url, encoded=True),
                headers=request.headers,
                data=request.body,
            ) as response:
                body = await response.read()
                return HttpResponse(
                    status=response.status,
                    body=body,
                    headers=dict(response.headers),
                )

        # ServerTimeoutError is also a ClientConnectionError
        except asyncio.TimeoutError as e:
            logger.error(f"{request.method} {endpoint} timed out after {self.timeout}s")
            raise TimeoutError(
                f"Request to {endpoint} timed out",
                timeout_seconds=self.timeout,
                cause=e,
            )

        except aiohttp.ClientConnectionError as e:
            logger.error(f"Connection error during {request.method} {endpoint}: {e}")
            raise ConnectionError(
                f"Failed to connect to {endpoint}",
                host=URL(request.url, encoded=True).host,
                cause=e,
            )

        except aiohttp.ClientError as e:
            logger.error(f"Network error during {request.method} {endpoint}: {e}")
            raise NetworkError(
                f"Network error during {request.method} {endpoint}: {e}",
                cause=e,
            )
