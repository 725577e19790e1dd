#!/usr/bin/env python3
"""Async client for the IoT-Ticket REST API.

This module provides the single entry point of the library. Each operation is
one request/response round trip:

    RequestBuilder -> IHttpExecutor -> ResponseMapper | translate_error

Design Philosophy:
    The client knows WHAT to call and how to read the answer. HOW bytes move
    is the executor's job (aiohttp by default, injectable for tests or other
    transports). There is no caching and no retry: the caller owns both.

Usage:
    config = ClientConfig.from_env()
    async with IoTTicketClient(config) as client:
        device = await client.register_device(Device(name="Pump", manufacturer="ACME"))
        await client.write_datanodes(device.device_id, [Datanode("pressure", 2.4, unit="bar")])
        result = await client.read_datanodes(device.device_id, ["pressure"])

    # Callback style, without awaiting the call
    client.dispatch(client.get_all_quota(), lambda quota, error: ...)

Errors:
    ServerError subclasses   non-2xx response (one per server error kind)
    ResponseDecodeError      2xx response whose body does not match the result
    NetworkError subclasses  no response at all
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from ..adapters.aiohttp_executor import AiohttpExecutor
from ..adapters.field_mapper import ResponseMapper
from ..domain.entities import (
    Datanode,
    DatanodeList,
    DatanodeReadResult,
    Device,
    DeviceQuota,
    DevicesList,
    Order,
    Quota,
    WriteDatanodesResult,
)
from ..domain.ports import HttpRequest, IHttpExecutor
from ..exceptions import IoTTicketError
from .config import ClientConfig
from .error_translator import translate_error
from .request_builder import (
    DEFAULT_PAGE_LIMIT,
    DEFAULT_PAGE_OFFSET,
    DEFAULT_READ_LIMIT,
    RequestBuilder,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Completion = Callable[[Optional[Any], Optional[Exception]], Any]


class IoTTicketClient:
    """Async client for the IoT-Ticket API.

    Use it as an async context manager so the default executor's HTTP session
    is closed:

        async with IoTTicketClient(config) as client:
            quota = await client.get_all_quota()

    Attributes:
        config: Immutable connection settings, read at the start of every call
    """

    def __init__(
        self,
        config: ClientConfig,
        executor: Optional[IHttpExecutor] = None,
        mapper: Optional[ResponseMapper] = None,
    ):
        """Initialize the client.

        Args:
            config: Base URL and credentials
            executor: HTTP executor. If not provided, an AiohttpExecutor is
                created and owned by this client.
            mapper: Response mapper (default: ResponseMapper())
        """
        self._config = config
        self._executor = executor
        self._owns_executor = executor is None
        self.mapper = mapper or ResponseMapper()
        self._pending: set[asyncio.Task] = set()

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "IoTTicketClient":
        self._get_executor()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the executor if this client created it."""
        if self._executor is not None and self._owns_executor:
            await self._executor.close()
            self._executor = None

    def _get_executor(self) -> IHttpExecutor:
        if self._executor is None:
            self._executor = AiohttpExecutor(timeout=self._config.timeout)
            self._owns_executor = True
        return self._executor

    # ----------------------------------------
    # Request Pipeline
    # ----------------------------------------

    def _builder(self) -> RequestBuilder:
        """Builder bound to the config as it is now."""
        return RequestBuilder(self._config, self.mapper)

    async def _call(self, request: HttpRequest, result_type: type[T]) -> T:
        """Send one request and map its response.

        Raises:
            ServerError: If the response status is not 2xx
            ResponseDecodeError: If a 2xx body cannot be mapped to result_type
            NetworkError: If no response was received
        """
        executor = self._get_executor()
        logger.debug(f"{request.method} {request.url}")

        response = await executor.execute(request)

        if not response.ok:
            raise translate_error(
                response.status,
                response.body,
                method=request.method,
                endpoint=request.endpoint,
            )

        result = self.mapper.decode(response.body, result_type)
        logger.debug(f"{request.method} {request.endpoint} -> {response.status} {result_type.__name__}")
        return result

    # ----------------------------------------
    # Devices
    # ----------------------------------------

    async def register_device(self, device: Device) -> Device:
        """Register a device and return it with its server-assigned fields."""
        return await self._call(self._builder().register_device(device), Device)

    async def get_device(self, device_id: str) -> Device:
        """Get the information of one device."""
        return await self._call(self._builder().get_device(device_id), Device)

    async def get_devices(
        self,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = DEFAULT_PAGE_OFFSET,
    ) -> DevicesList:
        """Get one page of the account's devices.

        Args:
            limit: The limit of devices to output
            offset: Number of devices to skip
        """
        return await self._call(self._builder().get_devices(limit, offset), DevicesList)

    async def get_datanodes(
        self,
        device_id: str,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = DEFAULT_PAGE_OFFSET,
    ) -> DatanodeList:
        """Get one page of the datanodes of a device."""
        return await self._call(
            self._builder().get_datanodes(device_id, limit, offset),
            DatanodeList,
        )

    # ----------------------------------------
    # Process Data
    # ----------------------------------------

    async def write_datanodes(
        self,
        device_id: str,
        datanodes: Sequence[Datanode],
    ) -> WriteDatanodesResult:
        """Write datanode values to a device.

        Datanodes that do not exist yet are created by the server, along with
        any intermediate path nodes.
        """
        logger.info(f"Writing {len(datanodes)} datanode value(s) to device {device_id}")
        return await self._call(
            self._builder().write_datanodes(device_id, datanodes),
            WriteDatanodesResult,
        )

    write_datanode = write_datanodes

    async def read_datanodes(
        self,
        device_id: str,
        criteria: Sequence[str],
        from_date: Optional[int] = None,
        to_date: Optional[int] = None,
        limit: int = DEFAULT_READ_LIMIT,
        order: Order | str = Order.ASCENDING,
    ) -> DatanodeReadResult:
        """Read values of up to 10 datanodes.

        Without from_date and to_date the server returns the latest value of
        each datanode. See RequestBuilder.read_datanodes for the arguments.
        """
        return await self._call(
            self._builder().read_datanodes(
                device_id,
                criteria,
                from_date=from_date,
                to_date=to_date,
                limit=limit,
                order=order,
            ),
            DatanodeReadResult,
        )

    # ----------------------------------------
    # Quota
    # ----------------------------------------

    async def get_all_quota(self) -> Quota:
        """Get the account-wide quota."""
        return await self._call(self._builder().get_all_quota(), Quota)

    async def get_device_quota(self, device_id: str) -> DeviceQuota:
        """Get the quota of one device."""
        return await self._call(self._builder().get_device_quota(device_id), DeviceQuota)

    # ----------------------------------------
    # Callback Style
    # ----------------------------------------

    def dispatch(
        self,
        call: Awaitable[T],
        completion: Optional[Completion] = None,
    ) -> "asyncio.Task[Optional[T]]":
        """Schedule ``call`` on the running loop and report through ``completion``.

        ``completion(result, None)`` runs on success and ``completion(None, error)``
        when the call raises. Library failures arrive as IoTTicketError; anything
        else (a bad argument, a failing custom executor) is passed on as raised.

        Returns:
            The scheduled task. Its result is the call's result, or None on error.
        """
        async def run() -> Optional[T]:
            try:
                result = await call
            except Exception as e:
                if not isinstance(e, IoTTicketError):
                    logger.error(f"Dispatched call failed: {e}", exc_info=True)
                if completion:
                    completion(None, e)
                return None
            if completion:
                completion(result, None)
            return result

        task = asyncio.get_running_loop().create_task(run())
        self._pending.add(task)
        task.add_done_callback(self._on_dispatch_done)
        return task

    def _on_dispatch_done(self, task: asyncio.Task) -> None:
        """Forget a finished task and log anything its completion raised."""
        self._pending.discard(task)
        try:
            exc = task.exception()
            if exc:
                logger.error(
                    f"Completion callback failed: {exc}",
                    exc_info=(type(exc), exc, exc.__traceback__),
                )
        except asyncio.CancelledError:
            pass
