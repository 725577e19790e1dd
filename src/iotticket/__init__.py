"""Async client library for the IoT-Ticket telemetry service.

Example:
    from iotticket import ClientConfig, Datanode, IoTTicketClient

    async with IoTTicketClient(ClientConfig.from_env()) as client:
        await client.write_datanodes(device_id, [Datanode("temperature", 21.5, unit="C")])
"""
from .api import ClientConfig, IoTTicketClient, RequestBuilder, translate_error
from .domain import (
    DataType,
    Datanode,
    DatanodeInfo,
    DatanodeList,
    DatanodeRead,
    DatanodeReadResult,
    DatanodeValue,
    Device,
    DeviceAttribute,
    DeviceQuota,
    DevicesList,
    FieldConstraints,
    Order,
    Quota,
    ValuePoint,
    WriteDatanodesResult,
    WriteResult,
)
from .exceptions import (
    BadInputParameterError,
    CaseWriteFailedError,
    ConfigurationError,
    InternalServerError,
    InvalidDatanodeValueError,
    IoTTicketError,
    NetworkError,
    PermissionNotSufficientError,
    QuotaViolationError,
    ResponseDecodeError,
    ServerError,
    ServerErrorKind,
    UncaughtServerError,
)
from .utils import date_to_timestamp, device_attribute

__version__ = "0.1.0"

__all__ = [
    # Client
    "ClientConfig",
    "IoTTicketClient",
    "RequestBuilder",
    "translate_error",
    # Entities
    "DataType",
    "Datanode",
    "DatanodeInfo",
    "DatanodeList",
    "DatanodeRead",
    "DatanodeReadResult",
    "DatanodeValue",
    "Device",
    "DeviceAttribute",
    "DeviceQuota",
    "DevicesList",
    "FieldConstraints",
    "Order",
    "Quota",
    "ValuePoint",
    "WriteDatanodesResult",
    "WriteResult",
    # Errors
    "BadInputParameterError",
    "CaseWriteFailedError",
    "ConfigurationError",
    "InternalServerError",
    "InvalidDatanodeValueError",
    "IoTTicketError",
    "NetworkError",
    "PermissionNotSufficientError",
    "QuotaViolationError",
    "ResponseDecodeError",
    "ServerError",
    "ServerErrorKind",
    "UncaughtServerError",
    # Helpers
    "date_to_timestamp",
    "device_attribute",
]
