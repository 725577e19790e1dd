"""Domain layer - Pure domain entities, field constraints and port interfaces.

This layer contains:
- Constraints: Field limits applied when a field is read
- Entities: Pure data structures exchanged with the service
- Ports: Abstract interfaces defining contracts for adapters

No infrastructure dependencies allowed in this layer.
"""

from .constraints import FieldConstraints, is_valid_device_id, raw_value
from .entities import (
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
    Order,
    Quota,
    ValueKind,
    ValuePoint,
    WriteDatanodesResult,
    WriteResult,
)
from .ports import HttpRequest, HttpResponse, IFieldMapper, IHttpExecutor

__all__ = [
    # Constraints
    "FieldConstraints",
    "is_valid_device_id",
    "raw_value",
    # Device Entities
    "Device",
    "DeviceAttribute",
    "DevicesList",
    # Datanode Entities
    "DataType",
    "Datanode",
    "DatanodeInfo",
    "DatanodeList",
    "DatanodeRead",
    "DatanodeReadResult",
    "DatanodeValue",
    "Order",
    "ValueKind",
    "ValuePoint",
    "WriteDatanodesResult",
    "WriteResult",
    # Quota Entities
    "DeviceQuota",
    "Quota",
    # Ports
    "HttpRequest",
    "HttpResponse",
    "IFieldMapper",
    "IHttpExecutor",
]
