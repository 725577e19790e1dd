"""Domain entities exchanged with the IoT-Ticket service.

These are pure data structures with no infrastructure dependencies. Length
restricted fields use the Restricted descriptor, so reading them returns the
truncated view while the value that was set is kept as is.
"""

import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from ..exceptions import InvalidDatanodeValueError
from .constraints import FieldConstraints, Restricted, restrict_list, restrict_path


def current_millis() -> int:
    """Milliseconds since the Epoch, as used by datanode timestamps."""
    return int(time.time() * 1000)


# ============================================
# Enumerations
# ============================================

class DataType(str, Enum):
    """Datanode data types. Inferred server-side when not provided."""
    LONG = "long"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    STRING = "string"
    BINARY = "binary"


class Order(str, Enum):
    """Ordering of values by timestamp in read queries."""
    ASCENDING = "ascending"
    DESCENDING = "descending"


class ValueKind(str, Enum):
    """Variants of a datanode value."""
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEXT = "text"


# ============================================
# Datanode Value
# ============================================

Scalar = Union[int, float, bool, str]


@dataclass(frozen=True)
class DatanodeValue:
    """A datanode value: a number, a boolean or a text.

    Use DatanodeValue.of() to build one from a plain Python value. Any other
    type is rejected with InvalidDatanodeValueError.
    """

    kind: ValueKind
    raw: Scalar

    @classmethod
    def of(cls, value: Any) -> "DatanodeValue":
        if isinstance(value, DatanodeValue):
            return value
        # bool is a subclass of int, check it first
        if isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                raise InvalidDatanodeValueError(value, details={"reason": "non-finite number"})
            return cls(ValueKind.NUMBER, value)
        if isinstance(value, str):
            return cls(ValueKind.TEXT, value)
        raise InvalidDatanodeValueError(value)

    def to_wire(self) -> Scalar:
        """JSON representation of the value for the `v` field."""
        if self.kind is ValueKind.NUMBER:
            return self.raw
        if self.kind is ValueKind.BOOLEAN:
            return bool(self.raw)
        return str(self.raw)


# ============================================
# Device Entities
# ============================================

@dataclass
class DeviceAttribute:
    """A key/value pair stored with a device. Both sides are limited to 255 chars."""

    key: str = Restricted(FieldConstraints.MAX_ATTRIBUTE_LENGTH)
    value: str = Restricted(FieldConstraints.MAX_ATTRIBUTE_LENGTH)


@dataclass
class Device:
    """An IoT device registered under the user's enterprise.

    ``device_id``, ``href`` and ``created_at`` are assigned by the server and
    stay None on a device that has not been registered yet.
    """

    name: str = Restricted(FieldConstraints.MAX_NAME_LENGTH)
    manufacturer: str = Restricted(FieldConstraints.MAX_NAME_LENGTH)
    type: Optional[str] = Restricted(FieldConstraints.MAX_NAME_LENGTH, default=None)
    device_description: Optional[str] = Restricted(
        FieldConstraints.MAX_DESCRIPTION_LENGTH, default=None
    )
    attributes: Optional[list[DeviceAttribute]] = Restricted(
        FieldConstraints.MAX_NUMBER_OF_ATTRIBUTES,
        default=None,
        restrict=lambda items: restrict_list(items, FieldConstraints.MAX_NUMBER_OF_ATTRIBUTES),
    )

    # Server-assigned
    device_id: Optional[str] = None
    href: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_registered(self) -> bool:
        """Check if the server has assigned an id to this device."""
        return self.device_id is not None

    @property
    def created_datetime(self) -> Optional[datetime]:
        """Parse ``created_at`` (ISO 8601, optional Z suffix)."""
        if not self.created_at:
            return None
        try:
            return datetime.fromisoformat(self.created_at.replace("Z", "+00:00"))
        except ValueError:
            return None


@dataclass
class DevicesList:
    """One page of devices."""

    full_size: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    devices: list[Device] = field(default_factory=list)

    @property
    def has_more(self) -> bool:
        """Check if further pages exist after this one."""
        if self.full_size is None:
            return False
        return (self.offset or 0) + len(self.devices) < self.full_size


# ============================================
# Datanode Entities
# ============================================

@dataclass
class Datanode:
    """A value to be written to a device datanode.

    The datanode is created on the server the first time it is written.
    ``value`` accepts an int, float, bool, str or DatanodeValue and is stored
    as a DatanodeValue. When ``timestamp`` is unset, ``ts`` reports the
    current time.
    """

    name: str = Restricted(FieldConstraints.MAX_NAME_LENGTH)
    value: DatanodeValue = None  # type: ignore[assignment]
    path: Optional[str] = Restricted(
        FieldConstraints.MAX_PATH_LENGTH, default=None, restrict=restrict_path
    )
    timestamp: Optional[int] = None
    unit: Optional[str] = Restricted(FieldConstraints.MAX_UNIT_LENGTH, default=None)
    data_type: Optional[DataType] = None
    href: Optional[str] = None

    def __post_init__(self) -> None:
        self.value = DatanodeValue.of(self.value)
        if self.data_type is not None and not isinstance(self.data_type, DataType):
            self.data_type = DataType(self.data_type)

    @property
    def ts(self) -> int:
        """The timestamp to send: the one set, or now in epoch milliseconds."""
        return self.timestamp if self.timestamp is not None else current_millis()


@dataclass
class DatanodeInfo:
    """A datanode as listed by the server for a device."""

    name: Optional[str] = None
    path: Optional[str] = None
    unit: Optional[str] = None
    data_type: Optional[DataType] = None
    href: Optional[str] = None


@dataclass
class DatanodeList:
    """One page of datanodes of a device."""

    full_size: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    datanodes: list[DatanodeInfo] = field(default_factory=list)

    @property
    def has_more(self) -> bool:
        """Check if further pages exist after this one."""
        if self.full_size is None:
            return False
        return (self.offset or 0) + len(self.datanodes) < self.full_size


@dataclass
class ValuePoint:
    """One timestamped value of a datanode (wire fields `v` and `ts`)."""

    value: Optional[Scalar] = None
    timestamp: Optional[int] = None


@dataclass
class DatanodeRead:
    """A datanode with the values returned by a read query."""

    name: Optional[str] = None
    path: Optional[str] = None
    unit: Optional[str] = None
    data_type: Optional[DataType] = None
    values: list[ValuePoint] = field(default_factory=list)


@dataclass
class DatanodeReadResult:
    """Result of a read query: the query URL and one block per datanode."""

    href: Optional[str] = None
    datanode_reads: list[DatanodeRead] = field(default_factory=list)


@dataclass
class WriteResult:
    """Outcome of writing to a single datanode."""

    href: Optional[str] = None
    written_count: Optional[int] = None


@dataclass
class WriteDatanodesResult:
    """Outcome of a write request."""

    total_written: Optional[int] = None
    write_results: list[WriteResult] = field(default_factory=list)


# ============================================
# Quota Entities
# ============================================

@dataclass(frozen=True)
class Quota:
    """Account-wide quota snapshot."""

    total_devices: Optional[int] = None
    max_number_of_devices: Optional[int] = None
    max_datanode_per_device: Optional[int] = None
    used_storage_size: Optional[int] = None
    max_storage_size: Optional[int] = None


@dataclass(frozen=True)
class DeviceQuota:
    """Per-device quota snapshot."""

    total_request_today: Optional[int] = None
    max_read_request_per_day: Optional[int] = None
    number_of_datanodes: Optional[int] = None
    storage_size: Optional[int] = None
    device_id: Optional[str] = None
