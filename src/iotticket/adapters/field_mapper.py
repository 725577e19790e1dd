"""Field mapper adapters for transforming between wire JSON and domain entities.

These adapters implement IFieldMapper and encapsulate all field transformation
logic: camelCase to snake_case, renamed fields (``description`` to
``device_description``, ``items`` to ``devices``/``datanodes``, ``v``/``ts`` to
``value``/``timestamp``) and tolerance for missing optional fields.

A field that is absent or null maps to None. A field that is present with the
wrong JSON type is a malformed payload and raises ResponseDecodeError.
"""

import json
import logging
from typing import Any, Optional, TypeVar

from ..domain.entities import (
    DataType,
    Datanode,
    DatanodeInfo,
    DatanodeList,
    DatanodeRead,
    DatanodeReadResult,
    Device,
    DeviceAttribute,
    DeviceQuota,
    DevicesList,
    Quota,
    ValuePoint,
    WriteDatanodesResult,
    WriteResult,
)
from ..domain.ports import IFieldMapper
from ..exceptions import InvalidDatanodeValueError, ResponseDecodeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_JSON_TYPE_NAMES = {
    str: "string",
    int: "integer",
    bool: "boolean",
    list: "array",
    dict: "object",
}


# ============================================
# Field Helpers
# ============================================

def _field(raw: dict[str, Any], key: str, expected: type | tuple[type, ...]) -> Any:
    """Read an optional field, checking its JSON type when present.

    ``bool`` is never accepted where an integer is expected.
    """
    value = raw.get(key)
    if value is None:
        return None
    expected_types = expected if isinstance(expected, tuple) else (expected,)
    if isinstance(value, bool) and bool not in expected_types:
        ok = False
    else:
        ok = isinstance(value, expected_types)
    if not ok:
        names = " or ".join(_JSON_TYPE_NAMES.get(t, t.__name__) for t in expected_types)
        raise ResponseDecodeError(
            f"Field '{key}' should be {names}, got {type(value).__name__}",
            details={"field": key},
        )
    return value


def _objects(raw: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Read an optional array of JSON objects (absent means empty)."""
    items = _field(raw, key, list) or []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ResponseDecodeError(
                f"Entry {index} of '{key}' should be object, got {type(item).__name__}",
                details={"field": key, "index": index},
            )
    return items


def _parse_data_type(value: Optional[str]) -> Optional[DataType]:
    """Parse a data type name; unknown names are logged and mapped to None."""
    if value is None:
        return None
    try:
        return DataType(value.lower())
    except ValueError:
        logger.warning(f"Unknown datanode dataType {value!r}, leaving it unset")
        return None


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


# ============================================
# Device Mappers
# ============================================

class DeviceFieldMapper(IFieldMapper[Device]):
    """Maps device JSON to Device entities and back.

    The wire field ``description`` becomes ``device_description``. Server
    assigned fields (deviceId, href, createdAt) are read but never sent.
    """

    def map_to_entity(self, raw: dict[str, Any]) -> Device:
        attributes = None
        if raw.get("attributes") is not None:
            attributes = [
                DeviceAttribute(
                    key=_field(item, "key", str),
                    value=_field(item, "value", str),
                )
                for item in _objects(raw, "attributes")
            ]

        return Device(
            name=_field(raw, "name", str),
            manufacturer=_field(raw, "manufacturer", str),
            type=_field(raw, "type", str),
            device_description=_field(raw, "description", str),  # API uses "description"
            attributes=attributes,
            device_id=_field(raw, "deviceId", str),
            href=_field(raw, "href", str),
            created_at=_field(raw, "createdAt", str),
        )

    def map_to_payload(self, device: Device) -> dict[str, Any]:
        attributes = device.attributes
        return _drop_none({
            "name": device.name,
            "manufacturer": device.manufacturer,
            "type": device.type,
            "description": device.device_description,
            "attributes": (
                [{"key": a.key, "value": a.value} for a in attributes]
                if attributes is not None
                else None
            ),
        })


class DevicesListFieldMapper(IFieldMapper[DevicesList]):
    """Maps a device page; the wire array ``items`` becomes ``devices``."""

    def __init__(self, device_mapper: Optional[DeviceFieldMapper] = None):
        self.device_mapper = device_mapper or DeviceFieldMapper()

    def map_to_entity(self, raw: dict[str, Any]) -> DevicesList:
        return DevicesList(
            full_size=_field(raw, "fullSize", int),
            limit=_field(raw, "limit", int),
            offset=_field(raw, "offset", int),
            devices=[self.device_mapper.map_to_entity(item) for item in _objects(raw, "items")],
        )


# ============================================
# Datanode Mappers
# ============================================

class DatanodeFieldMapper(IFieldMapper[Datanode]):
    """Maps Datanode entities to the write payload, and server echoes back."""

    def map_to_entity(self, raw: dict[str, Any]) -> Datanode:
        try:
            value = _field(raw, "v", (str, int, float, bool))
            return Datanode(
                name=_field(raw, "name", str),
                value=value,
                path=_field(raw, "path", str),
                timestamp=_field(raw, "ts", int),
                unit=_field(raw, "unit", str),
                data_type=_parse_data_type(_field(raw, "dataType", str)),
                href=_field(raw, "href", str),
            )
        except InvalidDatanodeValueError as e:
            raise ResponseDecodeError(
                "Datanode is missing a usable 'v' field",
                details={"field": "v"},
                cause=e,
            )

    def map_to_payload(self, datanode: Datanode) -> dict[str, Any]:
        return _drop_none({
            "name": datanode.name,
            "path": datanode.path,
            "v": datanode.value.to_wire(),
            "ts": datanode.ts,
            "unit": datanode.unit,
            "dataType": datanode.data_type.value if datanode.data_type else None,
        })


class DatanodeInfoFieldMapper(IFieldMapper[DatanodeInfo]):
    def map_to_entity(self, raw: dict[str, Any]) -> DatanodeInfo:
        return DatanodeInfo(
            name=_field(raw, "name", str),
            path=_field(raw, "path", str),
            unit=_field(raw, "unit", str),
            data_type=_parse_data_type(_field(raw, "dataType", str)),
            href=_field(raw, "href", str),
        )


class DatanodeListFieldMapper(IFieldMapper[DatanodeList]):
    """Maps a datanode page; the wire array ``items`` becomes ``datanodes``."""

    def __init__(self, info_mapper: Optional[DatanodeInfoFieldMapper] = None):
        self.info_mapper = info_mapper or DatanodeInfoFieldMapper()

    def map_to_entity(self, raw: dict[str, Any]) -> DatanodeList:
        return DatanodeList(
            full_size=_field(raw, "fullSize", int),
            limit=_field(raw, "limit", int),
            offset=_field(raw, "offset", int),
            datanodes=[self.info_mapper.map_to_entity(item) for item in _objects(raw, "items")],
        )


class DatanodeReadResultFieldMapper(IFieldMapper[DatanodeReadResult]):
    """Maps the nested read payload.

    Shape:
        {"href": "...",
         "datanodeReads": [
             {"name": "...", "path": "...", "unit": "...", "dataType": "...",
              "values": [{"v": ..., "ts": ...}, ...]},
             ...]}

    Values keep the order in which the server returned them.
    """

    def map_to_entity(self, raw: dict[str, Any]) -> DatanodeReadResult:
        return DatanodeReadResult(
            href=_field(raw, "href", str),
            datanode_reads=[self._map_read(block) for block in _objects(raw, "datanodeReads")],
        )

    def _map_read(self, raw: dict[str, Any]) -> DatanodeRead:
        return DatanodeRead(
            name=_field(raw, "name", str),
            path=_field(raw, "path", str),
            unit=_field(raw, "unit", str),
            data_type=_parse_data_type(_field(raw, "dataType", str)),
            values=[
                ValuePoint(
                    value=_field(point, "v", (str, int, float, bool)),
                    timestamp=_field(point, "ts", int),
                )
                for point in _objects(raw, "values")
            ],
        )


class WriteDatanodesResultFieldMapper(IFieldMapper[WriteDatanodesResult]):
    def map_to_entity(self, raw: dict[str, Any]) -> WriteDatanodesResult:
        return WriteDatanodesResult(
            total_written=_field(raw, "totalWritten", int),
            write_results=[
                WriteResult(
                    href=_field(item, "href", str),
                    written_count=_field(item, "writtenCount", int),
                )
                for item in _objects(raw, "writeResults")
            ],
        )


# ============================================
# Quota Mappers
# ============================================

class QuotaFieldMapper(IFieldMapper[Quota]):
    def map_to_entity(self, raw: dict[str, Any]) -> Quota:
        return Quota(
            total_devices=_field(raw, "totalDevices", int),
            max_number_of_devices=_field(raw, "maxNumberOfDevices", int),
            max_datanode_per_device=_field(raw, "maxDataNodePerDevice", int),
            used_storage_size=_field(raw, "usedStorageSize", int),
            max_storage_size=_field(raw, "maxStorageSize", int),
        )


class DeviceQuotaFieldMapper(IFieldMapper[DeviceQuota]):
    def map_to_entity(self, raw: dict[str, Any]) -> DeviceQuota:
        return DeviceQuota(
            total_request_today=_field(raw, "totalRequestToday", int),
            max_read_request_per_day=_field(raw, "maxReadRequestPerDay", int),
            number_of_datanodes=_field(raw, "numberOfDataNodes", int),
            storage_size=_field(raw, "storageSize", int),
            device_id=_field(raw, "deviceId", str),
        )


# ============================================
# Response Mapper
# ============================================

class ResponseMapper:
    """Decodes response bodies into the result type of an operation.

    Example:
        mapper = ResponseMapper()
        devices = mapper.decode(body, DevicesList)
    """

    def __init__(self) -> None:
        self.device_mapper = DeviceFieldMapper()
        self.datanode_mapper = DatanodeFieldMapper()
        self._mappers: dict[type, IFieldMapper] = {
            Device: self.device_mapper,
            DevicesList: DevicesListFieldMapper(self.device_mapper),
            Datanode: self.datanode_mapper,
            DatanodeList: DatanodeListFieldMapper(),
            DatanodeReadResult: DatanodeReadResultFieldMapper(),
            WriteDatanodesResult: WriteDatanodesResultFieldMapper(),
            Quota: QuotaFieldMapper(),
            DeviceQuota: DeviceQuotaFieldMapper(),
        }

    def mapper_for(self, result_type: type[T]) -> IFieldMapper[T]:
        try:
            return self._mappers[result_type]
        except KeyError:
            raise TypeError(f"No field mapper registered for {result_type.__name__}")

    def decode(self, body: bytes | str, result_type: type[T]) -> T:
        """Parse ``body`` as a JSON object and map it to ``result_type``.

        Raises:
            ResponseDecodeError: If the body is not JSON, not an object, or a
                field has the wrong type.
        """
        mapper = self.mapper_for(result_type)
        type_name = result_type.__name__
        preview = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body

        try:
            raw = json.loads(body)
        except (ValueError, UnicodeDecodeError, RecursionError) as e:
            raise ResponseDecodeError(
                f"Response body for {type_name} is not valid JSON",
                result_type=type_name,
                response_body=preview,
                cause=e,
            )

        if not isinstance(raw, dict):
            raise ResponseDecodeError(
                f"Response body for {type_name} should be a JSON object, got {type(raw).__name__}",
                result_type=type_name,
                response_body=preview,
            )

        try:
            return mapper.map_to_entity(raw)
        except ResponseDecodeError as e:
            raise ResponseDecodeError(
                f"Malformed {type_name} payload: {e.message}",
                result_type=type_name,
                response_body=preview,
                details=dict(e.details),
                cause=e,
            )

    def encode_device(self, device: Device) -> dict[str, Any]:
        return self.device_mapper.map_to_payload(device)

    def encode_datanodes(self, datanodes: list[Datanode]) -> list[dict[str, Any]]:
        return [self.datanode_mapper.map_to_payload(d) for d in datanodes]
