"""Adapters layer - Infrastructure implementations of the domain ports.

- AiohttpExecutor: aiohttp implementation of IHttpExecutor
- ResponseMapper: decodes response bodies through the per-entity field mappers
"""

from .aiohttp_executor import AiohttpExecutor
from .field_mapper import (
    DatanodeFieldMapper,
    DeviceFieldMapper,
    ResponseMapper,
)

__all__ = [
    "AiohttpExecutor",
    "DatanodeFieldMapper",
    "DeviceFieldMapper",
    "ResponseMapper",
]
