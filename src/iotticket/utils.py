"""Helpers for building client call arguments."""

from datetime import datetime, timezone, tzinfo
from typing import Optional

from .domain.entities import DeviceAttribute

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def date_to_timestamp(date: str, tz: tzinfo = timezone.utc) -> Optional[int]:
    """Convert "yyyy-MM-dd HH:mm:ss" to milliseconds since the Epoch.

    The date is interpreted in ``tz`` (UTC by default). Returns None when the
    string does not match the format.

    Example:
        >>> date_to_timestamp("2016-02-21 00:00:00")
        1456012800000
    """
    try:
        parsed = datetime.strptime(date, TIMESTAMP_FORMAT)
    except (TypeError, ValueError):
        return None
    return int(parsed.replace(tzinfo=tz).timestamp() * 1000)


def device_attribute(key: str, value: str) -> DeviceAttribute:
    """Make a device attribute. Key and value read back truncated to 255 chars."""
    return DeviceAttribute(key=key, value=value)
