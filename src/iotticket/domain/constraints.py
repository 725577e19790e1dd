"""Field restrictions imposed by the IoT-Ticket API.

Restrictions are applied when a field is read, never when it is written: the
stored value stays intact and the accessor returns the restricted view. Lengths
are counted in characters (Python str code points), not encoded bytes.
"""

import re
from typing import Any, Optional


class FieldConstraints:
    """Static limits from the IoT-Ticket API documentation."""

    MAX_NAME_LENGTH = 100
    MAX_DESCRIPTION_LENGTH = 255
    MAX_ATTRIBUTE_LENGTH = 255
    MAX_NUMBER_OF_ATTRIBUTES = 50
    MAX_PATH_LENGTH = 1000
    MAX_PATH_DEPTH = 10
    MAX_UNIT_LENGTH = 10
    DEVICE_ID_LENGTH = 32


_DEVICE_ID_PATTERN = re.compile(rf"^[A-Za-z0-9]{{{FieldConstraints.DEVICE_ID_LENGTH}}}$")


def restrict_string(value: Optional[str], max_length: int) -> Optional[str]:
    """Return the first ``max_length`` characters of ``value`` (None stays None)."""
    if value is None or len(value) <= max_length:
        return value
    return value[:max_length]


def restrict_list(items: Optional[list], max_items: int) -> Optional[list]:
    """Return the first ``max_items`` entries of ``items`` as a new list."""
    if items is None:
        return None
    return list(items[:max_items])


def restrict_path(path: Optional[str]) -> Optional[str]:
    """Limit a datanode path to MAX_PATH_DEPTH components and MAX_PATH_LENGTH chars.

    A leading slash does not count as a component and is preserved. Neither
    does a single trailing slash.
    """
    if path is None:
        return None
    prefix = "/" if path.startswith("/") else ""
    body = path[len(prefix):]
    if body.endswith("/"):
        body = body[:-1]
    components = body.split("/")
    if len(components) > FieldConstraints.MAX_PATH_DEPTH:
        path = prefix + "/".join(components[:FieldConstraints.MAX_PATH_DEPTH])
    return restrict_string(path, FieldConstraints.MAX_PATH_LENGTH)


def is_valid_device_id(device_id: str) -> bool:
    """Check whether ``device_id`` has the 32 alphanumeric character shape."""
    return bool(_DEVICE_ID_PATTERN.match(device_id or ""))


class Restricted:
    """Dataclass field descriptor that truncates on read.

    Usage:
        @dataclass
        class Device:
            name: str = Restricted(FieldConstraints.MAX_NAME_LENGTH)

    The raw value is stored under ``_<name>`` on the instance. A descriptor
    created without ``default`` makes the dataclass field required.
    """

    _NO_DEFAULT = object()

    def __init__(self, max_length: int, *, default: Any = _NO_DEFAULT, restrict=None):
        self.max_length = max_length
        self._default = default
        self._restrict = restrict or (lambda value: restrict_string(value, self.max_length))

    def __set_name__(self, owner, name: str) -> None:
        self._name = name
        self._attr = f"_{name}"

    def __get__(self, instance, owner=None):
        if instance is None:
            # dataclasses treats AttributeError on class access as "no default"
            if self._default is self._NO_DEFAULT:
                raise AttributeError(self._name)
            return self._default
        return self._restrict(getattr(instance, self._attr))

    def __set__(self, instance, value) -> None:
        setattr(instance, self._attr, value)

    def raw(self, instance) -> Any:
        """Return the stored, unrestricted value."""
        return getattr(instance, self._attr)


def raw_value(instance, field_name: str) -> Any:
    """Return the untruncated value behind a Restricted field of ``instance``."""
    for klass in type(instance).__mro__:
        descriptor = klass.__dict__.get(field_name)
        if isinstance(descriptor, Restricted):
            return descriptor.raw(instance)
    return getattr(instance, field_name)
