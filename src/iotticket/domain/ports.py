"""Port interfaces for the client pipeline.

Ports define the contracts between the API facade and the infrastructure.
Following the Hexagonal Architecture (Ports and Adapters) pattern:
- Ports are interfaces defined in the domain layer
- Adapters implement these ports in the adapters layer
- The facade depends only on ports, not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class HttpRequest:
    """A fully built request: nothing is added to it on the way out.

    ``url`` is already percent-encoded and must be sent verbatim.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def endpoint(self) -> str:
        """URL without the query string, for logs and error details."""
        return self.url.split("?", 1)[0]


@dataclass(frozen=True)
class HttpResponse:
    """Status code and raw body of a completed round trip."""

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class IHttpExecutor(ABC):
    """Port for performing a single HTTP round trip.

    Implementations return an HttpResponse for every status code and raise a
    NetworkError subclass when no response was received. They never retry.
    """

    @abstractmethod
    async def execute(self, request: HttpRequest) -> HttpResponse:
        """Send ``request`` and return the server's response."""
        ...

    async def close(self) -> None:
        """Release transport resources. Default: nothing to release."""
        return None


class IFieldMapper(ABC, Generic[T]):
    """Port for mapping between wire dictionaries and a domain entity.

    Every mapper decodes (map_to_entity). Only mappers of entities that are
    sent in request bodies (Device, Datanode) override map_to_payload; the
    rest are decode-only and keep the default, which raises
    NotImplementedError.
    """

    @abstractmethod
    def map_to_entity(self, raw: dict[str, Any]) -> T:
        """Transform a decoded JSON object into the entity."""
        ...

    def map_to_payload(self, entity: T) -> dict[str, Any]:
        """Transform the entity into its JSON request representation.

        Raises:
            NotImplementedError: If this mapper is decode-only.
        """
        raise NotImplementedError(f"{type(self).__name__} does not encode payloads")
