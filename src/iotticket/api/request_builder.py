"""Request construction for the IoT-Ticket API.

RequestBuilder turns each facade call into a complete HttpRequest: method,
full URL (base URL + resource + dynamic segments + query), headers with Basic
authentication, and a JSON body for writes.

Query strings are percent-encoded with spaces as ``%20``. Commas and slashes
stay literal so ``datanodes=a,/path/b`` reaches the server as written.

Resources:
    devices/                    register (POST), list (GET)
    devices/{id}/               device details
    devices/{id}/datanodes      datanodes of a device
    process/write/{id}/         write datanode values
    process/read/{id}           read datanode values
    quota/all/                  account quota
    quota/{id}/                 device quota
"""
import json
import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote, urlencode

from ..adapters.field_mapper import ResponseMapper
from ..domain.constraints import is_valid_device_id
from ..domain.entities import Datanode, Device, Order
from ..domain.ports import HttpRequest
from .config import ClientConfig

logger = logging.getLogger(__name__)

DEVICES_RESOURCE = "devices/"
QUOTA_ALL_RESOURCE = "quota/all/"

DEFAULT_PAGE_LIMIT = 10
DEFAULT_PAGE_OFFSET = 0

DEFAULT_READ_LIMIT = 1000
MAX_READ_LIMIT = 10000
MAX_READ_CRITERIA = 10


def encode_query(params: Sequence[tuple[str, Any]]) -> str:
    """Urlencode ``params`` in order, spaces as %20, commas and slashes literal."""
    return urlencode(list(params), quote_via=quote, safe=",/")


def clamp_read_limit(limit: int) -> int:
    """Cap a read limit at MAX_READ_LIMIT."""
    return min(limit, MAX_READ_LIMIT)


class RequestBuilder:
    """Builds HttpRequests from a ClientConfig.

    The builder holds a config value and never changes it; every request it
    builds carries the credentials of that config.
    """

    def __init__(self, config: ClientConfig, mapper: Optional[ResponseMapper] = None):
        self.config = config
        self.mapper = mapper or ResponseMapper()

    # ----------------------------------------
    # Low-Level Helpers
    # ----------------------------------------

    def _headers(self, with_body: bool) -> dict[str, str]:
        headers = {
            "Authorization": self.config.authorization_header,
            "Accept": "application/json",
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _url(self, resource: str, params: Optional[Sequence[tuple[str, Any]]] = None) -> str:
        url = f"{self.config.base_url}{resource}"
        if params:
            url = f"{url}?{encode_query(params)}"
        return url

    def _segment(self, device_id: str) -> str:
        if not is_valid_device_id(device_id):
            logger.debug(f"Device id {device_id!r} is not 32 alphanumeric characters")
        return quote(device_id, safe="")

    def _get(self, resource: str, params: Optional[Sequence[tuple[str, Any]]] = None) -> HttpRequest:
        return HttpRequest(
            method="GET",
            url=self._url(resource, params),
            headers=self._headers(with_body=False),
        )

    def _post(self, resource: str, payload: Any) -> HttpRequest:
        return HttpRequest(
            method="POST",
            url=self._url(resource),
            headers=self._headers(with_body=True),
            body=json.dumps(payload).encode("utf-8"),
        )

    @staticmethod
    def _page(limit: int, offset: int) -> list[tuple[str, Any]]:
        return [("limit", limit), ("offset", offset)]

    # ----------------------------------------
    # Devices
    # ----------------------------------------

    def register_device(self, device: Device) -> HttpRequest:
        return self._post(DEVICES_RESOURCE, self.mapper.encode_device(device))

    def get_device(self, device_id: str) -> HttpRequest:
        return self._get(f"{DEVICES_RESOURCE}{self._segment(device_id)}/")

    def get_devices(
        self,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = DEFAULT_PAGE_OFFSET,
    ) -> HttpRequest:
        return self._get(DEVICES_RESOURCE, self._page(limit, offset))

    def get_datanodes(
        self,
        device_id: str,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = DEFAULT_PAGE_OFFSET,
    ) -> HttpRequest:
        return self._get(
            f"{DEVICES_RESOURCE}{self._segment(device_id)}/datanodes",
            self._page(limit, offset),
        )

    # ----------------------------------------
    # Process Data
    # ----------------------------------------

    def write_datanodes(self, device_id: str, datanodes: Sequence[Datanode]) -> HttpRequest:
        """Body is a JSON array; every datanode without a timestamp gets the current time."""
        return self._post(
            f"process/write/{self._segment(device_id)}/",
            self.mapper.encode_datanodes(list(datanodes)),
        )

    def read_datanodes(
        self,
        device_id: str,
        criteria: Sequence[str],
        from_date: Optional[int] = None,
        to_date: Optional[int] = None,
        limit: int = DEFAULT_READ_LIMIT,
        order: Order | str = Order.ASCENDING,
    ) -> HttpRequest:
        """Build a read query.

        Args:
            device_id: Device to read from
            criteria: Datanode names or full paths. Only the first 10 are sent.
            from_date: Epoch millis the read starts from. Needed for to_date.
            to_date: Epoch millis the read ends at
            limit: Values per datanode, capped at 10000
            order: Timestamp ordering of the values
        """
        if len(criteria) > MAX_READ_CRITERIA:
            logger.info(
                f"Reading only the first {MAX_READ_CRITERIA} of {len(criteria)} datanodes"
            )
        if to_date is not None and from_date is None:
            logger.debug("todate without fromdate; the server may ignore it")

        params: list[tuple[str, Any]] = [
            ("datanodes", ",".join(list(criteria)[:MAX_READ_CRITERIA])),
        ]
        if from_date is not None:
            params.append(("fromdate", int(from_date)))
        if to_date is not None:
            params.append(("todate", int(to_date)))
        params.append(("limit", clamp_read_limit(limit)))
        params.append(("order", Order(order).value))

        return self._get(f"process/read/{self._segment(device_id)}", params)

    # ----------------------------------------
    # Quota
    # ----------------------------------------

    def get_all_quota(self) -> HttpRequest:
        return self._get(QUOTA_ALL_RESOURCE)

    def get_device_quota(self, device_id: str) -> HttpRequest:
        return self._get(f"quota/{self._segment(device_id)}/")
