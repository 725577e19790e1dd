#!/usr/bin/env python3
"""Unit tests for the IoTTicketClient facade.

Tests cover:
    - Every operation builds the right request and maps the response
    - Non-2xx responses raise the translated ServerError
    - Malformed 2xx bodies raise ResponseDecodeError
    - Transport failures propagate as NetworkError
    - Executor ownership and the callback-style dispatch()

Note: IoTTicketClient composes an IHttpExecutor. The tests inject an
      AsyncMock executor rather than patching aiohttp.
"""
import asyncio
import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.iotticket.api.client import IoTTicketClient
from src.iotticket.api.config import ClientConfig
from src.iotticket.domain.entities import (
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
from src.iotticket.domain.ports import HttpResponse, IHttpExecutor
from src.iotticket.exceptions import (
    ConnectionError,
    NetworkError,
    QuotaViolationError,
    ResponseDecodeError,
    UncaughtServerError,
)

BASE = "https://my.iot-ticket.com/api/v1/"
DEVICE_ID = "4e0f17895ae04c57a6d24baaae08b6b3"


def _response(status: int = 200, payload=None, raw: bytes | None = None) -> HttpResponse:
    body = raw if raw is not None else json.dumps(payload).encode("utf-8")
    return HttpResponse(status=status, body=body)


def _device_json(i: int = 0) -> dict:
    return {
        "name": f"device-{i}",
        "manufacturer": "ACME",
        "deviceId": f"{i:032d}",
        "href": f"{BASE}devices/{i:032d}",
        "createdAt": "2017-04-18T10:30:00Z",
    }


@pytest.fixture
def config():
    return ClientConfig(BASE, "user", "secret")


@pytest.fixture
def executor():
    """Create a mock IHttpExecutor."""
    mock = MagicMock(spec=IHttpExecutor)
    mock.execute = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def client(config, executor):
    return IoTTicketClient(config, executor=executor)


def _sent(executor):
    """The HttpRequest passed to the executor."""
    return executor.execute.call_args[0][0]


# ============================================
# Device Operations
# ============================================

class TestDeviceOperations:
    """Test device endpoints through the facade."""

    @pytest.mark.asyncio
    async def test_get_devices(self, client, executor):
        """Three devices with fullSize 3 should give a three-device page."""
        executor.execute.return_value = _response(payload={
            "items": [_device_json(i) for i in range(3)],
            "fullSize": 3,
            "limit": 10,
            "offset": 0,
        })

        result = await client.get_devices(limit=10, offset=0)

        assert isinstance(result, DevicesList)
        assert len(result.devices) == 3
        assert result.full_size == 3
        assert _sent(executor).url == f"{BASE}devices/?limit=10&offset=0"

    @pytest.mark.asyncio
    async def test_register_device(self, client, executor):
        executor.execute.return_value = _response(
            status=201,
            payload={**_device_json(), "description": "Testing", "type": "Wapice"},
        )

        device = await client.register_device(
            Device(name="device-0", manufacturer="ACME", type="Wapice", device_description="Testing")
        )

        request = _sent(executor)
        assert request.method == "POST"
        assert json.loads(request.body)["description"] == "Testing"
        assert device.is_registered
        assert device.device_description == "Testing"

    @pytest.mark.asyncio
    async def test_get_device(self, client, executor):
        executor.execute.return_value = _response(payload=_device_json(7))

        device = await client.get_device(f"{7:032d}")

        assert isinstance(device, Device)
        assert device.device_id == f"{7:032d}"
        assert _sent(executor).url == f"{BASE}devices/{7:032d}/"

    @pytest.mark.asyncio
    async def test_get_datanodes(self, client, executor):
        executor.execute.return_value = _response(payload={
            "items": [{"name": "latitude", "dataType": "double"}],
            "fullSize": 1,
            "limit": 5,
            "offset": 0,
        })

        result = await client.get_datanodes(DEVICE_ID, limit=5)

        assert isinstance(result, DatanodeList)
        assert result.datanodes[0].name == "latitude"
        assert _sent(executor).url == f"{BASE}devices/{DEVICE_ID}/datanodes?limit=5&offset=0"


# ============================================
# Process Data Operations
# ============================================

class TestProcessData:
    """Test write and read endpoints."""

    @pytest.mark.asyncio
    async def test_write_datanodes(self, client, executor):
        executor.execute.return_value = _response(payload={
            "totalWritten": 2,
            "writeResults": [
                {"href": f"{BASE}process/read/{DEVICE_ID}?datanodes=latitude", "writtenCount": 1},
                {"href": f"{BASE}process/read/{DEVICE_ID}?datanodes=/Swift/node", "writtenCount": 1},
            ],
        })

        result = await client.write_datanodes(
            DEVICE_ID,
            [Datanode("latitude", 61.49), Datanode("node", 7, path="/Swift", data_type="long")],
        )

        assert isinstance(result, WriteDatanodesResult)
        assert result.total_written == 2
        assert len(result.write_results) == 2
        body = json.loads(_sent(executor).body)
        assert [d["name"] for d in body] == ["latitude", "node"]

    @pytest.mark.asyncio
    async def test_write_datanode_alias(self, client, executor):
        executor.execute.return_value = _response(payload={"totalWritten": 1, "writeResults": []})
        result = await client.write_datanode(DEVICE_ID, [Datanode("a", 1)])
        assert result.total_written == 1

    @pytest.mark.asyncio
    async def test_read_datanodes(self, client, executor):
        executor.execute.return_value = _response(payload={
            "href": "h",
            "datanodeReads": [{"name": "latitude", "values": [{"v": "1", "ts": 2}]}],
        })

        result = await client.read_datanodes(
            DEVICE_ID,
            ["latitude"],
            from_date=1,
            to_date=2,
            limit=20000,
            order=Order.DESCENDING,
        )

        assert isinstance(result, DatanodeReadResult)
        assert result.datanode_reads[0].values[0].timestamp == 2
        assert _sent(executor).url == (
            f"{BASE}process/read/{DEVICE_ID}"
            "?datanodes=latitude&fromdate=1&todate=2&limit=10000&order=descending"
        )


# ============================================
# Quota Operations
# ============================================

class TestQuota:
    @pytest.mark.asyncio
    async def test_get_all_quota(self, client, executor):
        executor.execute.return_value = _response(payload={"totalDevices": 2, "maxNumberOfDevices": 10})

        quota = await client.get_all_quota()

        assert isinstance(quota, Quota)
        assert quota.total_devices == 2
        assert _sent(executor).url == f"{BASE}quota/all/"

    @pytest.mark.asyncio
    async def test_get_device_quota(self, client, executor):
        executor.execute.return_value = _response(payload={"deviceId": DEVICE_ID, "storageSize": 5})

        quota = await client.get_device_quota(DEVICE_ID)

        assert isinstance(quota, DeviceQuota)
        assert quota.storage_size == 5


# ============================================
# Failure Paths
# ============================================

class TestFailures:
    """Test that every failure surfaces as exactly one typed error."""

    @pytest.mark.asyncio
    async def test_server_error_translated(self, client, executor):
        executor.execute.return_value = _response(
            status=403, payload={"code": 8002, "description": "Quota violation"}
        )

        with pytest.raises(QuotaViolationError) as exc:
            await client.get_all_quota()

        assert exc.value.status_code == 403
        assert exc.value.endpoint == f"{BASE}quota/all/"

    @pytest.mark.asyncio
    async def test_unparsable_error_body(self, client, executor):
        executor.execute.return_value = _response(status=502, raw=b"Bad Gateway")

        with pytest.raises(UncaughtServerError):
            await client.get_devices()

    @pytest.mark.asyncio
    async def test_malformed_success_body(self, client, executor):
        """A broken 2xx body should raise, not return None."""
        executor.execute.return_value = _response(status=200, raw=b"<html>")

        with pytest.raises(ResponseDecodeError) as exc:
            await client.get_devices()

        assert exc.value.result_type == "DevicesList"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, client, executor):
        executor.execute.side_effect = ConnectionError("down", host="my.iot-ticket.com")

        with pytest.raises(NetworkError):
            await client.get_device(DEVICE_ID)

    @pytest.mark.asyncio
    async def test_no_retry(self, client, executor):
        executor.execute.return_value = _response(status=500, payload={"code": 8000, "description": "boom"})

        with pytest.raises(Exception):
            await client.get_all_quota()

        assert executor.execute.call_count == 1


# ============================================
# Lifecycle and Callback Style
# ============================================

class TestLifecycle:
    @pytest.mark.asyncio
    async def test_injected_executor_not_closed(self, config, executor):
        async with IoTTicketClient(config, executor=executor):
            pass
        executor.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_default_executor_created_and_closed(self, config):
        with patch("src.iotticket.api.client.AiohttpExecutor") as executor_cls:
            executor_cls.return_value.close = AsyncMock()
            async with IoTTicketClient(config) as client:
                assert client._executor is executor_cls.return_value

            executor_cls.assert_called_once_with(timeout=config.timeout)
            executor_cls.return_value.close.assert_awaited_once()

    def test_config_is_read_only(self, client):
        with pytest.raises(AttributeError):
            client.config = ClientConfig(BASE, "x", "y")


class TestDispatch:
    """Test the completion-callback form."""

    @pytest.mark.asyncio
    async def test_completion_on_success(self, client, executor):
        executor.execute.return_value = _response(payload={"totalDevices": 4})
        completion = MagicMock()

        task = client.dispatch(client.get_all_quota(), completion)
        result = await task

        completion.assert_called_once_with(result, None)
        assert result.total_devices == 4

    @pytest.mark.asyncio
    async def test_completion_on_error(self, client, executor):
        executor.execute.return_value = _response(status=400, payload={"code": 8003, "description": "bad"})
        completion = MagicMock()

        result = await client.dispatch(client.get_all_quota(), completion)

        assert result is None
        value, error = completion.call_args[0]
        assert value is None
        assert error.server_code == 8003

    @pytest.mark.asyncio
    async def test_completion_on_foreign_executor_error(self, client, executor):
        """Non-library exceptions still reach the completion."""
        executor.execute.side_effect = RuntimeError("boom")
        completion = MagicMock()

        result = await client.dispatch(client.get_all_quota(), completion)

        assert result is None
        value, error = completion.call_args[0]
        assert value is None
        assert isinstance(error, RuntimeError)

    @pytest.mark.asyncio
    async def test_completion_on_invalid_argument(self, client, executor):
        completion = MagicMock()

        await client.dispatch(client.read_datanodes(DEVICE_ID, ["a"], order="bogus"), completion)

        value, error = completion.call_args[0]
        assert value is None
        assert isinstance(error, ValueError)
        executor.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_completion_is_logged(self, client, executor, caplog):
        executor.execute.return_value = _response(payload={"totalDevices": 1})

        def completion(result, error):
            raise KeyError("callback bug")

        task = client.dispatch(client.get_all_quota(), completion)
        with pytest.raises(KeyError):
            await task
        await asyncio.sleep(0)

        assert "Completion callback failed" in caplog.text
        assert task not in client._pending

    @pytest.mark.asyncio
    async def test_dispatch_does_not_block(self, client, executor):
        gate = asyncio.Event()

        async def slow_execute(request):
            await gate.wait()
            return _response(payload={"totalDevices": 1})

        executor.execute.side_effect = slow_execute
        completion = MagicMock()

        task = client.dispatch(client.get_all_quota(), completion)
        await asyncio.sleep(0)
        completion.assert_not_called()

        gate.set()
        await task
        completion.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
