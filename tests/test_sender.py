"""Behavioral tests for the delivery client."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from ycmon.output.exceptions import DeliveryError, MetadataMalformedError
from ycmon.output.models import Batch, MetricKind, MetricPoint
from ycmon.output.sender import DeliveryClient

from conftest import WRITE_PATH


def _batch() -> Batch:
    return Batch(metrics=(
        MetricPoint(name="cpu_usage_idle", labels={"host": "vm1"}, timestamp="2023-06-06T11:10:50Z", value=99.1),
    ))


def _credentials(token: str = "tok") -> MagicMock:
    credentials = MagicMock()
    credentials.ensure_valid = AsyncMock(return_value=token)
    return credentials


def _client(session, url, credentials=None, **kwargs) -> DeliveryClient:
    return DeliveryClient(
        session=session,
        endpoint_url=url,
        service=kwargs.pop("service", "custom"),
        credentials=credentials or _credentials(),
        folder_id=kwargs.pop("folder_id", "b1gfolder"),
        **kwargs,
    )


class TestPublish:

    @pytest.mark.asyncio
    async def test_request_shape(self, cloud):
        """Query parameters, headers and newline-terminated JSON body."""
        async with aiohttp.ClientSession() as session:
            result = await _client(session, cloud.url(WRITE_PATH)).publish(_batch())

        assert result.success
        assert result.status_code == 200
        assert len(cloud.writes) == 1

        request = cloud.writes[0]
        assert request["query"] == {"folderId": "b1gfolder", "service": "custom"}
        assert request["headers"]["Content-Type"] == "application/json"
        assert request["headers"]["Authorization"] == "Bearer tok"
        assert request["raw"].endswith(b"}\n")
        assert request["json"] == {
            "metrics": [
                {"name": "cpu_usage_idle", "labels": {"host": "vm1"}, "ts": "2023-06-06T11:10:50Z", "value": 99.1},
            ]
        }

    @pytest.mark.asyncio
    async def test_custom_service(self, cloud):
        async with aiohttp.ClientSession() as session:
            await _client(session, cloud.url(WRITE_PATH), service="compute").publish(_batch())

        assert cloud.writes[0]["query"]["service"] == "compute"

    @pytest.mark.asyncio
    async def test_optional_wire_fields_sent_when_set(self, cloud):
        batch = Batch(
            metrics=(MetricPoint(name="x", labels={}, timestamp="", value=1.0, kind=MetricKind.COUNTER),),
            timestamp="2023-06-06T11:10:50Z",
            labels={"env": "prod"},
        )
        async with aiohttp.ClientSession() as session:
            await _client(session, cloud.url(WRITE_PATH)).publish(batch)

        assert cloud.writes[0]["json"] == {
            "ts": "2023-06-06T11:10:50Z",
            "labels": {"env": "prod"},
            "metrics": [{"name": "x", "labels": {}, "type": "COUNTER", "value": 1.0}],
        }

    @pytest.mark.asyncio
    async def test_any_body_with_200_is_success(self, cloud):
        cloud.write_body = "<html>not json at all</html>"

        async with aiohttp.ClientSession() as session:
            result = await _client(session, cloud.url(WRITE_PATH)).publish(_batch())
        assert result.success

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, reason", [(404, "Not Found"), (500, "Internal Server Error")])
    async def test_error_status_is_delivery_error(self, cloud, status, reason):
        cloud.write_status = status

        async with aiohttp.ClientSession() as session:
            with pytest.raises(DeliveryError) as exc_info:
                await _client(session, cloud.url(WRITE_PATH)).publish(_batch())

        assert exc_info.value.status_code == status
        assert str(status) in str(exc_info.value)
        assert reason in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_failure_has_no_status(self):
        url = f"http://127.0.0.1:{unused_port()}{WRITE_PATH}"

        async with aiohttp.ClientSession() as session:
            with pytest.raises(DeliveryError) as exc_info:
                await _client(session, url).publish(_batch())

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_timeout_is_delivery_error(self):
        async def slow(request):
            await asyncio.sleep(2)
            return web.Response(text="late")

        app = web.Application()
        app.router.add_post(WRITE_PATH, slow)
        server = TestServer(app)
        await server.start_server()
        try:
            async with aiohttp.ClientSession() as session:
                client = _client(session, str(server.make_url(WRITE_PATH)), timeout=0.2)
                with pytest.raises(DeliveryError) as exc_info:
                    await client.publish(_batch())
        finally:
            await server.close()

        assert exc_info.value.status_code is None
        assert "timeout" in str(exc_info.value).lower()

    @pytest.mark.asyncio
    async def test_token_failure_aborts_before_post(self, cloud):
        credentials = MagicMock()
        credentials.ensure_valid = AsyncMock(side_effect=MetadataMalformedError("http://md/token", "bad token"))

        async with aiohttp.ClientSession() as session:
            with pytest.raises(MetadataMalformedError):
                await _client(session, cloud.url(WRITE_PATH), credentials=credentials).publish(_batch())

        assert cloud.writes == []

    @pytest.mark.asyncio
    async def test_clock_is_passed_to_credentials(self, cloud):
        credentials = _credentials()
        sentinel = object()

        async with aiohttp.ClientSession() as session:
            client = _client(session, cloud.url(WRITE_PATH), credentials=credentials, clock=lambda: sentinel)
            await client.publish(_batch())

        credentials.ensure_valid.assert_awaited_once_with(sentinel)
