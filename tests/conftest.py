"""Shared fixtures: a fake metadata service and ingestion endpoint on a local aiohttp server."""

from __future__ import annotations

import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from ycmon.output import OutputConfig

FOLDER_PATH = "/computeMetadata/v1/instance/vendor/folder-id"
TOKEN_PATH = "/computeMetadata/v1/instance/service-accounts/default/token"
WRITE_PATH = "/monitoring/v2/data/write"


class FakeCloud:
    """Metadata service + Monitoring endpoint, recording every request."""

    def __init__(self):
        self.folder_id = "b1gfolder"
        self.folder_status = 200
        self.token_document: dict | str = {"access_token": "t1", "expires_in": 3600, "token_type": "Bearer"}
        self.token_status = 200
        self.write_status = 200
        self.write_body = "{}"

        self.folder_calls = 0
        self.token_calls = 0
        self.writes: list[dict] = []
        self.base_url = ""

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + path

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(FOLDER_PATH, self._folder)
        app.router.add_get(TOKEN_PATH, self._token)
        app.router.add_post(WRITE_PATH, self._write)
        return app

    async def _folder(self, request: web.Request) -> web.Response:
        self.folder_calls += 1
        if request.headers.get("Metadata-Flavor") != "Google":
            return web.Response(status=403)
        return web.Response(status=self.folder_status, text=self.folder_id)

    async def _token(self, request: web.Request) -> web.Response:
        self.token_calls += 1
        if request.headers.get("Metadata-Flavor") != "Google":
            return web.Response(status=403)
        body = self.token_document
        if not isinstance(body, str):
            body = json.dumps(body)
        return web.Response(status=self.token_status, text=body, content_type="application/json")

    async def _write(self, request: web.Request) -> web.Response:
        raw = await request.read()
        self.writes.append({
            "query": dict(request.query),
            "headers": dict(request.headers),
            "raw": raw,
            "json": json.loads(raw),
        })
        return web.Response(status=self.write_status, text=self.write_body)


@pytest.fixture(autouse=True)
def no_proxy_env(monkeypatch):
    """The output trusts proxy variables; keep local test traffic direct."""
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)


@pytest_asyncio.fixture
async def cloud():
    fake = FakeCloud()
    server = TestServer(fake.make_app())
    await server.start_server()
    fake.base_url = str(server.make_url("/"))
    yield fake
    await server.close()


@pytest.fixture
def output_config(cloud) -> OutputConfig:
    return OutputConfig(
        timeout="5s",
        endpoint=cloud.url(WRITE_PATH),
        metadata_token_url=cloud.url(TOKEN_PATH),
        metadata_folder_url=cloud.url(FOLDER_PATH),
    )
