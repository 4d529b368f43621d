"""
Pytest fixtures for gateway tests
"""

import asyncio
from typing import Any, List, Optional

import pytest
from aiohttp import web

from gateway.config.service_config import ServiceConfig
from gateway.cyphers_api import build_cyphers_api
from gateway.http_server import create_app
from main import build_gateway

API_KEY = "secret-key"


class StubUpstream:
    """Records every request and answers with a configurable reply"""

    def __init__(self):
        self.requests: List[web.Request] = []
        self.status = 200
        self.json_body: Any = {"rows": []}
        self.raw_body: Optional[bytes] = None
        self.delay = 0.0
        self.redirect_to: Optional[str] = None
        self.server = None

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.redirect_to is not None and request.path != self.redirect_to:
            raise web.HTTPFound(self.redirect_to)
        if self.raw_body is not None:
            return web.Response(status=self.status, body=self.raw_body, content_type="text/plain")
        return web.json_response(self.json_body, status=self.status)

    @property
    def last(self) -> web.Request:
        return self.requests[-1]


@pytest.fixture
def cyphers():
    """Cyphers service definition"""
    return build_cyphers_api()


@pytest.fixture
async def upstream(aiohttp_server):
    """Stub upstream API served on a random local port"""
    stub = StubUpstream()
    app = web.Application()
    app.router.add_route("GET", "/{tail:.*}", stub.handle)
    stub.server = await aiohttp_server(app)
    return stub


@pytest.fixture
def config(upstream):
    return ServiceConfig(
        name="cyphers",
        base_url=str(upstream.server.make_url("/cy")),
        api_key=API_KEY,
        timeout=2.0,
    )


@pytest.fixture
async def gateway(config):
    """Gateway with an open upstream session"""
    gw = build_gateway(config)
    async with gw:
        yield gw


@pytest.fixture
async def client(aiohttp_client, config):
    """Test client for the HTTP surface"""
    return await aiohttp_client(create_app(build_gateway(config), "/cy"))


@pytest.fixture
def offline_config():
    """Config for tests that never reach the upstream"""
    return ServiceConfig(name="cyphers", base_url="http://upstream.invalid/cy", api_key=API_KEY)
