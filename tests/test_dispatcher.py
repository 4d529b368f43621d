"""
Tests for the gateway dispatcher against a stub upstream
"""

import pytest

from gateway.config.service_config import ServiceConfig
from gateway.errors import (
    BadRequest,
    UnknownEndpoint,
    UpstreamError,
    UpstreamTimeout,
    UpstreamUnreachable,
)
from main import build_gateway

API_KEY = "secret-key"


@pytest.mark.asyncio
async def test_success_relayed_unchanged(gateway, upstream):
    upstream.json_body = {"rows": [{"playerId": "p1", "nickname": "foo"}]}

    response = await gateway.handle("players", {"nickname": "foo"})

    assert response.status == 200
    assert response.body == b'{"rows": [{"playerId": "p1", "nickname": "foo"}]}'
    assert response.content_type.startswith("application/json")


@pytest.mark.asyncio
async def test_forwarded_request_shape(gateway, upstream, config):
    await gateway.handle("player_matches", {"playerId": "p1", "gameTypeId": "normal", "next": "cursor=="})

    request = upstream.last
    assert request.path == "/cy/players/p1/matches"
    assert list(request.query.items()) == [
        ("gameTypeId", "normal"),
        ("limit", "10"),
        ("next", "cursor=="),
        ("apikey", config.api_key),
    ]


@pytest.mark.asyncio
async def test_missing_parameter_never_reaches_upstream(gateway, upstream):
    with pytest.raises(BadRequest) as exc_info:
        await gateway.handle("players", {})

    assert [v.parameter for v in exc_info.value.violations] == ["nickname"]
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_upstream_error_is_pass_through(gateway, upstream):
    upstream.status = 500
    upstream.raw_body = b"internal failure"

    with pytest.raises(UpstreamError) as exc_info:
        await gateway.handle("characters", {})

    assert exc_info.value.status == 500
    assert exc_info.value.body == b"internal failure"
    assert len(upstream.requests) == 1


@pytest.mark.asyncio
async def test_upstream_not_retried(gateway, upstream):
    upstream.status = 503

    with pytest.raises(UpstreamError):
        await gateway.handle("match", {"matchId": "m1"})

    assert len(upstream.requests) == 1


@pytest.mark.asyncio
async def test_upstream_timeout(upstream):
    upstream.delay = 1.0
    config = ServiceConfig(
        name="cyphers",
        base_url=str(upstream.server.make_url("/cy")),
        api_key=API_KEY,
        timeout=0.1,
    )

    async with build_gateway(config) as gateway:
        with pytest.raises(UpstreamTimeout):
            await gateway.handle("characters", {})


@pytest.mark.asyncio
async def test_upstream_unreachable(unused_tcp_port):
    config = ServiceConfig(name="cyphers", base_url=f"http://127.0.0.1:{unused_tcp_port}/cy", api_key=API_KEY)

    async with build_gateway(config) as gateway:
        with pytest.raises(UpstreamUnreachable) as exc_info:
            await gateway.handle("characters", {})

    assert API_KEY not in str(exc_info.value)


@pytest.mark.asyncio
async def test_unknown_endpoint(gateway):
    with pytest.raises(UnknownEndpoint):
        await gateway.handle("auctions", {})


@pytest.mark.asyncio
async def test_client_requires_open_session(config):
    gateway = build_gateway(config)

    with pytest.raises(RuntimeError):
        await gateway.handle("characters", {})


@pytest.mark.asyncio
async def test_upstream_redirect_relayed_not_followed(gateway, upstream):
    upstream.redirect_to = "/cy/elsewhere"

    with pytest.raises(UpstreamError) as exc_info:
        await gateway.handle("characters", {})

    assert exc_info.value.status == 302
    assert [r.path for r in upstream.requests] == ["/cy/characters"]


@pytest.mark.asyncio
@pytest.mark.parametrize("endpoint_name, raw", [
    ("match", {"matchId": ".."}),
    ("player", {"playerId": "."}),
    ("character_ranking", {"characterId": "..", "rankingType": "exp"}),
])
async def test_dot_segment_path_values_rejected(gateway, upstream, endpoint_name, raw):
    with pytest.raises(BadRequest) as exc_info:
        await gateway.handle(endpoint_name, raw)

    assert exc_info.value.violations[0].kind == "constraint_violation"
    assert upstream.requests == []
