import logging
from typing import Dict, List, Union

from aiohttp import web

from gateway.dispatcher import Gateway
from gateway.errors import BadRequest, GatewayError, UpstreamError

GATEWAY_KEY = web.AppKey("gateway", Gateway)

logger = logging.getLogger("http_server")


def collect_input(request: web.Request) -> Dict[str, Union[str, List[str]]]:
    """查询参数 + 路由参数；重复的查询键保留为列表"""
    raw: Dict[str, Union[str, List[str]]] = {}
    for key in dict.fromkeys(request.query.keys()):
        values = request.query.getall(key)
        raw[key] = values[0] if len(values) == 1 else values
    # 路由参数优先，不能被同名查询参数覆盖
    raw.update(request.match_info)
    return raw


def _relay(status: int, body: bytes, content_type) -> web.Response:
    return web.Response(
        status=status,
        body=body,
        headers={"Content-Type": content_type or "application/json"},
    )


def _make_handler(endpoint_name: str):
    async def handler(request: web.Request) -> web.Response:
        gateway = request.app[GATEWAY_KEY]
        try:
            upstream = await gateway.handle(endpoint_name, collect_input(request))
        except UpstreamError as e:
            return _relay(e.status, e.body, e.content_type)
        except BadRequest as e:
            return web.json_response(e.to_dict(), status=e.status)
        except GatewayError as e:
            logger.warning(f"{endpoint_name} failed: {e.code} {e}")
            return web.json_response(e.to_dict(), status=e.status)
        return _relay(upstream.status, upstream.body, upstream.content_type)

    handler.__name__ = f"handle_{endpoint_name}"
    return handler


async def health(request: web.Request) -> web.Response:
    gateway = request.app[GATEWAY_KEY]
    return web.json_response({
        "status": "ok",
        "service": gateway.service.name,
        "endpoints": len(gateway.endpoints),
    })


async def _upstream_session(app: web.Application):
    """应用生命周期内共享一个上游连接池"""
    async with app[GATEWAY_KEY]:
        yield


def create_app(gateway: Gateway, route_prefix: str = "/cy") -> web.Application:
    app = web.Application()
    app[GATEWAY_KEY] = gateway

    prefix = route_prefix.rstrip("/")
    for name, endpoint in gateway.endpoints.items():
        app.router.add_get(f"{prefix}/{endpoint.path}", _make_handler(name), name=name)
    app.router.add_get("/health", health, name="health")

    app.cleanup_ctx.append(_upstream_session)
    logger.info(f"Mounted {len(gateway.endpoints)} endpoints under {prefix or '/'}")
    return app


def run(gateway: Gateway, host: str, port: int, route_prefix: str = "/cy"):
    web.run_app(create_app(gateway, route_prefix), host=host, port=port)
