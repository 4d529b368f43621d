"""
Cyphers Gateway - 带参数校验的上游 API 代理

- 对外暴露固定的类型化端点，校验参数后转发到 Neople Cyphers API
- API Key 只在服务端注入，调用方不可见
- GATEWAY_TRANSPORT=http 时以 aiohttp 提供 HTTP 路由，否则以 MCP 工具形式提供同一组端点
"""

import logging
import sys

from gateway.config.service_config import ServiceConfig
from gateway.cyphers_api import build_cyphers_api
from gateway.dispatcher import Gateway
from gateway.errors import ConfigError
from gateway.service_registry import ServiceRegistry

MCP_TRANSPORTS = ("stdio", "sse", "streamable-http")


def build_gateway(config: ServiceConfig) -> Gateway:
    """注册 Cyphers 服务并返回其网关"""
    registry = ServiceRegistry()
    service_def = build_cyphers_api()
    registry.register_service(service_def, config)
    return Gateway(registry, service_def.name)


# =============================================================================
# 主程序入口
# =============================================================================
def main():
    """主程序"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    try:
        config = ServiceConfig.from_env()
    except ConfigError as e:
        logging.error("配置错误，无法启动：%s", e)
        sys.exit(1)

    gateway = build_gateway(config)

    if config.transport == "http":
        from gateway.http_server import run
        logging.info("启动 HTTP 网关：%s:%d%s -> %s", config.host, config.port, config.route_prefix, config.base_url)
        run(gateway, config.host, config.port, config.route_prefix)
    elif config.transport in MCP_TRANSPORTS:
        from gateway.platform_mcp_server import PlatformMCPServer
        server = PlatformMCPServer(gateway)
        server.run(transport=config.transport, host=config.host, port=config.port)
    else:
        logging.error("未知的 GATEWAY_TRANSPORT：%s", config.transport)
        sys.exit(1)


if __name__ == "__main__":
    main()
