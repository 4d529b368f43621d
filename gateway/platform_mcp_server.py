import asyncio
import json
import logging
from typing import Any, Callable, Dict, List

from makefun import create_function
from mcp.server.fastmcp import FastMCP

from gateway.config.api_endpoint import APIEndpoint
from gateway.config.parameter_spec import ParameterSpec, ParamType
from gateway.dispatcher import Gateway
from gateway.errors import GatewayError, UpstreamError
from gateway.service_registry import ServiceRegistry

# =============================================================================
# MCP服务器实现
# =============================================================================

_PY_TYPES = {
    ParamType.INT: int,
}


def _signature_part(param: ParameterSpec) -> str:
    py_type = _PY_TYPES.get(param.type, str)
    if param.required:
        return f"{param.name}: {py_type.__name__}"
    return f"{param.name}: {py_type.__name__} = {param.default!r}"


def build_signature(tool_name: str, endpoint: APIEndpoint) -> str:
    """必填参数在前，其余按声明顺序，默认值取自端点定义"""
    required = [_signature_part(p) for p in endpoint.parameters if p.required]
    optional = [_signature_part(p) for p in endpoint.parameters if not p.required]
    return f"{tool_name}({', '.join(required + optional)}) -> str"


def _error_text(error: GatewayError) -> str:
    if isinstance(error, UpstreamError):
        payload: Dict[str, Any] = {
            "error": error.code,
            "status": error.status,
            "body": error.body.decode("utf-8", errors="replace"),
        }
    else:
        payload = error.to_dict()
    return json.dumps(payload, ensure_ascii=False, indent=2)


def make_tool_function(tool_name: str, endpoint: APIEndpoint, gateway: Gateway) -> Callable:
    """为端点生成带真实签名的异步工具函数"""

    async def handler_func(**kwargs):
        # 工具参数已是 Python 值，统一转回字符串交给校验器
        raw = {k: str(v) for k, v in kwargs.items() if v is not None}
        try:
            response = await gateway.handle(endpoint.name, raw)
        except GatewayError as e:
            gateway.logger.warning(f"Tool {tool_name} failed: {e.code}")
            return _error_text(e)
        return response.body.decode("utf-8", errors="replace")

    tool_func = create_function(build_signature(tool_name, endpoint), handler_func)
    tool_func.__doc__ = endpoint.description
    return tool_func


class PlatformMCPServer:
    """平台集成MCP服务器"""

    def __init__(self, gateway: Gateway, name: str = "cyphers-gateway"):
        self.mcp = FastMCP(name)
        self.gateway = gateway
        self.registry: ServiceRegistry = gateway.registry
        self.logger = logging.getLogger("mcp_server")
        self._setup_base_resources()
        self._create_service_tools()

    def describe_services(self) -> str:
        """列出所有可用的平台服务"""
        services = []
        for name in self.registry.list_services():
            service_def = self.registry.get_service(name)
            services.append(f"## {service_def.name}")
            services.append(f"**类别**: {service_def.category}")
            services.append(f"**描述**: {service_def.description}")
            services.append(f"**端点数量**: {len(service_def.endpoints)}")
            services.append("")

        return "\n".join(services) if services else "没有可用的服务"

    def describe_service(self, service_name: str) -> str:
        """获取特定服务的详细信息"""
        service_def = self.registry.get_service(service_name)
        if not service_def:
            return f"服务 '{service_name}' 不存在"

        info = [
            f"# {service_def.name} 服务信息",
            f"**类别**: {service_def.category}",
            f"**描述**: {service_def.description}",
            "",
            "## 可用端点:"
        ]

        for endpoint_name, endpoint in service_def.endpoints.items():
            info.extend([
                f"### {endpoint_name}",
                f"- **路径**: {endpoint.path}",
                f"- **方法**: {endpoint.method}",
                f"- **描述**: {endpoint.description}",
            ])
            for param_name, summary in endpoint.describe_parameters().items():
                info.append(f"  - `{param_name}`: {summary}")
            info.append("")

        return "\n".join(info)

    def _setup_base_resources(self):
        """设置基础资源"""

        @self.mcp.resource("platform://services")
        def list_services() -> str:
            return self.describe_services()

        @self.mcp.resource("platform://service/{service_name}")
        def get_service_info(service_name: str) -> str:
            return self.describe_service(service_name)

    def tool_names(self) -> List[str]:
        return [self._tool_name(name) for name in self.gateway.endpoints]

    def _tool_name(self, endpoint_name: str) -> str:
        return f"{self.gateway.service.name}_{endpoint_name}"

    def _create_service_tools(self):
        """为服务的每个端点注册 MCP 工具"""
        for endpoint_name, endpoint in self.gateway.endpoints.items():
            tool_name = self._tool_name(endpoint_name)
            self.mcp.tool()(make_tool_function(tool_name, endpoint, self.gateway))

    async def _serve(self, transport: str):
        async with self.gateway:
            if transport == "stdio":
                await self.mcp.run_stdio_async()
            elif transport == "sse":
                await self.mcp.run_sse_async()
            else:
                await self.mcp.run_streamable_http_async()

    def run(self, transport: str = "streamable-http", host: str = "0.0.0.0", port: int = 8055):
        """启动MCP服务器"""
        self.logger.info(f"Starting MCP server with {len(self.gateway.endpoints)} tools ({transport})")
        self.mcp.settings.port = port
        self.mcp.settings.host = host
        asyncio.run(self._serve(transport))
