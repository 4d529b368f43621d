
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from gateway.config.api_endpoint import APIEndpoint
from gateway.config.service_config import ServiceConfig
from gateway.errors import UpstreamError, UpstreamTimeout, UpstreamUnreachable
from gateway.request_builder import build_path, build_url
from gateway.validator import NormalizedRequest

# =============================================================================
# 上游调用层
# =============================================================================


@dataclass(frozen=True)
class UpstreamResponse:
    """上游响应：状态码 + 原始响应体，不做解析"""
    status: int
    body: bytes
    content_type: Optional[str] = None


class PlatformAPIClient:
    """上游 API 客户端：每次调用只发一次 GET，不重试、不缓存"""

    def __init__(self, config: ServiceConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self.logger = logging.getLogger(f"api_client.{config.name}")

    async def __aenter__(self):
        """异步上下文管理器入口"""
        connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        self.session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={
                "User-Agent": "Cyphers-Gateway/1.0",
                "Accept": "application/json",
            }
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器退出"""
        if self.session:
            await self.session.close()
            self.session = None

    async def call_api(self, endpoint: APIEndpoint, request: NormalizedRequest) -> UpstreamResponse:
        """调用API端点"""
        if self.session is None:
            raise RuntimeError("PlatformAPIClient must be used inside 'async with'")

        url = build_url(self.config.base_url, endpoint, request, self.config.api_key)
        # 只记录路径，URL 中含有 apikey
        path = build_path(endpoint, request)

        try:
            # 3xx 不跟随，按非 2xx 原样透传
            async with self.session.get(url, allow_redirects=False) as response:
                result = await self._handle_response(response)
        except asyncio.TimeoutError as e:
            self.logger.warning(f"Upstream timeout after {self.config.timeout}s for {endpoint.name} ({path})")
            raise UpstreamTimeout(f"Upstream did not answer within {self.config.timeout}s") from e
        except aiohttp.ClientError as e:
            self.logger.warning(f"Upstream unreachable for {endpoint.name} ({path}): {type(e).__name__}")
            raise UpstreamUnreachable(f"Upstream unreachable: {type(e).__name__}") from e

        self.logger.debug(f"{endpoint.name} ({path}) -> {result.status}")
        return result

    async def _handle_response(self, response: aiohttp.ClientResponse) -> UpstreamResponse:
        """处理API响应：非 2xx 原样抛出给网关透传"""
        body = await response.read()
        content_type = response.headers.get("Content-Type")

        if not 200 <= response.status < 300:
            self.logger.warning(f"Upstream error {response.status} for {response.url.path}")
            raise UpstreamError(response.status, body, content_type)

        return UpstreamResponse(status=response.status, body=body, content_type=content_type)
