import logging
from typing import Mapping

from gateway.errors import BadRequest, UnknownEndpoint, ValidationFailed
from gateway.platform_api_client import UpstreamResponse
from gateway.service_registry import ServiceRegistry
from gateway.validator import RawValue, validate


class Gateway:
    """
    单个服务的请求入口

    校验 -> 组装 URL -> 一次上游 GET -> 原样返回。
    校验失败时抛出 BadRequest，且不会访问上游。
    """

    def __init__(self, registry: ServiceRegistry, service_name: str):
        service = registry.get_service(service_name)
        client = registry.get_client(service_name)
        if service is None or client is None:
            raise ValueError(f"Service {service_name} is not registered")
        self.registry = registry
        self.service = service
        self.client = client
        self.logger = logging.getLogger("gateway")

    async def __aenter__(self):
        await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def endpoints(self):
        return self.service.endpoints

    async def handle(self, endpoint_name: str, raw: Mapping[str, RawValue]) -> UpstreamResponse:
        endpoint = self.registry.get_endpoint(self.service.name, endpoint_name)
        if endpoint is None:
            raise UnknownEndpoint(f"Endpoint {endpoint_name} is not registered for {self.service.name}")

        try:
            request = validate(raw, endpoint)
        except ValidationFailed as e:
            raise BadRequest(endpoint_name, e.violations) from e

        self.logger.info(f"Forwarding {endpoint_name}")
        return await self.client.call_api(endpoint, request)
