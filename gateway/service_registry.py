import logging
from typing import Dict, List, Optional
from gateway.config.api_endpoint import APIEndpoint
from gateway.config.service_definition import ServiceDefinition
from gateway.config.service_config import ServiceConfig
from .platform_api_client import PlatformAPIClient


class ServiceRegistry:
    """服务注册中心：启动时填充，之后只读"""

    def __init__(self):
        self.services: Dict[str, ServiceDefinition] = {}
        self.clients: Dict[str, PlatformAPIClient] = {}
        self.logger = logging.getLogger("service_registry")

    def register_service(
            self,
            service_def: ServiceDefinition,
            config: ServiceConfig
    ):
        """注册服务"""
        if not service_def.enabled:
            self.logger.info(f"Service {service_def.name} is disabled, skipping")
            return
        if service_def.name in self.services:
            raise ValueError(f"Service {service_def.name} is already registered")

        self.services[service_def.name] = service_def
        self.clients[service_def.name] = PlatformAPIClient(config)
        self.logger.info(f"Registered service: {service_def.name} ({len(service_def.endpoints)} endpoints)")

    def get_service(self, name: str) -> Optional[ServiceDefinition]:
        """获取服务定义"""
        return self.services.get(name)

    def get_client(self, name: str) -> Optional[PlatformAPIClient]:
        """获取API客户端"""
        return self.clients.get(name)

    def get_endpoint(self, service_name: str, endpoint_name: str) -> Optional[APIEndpoint]:
        service = self.services.get(service_name)
        if service is None:
            return None
        return service.endpoints.get(endpoint_name)

    def list_services(self) -> List[str]:
        """列出所有可用服务"""
        return list(self.services.keys())
