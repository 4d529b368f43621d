from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from .api_endpoint import APIEndpoint


@dataclass(frozen=True)
class ServiceDefinition:
    """服务定义：一个上游 API 及其全部端点（启动后只读）"""
    name: str
    category: str
    endpoints: Mapping[str, APIEndpoint] = field(default_factory=dict)
    description: str = ""
    enabled: bool = True

    def __post_init__(self):
        for key, endpoint in self.endpoints.items():
            if key != endpoint.name:
                raise ValueError(f"Endpoint registered as {key} is named {endpoint.name}")
        object.__setattr__(self, "endpoints", MappingProxyType(dict(self.endpoints)))

    @classmethod
    def of(cls, name: str, category: str, endpoints: Iterable[APIEndpoint], **kwargs) -> "ServiceDefinition":
        table = {}
        for endpoint in endpoints:
            if endpoint.name in table:
                raise ValueError(f"Duplicate endpoint name {endpoint.name} in service {name}")
            table[endpoint.name] = endpoint
        return cls(name=name, category=category, endpoints=table, **kwargs)
