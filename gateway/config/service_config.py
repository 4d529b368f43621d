import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from gateway.errors import ConfigError

DEFAULT_BASE_URL = "https://api.neople.co.kr/cy"


@dataclass(frozen=True)
class ServiceConfig:
    """平台服务配置"""
    name: str
    base_url: str
    api_key: str = field(repr=False)
    timeout: float = 10.0  # 单次上游调用的总超时（秒）
    host: str = "0.0.0.0"
    port: int = 8055
    route_prefix: str = "/cy"
    transport: str = "http"  # http | stdio | sse | streamable-http

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, name: str = "cyphers") -> "ServiceConfig":
        """从环境变量读取配置，缺少 CY_APIKEY 视为启动失败"""
        env = os.environ if environ is None else environ

        api_key = env.get("CY_APIKEY", "").strip()
        if not api_key:
            raise ConfigError("CY_APIKEY is not set")

        try:
            timeout = float(env.get("GATEWAY_TIMEOUT", "10"))
            port = int(env.get("GATEWAY_PORT", "8055"))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e
        if timeout <= 0:
            raise ConfigError("GATEWAY_TIMEOUT must be positive")

        prefix = "/" + env.get("GATEWAY_ROUTE_PREFIX", "/cy").strip("/")

        return cls(
            name=name,
            base_url=env.get("CY_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            api_key=api_key,
            timeout=timeout,
            host=env.get("GATEWAY_HOST", "0.0.0.0"),
            port=port,
            route_prefix=prefix.rstrip("/"),
            transport=env.get("GATEWAY_TRANSPORT", "http"),
        )
