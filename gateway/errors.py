"""
错误分类

- 参数错误（MissingParameter / TypeMismatch / ConstraintViolation）：全部收集后以 BadRequest 返回，不访问上游
- 上游错误（UpstreamUnreachable / UpstreamTimeout / UpstreamError）：不重试，直接返回给调用方
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


# =============================================================================
# 参数校验违规
# =============================================================================

@dataclass(frozen=True)
class Violation:
    parameter: str
    message: str

    kind = "violation"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "parameter": self.parameter, "message": self.message}


@dataclass(frozen=True)
class MissingParameter(Violation):
    kind = "missing_parameter"


@dataclass(frozen=True)
class TypeMismatch(Violation):
    expected: str = ""

    kind = "type_mismatch"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["expected"] = self.expected
        return data


@dataclass(frozen=True)
class ConstraintViolation(Violation):
    allowed: Sequence[Any] = ()

    kind = "constraint_violation"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["allowed"] = list(self.allowed)
        return data


class ValidationFailed(Exception):
    """校验器抛出，携带全部违规项"""

    def __init__(self, violations: List[Violation]):
        self.violations = list(violations)
        names = ", ".join(v.parameter for v in self.violations)
        super().__init__(f"{len(self.violations)} invalid parameter(s): {names}")


# =============================================================================
# 网关错误（对外）
# =============================================================================

class GatewayError(Exception):
    status = 500
    code = "gateway_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class BadRequest(GatewayError):
    status = 400
    code = "bad_request"

    def __init__(self, endpoint: str, violations: List[Violation]):
        self.endpoint = endpoint
        self.violations = list(violations)
        super().__init__(f"Invalid request for {endpoint}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["violations"] = [v.to_dict() for v in self.violations]
        return data


class UnknownEndpoint(GatewayError):
    status = 404
    code = "unknown_endpoint"


class UpstreamUnreachable(GatewayError):
    status = 502
    code = "upstream_unreachable"


class UpstreamTimeout(GatewayError):
    status = 504
    code = "upstream_timeout"


class UpstreamError(GatewayError):
    """上游返回非 2xx：状态码与响应体原样透传"""

    code = "upstream_error"

    def __init__(self, status: int, body: bytes, content_type: Optional[str] = None):
        self.status = status
        self.body = body
        self.content_type = content_type
        super().__init__(f"Upstream returned {status}")


class ConfigError(Exception):
    """启动配置缺失或非法，进程无法启动"""
