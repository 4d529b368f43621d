from datetime import datetime
from typing import Any, List, Tuple
from urllib.parse import quote, urlencode

from gateway.config.api_endpoint import APIEndpoint
from gateway.config.parameter_spec import ListStyle
from gateway.validator import NormalizedRequest

CREDENTIAL_PARAM = "apikey"
UPSTREAM_DATE_FORMAT = "%Y%m%dT%H%M"


def _to_text(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime(UPSTREAM_DATE_FORMAT)
    return str(value)


def build_path(endpoint: APIEndpoint, request: NormalizedRequest) -> str:
    """替换路径模板中的占位符（逐段百分号编码）"""
    path = endpoint.path
    for name, value in request.path_params.items():
        path = path.replace("{" + name + "}", quote(_to_text(value), safe=""))
    return path


def build_query(endpoint: APIEndpoint, request: NormalizedRequest) -> List[Tuple[str, str]]:
    pairs = []
    for param in endpoint.query_parameters:
        if param.name not in request.query_params:
            continue
        value = request.query_params[param.name]
        if param.is_list:
            if param.list_style == ListStyle.REPEAT:
                pairs.extend((param.name, _to_text(item)) for item in value)
            else:
                pairs.append((param.name, ",".join(_to_text(item) for item in value)))
        else:
            pairs.append((param.name, _to_text(value)))
    return pairs


def build_url(base_url: str, endpoint: APIEndpoint, request: NormalizedRequest, credential: str) -> str:
    """
    组装上游 URL：base + 路径 + 查询串，API Key 始终追加在最后

    调用方输入无法覆盖 apikey：只有声明过的参数会进入查询串。
    """
    pairs = build_query(endpoint, request)
    pairs.append((CREDENTIAL_PARAM, credential))
    query = urlencode(pairs, safe=",", quote_via=quote)
    return f"{base_url.rstrip('/')}/{build_path(endpoint, request)}?{query}"
