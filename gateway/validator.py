"""
参数校验：填充默认值、转换类型、检查约束，收集全部违规后再失败
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from gateway.config.api_endpoint import APIEndpoint
from gateway.config.parameter_spec import Location, ParameterSpec, ParamType
from gateway.errors import (
    ConstraintViolation,
    MissingParameter,
    TypeMismatch,
    ValidationFailed,
    Violation,
)

RawValue = Union[str, Sequence[str]]

# upstream accepts these, e.g. 20180901T0000 or 2018-09-01 00:00
DATE_FORMATS = (
    "%Y%m%dT%H%M",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y%m%d",
    "%Y-%m-%d",
)

MAX_DATE_SPAN = timedelta(days=90)

DOT_SEGMENTS = (".", "..")

_INTEGER = re.compile(r"-?[0-9]+", re.ASCII)

logger = logging.getLogger("gateway.validator")


@dataclass(frozen=True)
class NormalizedRequest:
    """校验后的参数（已填默认值、已转换类型），按位置分为路径参数与查询参数"""
    endpoint: str
    path_params: Mapping[str, Any] = field(default_factory=dict)
    query_params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "path_params", MappingProxyType(dict(self.path_params)))
        object.__setattr__(self, "query_params", MappingProxyType(dict(self.query_params)))

    def __contains__(self, name: str) -> bool:
        return name in self.path_params or name in self.query_params

    def __getitem__(self, name: str) -> Any:
        if name in self.path_params:
            return self.path_params[name]
        return self.query_params[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self[name] if name in self else default

    def as_dict(self) -> Dict[str, Any]:
        values = dict(self.path_params)
        values.update(self.query_params)
        return values


def parse_date(value: str) -> Optional[datetime]:
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    # 上游按本地时间处理，丢弃时区
    return parsed.replace(tzinfo=None)


def _present(raw: Mapping[str, RawValue], name: str) -> Optional[List[str]]:
    """取出原始值；未提供或全为空串时返回 None"""
    value = raw.get(name)
    if value is None:
        return None
    values = [value] if isinstance(value, str) else list(value)
    values = [v for v in values if v is not None and v.strip() != ""]
    return values or None


def _split_list(values: List[str]) -> Tuple[str, ...]:
    tokens = []
    for value in values:
        tokens.extend(t.strip() for t in value.split(","))
    return tuple(t for t in tokens if t)


def _coerce(param: ParameterSpec, values: List[str], violations: List[Violation]) -> Any:
    """转换单个参数；失败时记录违规并返回 None"""
    if param.is_list:
        items = _split_list(values)
        if not items:
            violations.append(MissingParameter(param.name, f"{param.name} contains no items"))
            return None
        return items

    if len(values) > 1:
        violations.append(TypeMismatch(param.name, f"{param.name} accepts a single value", param.type.value))
        return None
    value = values[0].strip() if param.location == Location.QUERY else values[0]

    if param.location == Location.PATH and value in DOT_SEGMENTS:
        # 点段会被 URL 规范化，改变上游路径
        violations.append(ConstraintViolation(
            param.name, f"{param.name} cannot be a dot segment", ["not . or .."],
        ))
        return None

    if param.type == ParamType.INT:
        if not _INTEGER.fullmatch(value):
            violations.append(TypeMismatch(param.name, f"{param.name} must be an integer, got {value!r}", "int"))
            return None
        return int(value)

    if param.type == ParamType.DATE:
        parsed = parse_date(value)
        if parsed is None:
            violations.append(TypeMismatch(param.name, f"{param.name} must be a timestamp like 20180901T0000", "date"))
        return parsed

    return value


def _check(param: ParameterSpec, value: Any, violations: List[Violation]) -> bool:
    if param.allowed is not None and value not in param.allowed:
        violations.append(ConstraintViolation(
            param.name, f"{param.name} must be one of {', '.join(param.allowed)}", param.allowed,
        ))
        return False
    if param.range is not None and not param.range.contains(value):
        violations.append(ConstraintViolation(
            param.name, f"{param.name} must be between {param.range.min} and {param.range.max}", param.range.as_list(),
        ))
        return False
    if param.max_items is not None and len(value) > param.max_items:
        violations.append(ConstraintViolation(
            param.name, f"{param.name} accepts at most {param.max_items} items", [1, param.max_items],
        ))
        return False
    return True


def _check_date_range(endpoint: APIEndpoint, raw: Mapping[str, RawValue],
                      values: Dict[str, Any], violations: List[Violation]) -> None:
    """起止日期必须同时提供或同时缺省"""
    start_name, end_name = endpoint.date_range
    start_given = _present(raw, start_name) is not None
    end_given = _present(raw, end_name) is not None

    if start_given and not end_given:
        violations.append(MissingParameter(end_name, f"{end_name} is required when {start_name} is given"))
        return
    if end_given and not start_given:
        violations.append(MissingParameter(start_name, f"{start_name} is required when {end_name} is given"))
        return

    start, end = values.get(start_name), values.get(end_name)
    if start is None or end is None:
        return
    if start > end:
        violations.append(ConstraintViolation(end_name, f"{end_name} must not be before {start_name}", [f"{start_name} <= {end_name}"]))
    elif end - start > MAX_DATE_SPAN:
        violations.append(ConstraintViolation(
            end_name, f"date range may span at most {MAX_DATE_SPAN.days} days", [0, MAX_DATE_SPAN.days],
        ))


def validate(raw: Mapping[str, RawValue], endpoint: APIEndpoint) -> NormalizedRequest:
    """
    校验调用方输入并生成 NormalizedRequest

    按声明顺序处理每个参数，收集所有违规后一次性抛出 ValidationFailed。
    未声明的输入键被忽略，不会转发到上游。
    """
    violations: List[Violation] = []
    values: Dict[str, Any] = {}

    for param in endpoint.parameters:
        given = _present(raw, param.name)
        if given is None:
            if param.required:
                violations.append(MissingParameter(param.name, f"{param.name} is required"))
            elif param.default is not None:
                values[param.name] = param.default
            continue

        value = _coerce(param, given, violations)
        if value is not None and _check(param, value, violations):
            values[param.name] = value

    if endpoint.date_range is not None:
        _check_date_range(endpoint, raw, values, violations)

    if violations:
        logger.info(f"Rejected {endpoint.name}: {[v.parameter for v in violations]}")
        raise ValidationFailed(violations)

    return NormalizedRequest(
        endpoint=endpoint.name,
        path_params={p.name: values[p.name] for p in endpoint.path_parameters},
        query_params={p.name: values[p.name] for p in endpoint.query_parameters if p.name in values},
    )
