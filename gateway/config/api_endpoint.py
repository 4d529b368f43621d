import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .parameter_spec import Location, ParameterSpec, ParamType

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")

# 由网关注入，端点不得声明
RESERVED_PARAMETERS = frozenset({"apikey"})


@dataclass(frozen=True)
class APIEndpoint:
    """API端点定义"""
    name: str
    path: str
    parameters: Tuple[ParameterSpec, ...] = ()
    method: str = "GET"
    description: str = ""
    date_range: Optional[Tuple[str, str]] = None  # (start, end), both-or-neither

    def __post_init__(self):
        # accept lists from callers but store tuples
        object.__setattr__(self, "parameters", tuple(self.parameters))

        if self.method.upper() != "GET":
            raise ValueError(f"Endpoint {self.name}: only GET is proxied, got {self.method}")

        names = [p.name for p in self.parameters]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Endpoint {self.name}: duplicate parameters {sorted(duplicates)}")

        reserved = RESERVED_PARAMETERS.intersection(names)
        if reserved:
            raise ValueError(f"Endpoint {self.name}: {sorted(reserved)} is reserved for the upstream credential")

        placeholders = _PLACEHOLDER.findall(self.path)
        if len(placeholders) != len(set(placeholders)):
            raise ValueError(f"Endpoint {self.name}: repeated placeholder in {self.path}")
        path_params = {p.name for p in self.parameters if p.location == Location.PATH}
        if set(placeholders) != path_params:
            raise ValueError(
                f"Endpoint {self.name}: placeholders {sorted(placeholders)} "
                f"do not match path parameters {sorted(path_params)}"
            )

        if self.date_range is not None:
            for bound in self.date_range:
                param = self.get_parameter(bound)
                if param is None or param.type != ParamType.DATE:
                    raise ValueError(f"Endpoint {self.name}: date range bound {bound} is not a date parameter")
                if param.required:
                    raise ValueError(f"Endpoint {self.name}: date range bound {bound} must be optional")

    def get_parameter(self, name: str) -> Optional[ParameterSpec]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    @property
    def path_parameters(self) -> Tuple[ParameterSpec, ...]:
        return tuple(p for p in self.parameters if p.location == Location.PATH)

    @property
    def query_parameters(self) -> Tuple[ParameterSpec, ...]:
        return tuple(p for p in self.parameters if p.location == Location.QUERY)

    def describe_parameters(self) -> Dict[str, str]:
        """参数名 -> 简短说明，用于服务资源展示"""
        described = {}
        for p in self.parameters:
            parts = [p.location.value, p.type.value, "required" if p.required else "optional"]
            if p.default is not None:
                parts.append(f"default={p.default}")
            if p.allowed:
                parts.append("one of " + "|".join(p.allowed))
            if p.range is not None:
                parts.append(f"range [{p.range.min}, {p.range.max}]")
            if p.max_items is not None:
                parts.append(f"max {p.max_items} items")
            described[p.name] = ", ".join(parts)
        return described
