from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger("keyhop.routes")


class RouteKind(str, Enum):
    EXTERNAL = "external"
    INTERNAL = "internal"


def classify_path(path: str) -> RouteKind:
    """Decide whether a route path is a local program or a redirect template.

    Anything that exists on disk at load time is treated as a program; the
    check is not repeated later, so a program that moves after a reload is
    reclassified on the next one.
    """
    if os.path.exists(path):
        logger.debug("Parsed %s as a valid local path.", path)
        return RouteKind.INTERNAL
    logger.debug("%s does not exist on disk, assuming web path.", path)
    return RouteKind.EXTERNAL


@dataclass(frozen=True)
class Route:
    kind: RouteKind
    path: str
    hidden: bool = False
    description: Optional[str] = None
    min_args: Optional[int] = None
    max_args: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("min_args", "max_args"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if self.min_args is not None and self.max_args is not None and self.min_args > self.max_args:
            raise ValueError(
                f"min_args ({self.min_args}) is greater than max_args ({self.max_args})"
            )

    @classmethod
    def from_path(cls, path: str, **kwargs: Any) -> "Route":
        return cls(kind=classify_path(path), path=path, **kwargs)

    @classmethod
    def from_config(cls, value: Any) -> "Route":
        """Build a route from either a bare string or a mapping of options."""
        if isinstance(value, str):
            return cls.from_path(value)
        if not isinstance(value, dict):
            raise ValueError(f"expected a string or mapping, got {type(value).__name__}")

        path = value.get("path")
        if not isinstance(path, str):
            raise ValueError("route mapping requires a string 'path'")
        hidden = value.get("hidden", False)
        if not isinstance(hidden, bool):
            raise ValueError("'hidden' must be a boolean")
        description = value.get("description")
        if description is not None and not isinstance(description, str):
            raise ValueError("'description' must be a string")

        return cls.from_path(
            path,
            hidden=hidden,
            description=description,
            min_args=_optional_count(value, "min_args"),
            max_args=_optional_count(value, "max_args"),
        )

    @property
    def is_internal(self) -> bool:
        return self.kind is RouteKind.INTERNAL

    def __str__(self) -> str:
        if self.is_internal:
            return f"file ({self.path})"
        return f"raw ({self.path})"


def _optional_count(value: Dict[str, Any], key: str) -> Optional[int]:
    raw = value.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"'{key}' must be a non-negative integer")
    return raw


@dataclass(frozen=True)
class RouteGroup:
    name: str
    routes: Mapping[str, Route] = field(default_factory=dict)
    description: Optional[str] = None
    hidden: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.routes, MappingProxyType):
            object.__setattr__(self, "routes", MappingProxyType(dict(self.routes)))

    @classmethod
    def from_config(cls, value: Any) -> "RouteGroup":
        if not isinstance(value, dict):
            raise ValueError(f"group must be a mapping, got {type(value).__name__}")

        name = value.get("name")
        if not isinstance(name, str):
            raise ValueError("group requires a string 'name'")
        description = value.get("description")
        if description is not None and not isinstance(description, str):
            raise ValueError(f"group {name!r}: 'description' must be a string")
        hidden = value.get("hidden", False)
        if not isinstance(hidden, bool):
            raise ValueError(f"group {name!r}: 'hidden' must be a boolean")
        raw_routes = value.get("routes")
        if not isinstance(raw_routes, dict):
            raise ValueError(f"group {name!r}: 'routes' must be a mapping")

        routes: Dict[str, Route] = {}
        for keyword, raw_route in raw_routes.items():
            if not isinstance(keyword, str):
                raise ValueError(f"group {name!r}: route keyword {keyword!r} must be a string")
            try:
                routes[keyword] = Route.from_config(raw_route)
            except ValueError as exc:
                raise ValueError(f"group {name!r}, route {keyword!r}: {exc}") from exc

        return cls(name=name, routes=routes, description=description, hidden=hidden)

    def visible_routes(self) -> Dict[str, Route]:
        if self.hidden:
            return {}
        return {keyword: route for keyword, route in self.routes.items() if not route.hidden}
