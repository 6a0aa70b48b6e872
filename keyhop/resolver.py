from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Union

from keyhop.routes import Route

logger = logging.getLogger("keyhop.resolver")

# Space, tab, line feed, form feed and carriage return. Vertical tab and
# non-ASCII whitespace are part of a token.
_ASCII_WHITESPACE = re.compile(r"[ \t\n\x0c\r]+")


@dataclass(frozen=True)
class Resolved:
    route: Route
    args: str
    # Keyword the route was found under; the default route's name on fallback.
    keyword: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Unresolved:
    pass


Resolution = Union[Resolved, Unresolved]


def split_query(query: str) -> List[str]:
    return [token for token in _ASCII_WHITESPACE.split(query) if token]


def check_route(route: Route, arg_count: int) -> bool:
    """Return whether ``arg_count`` satisfies the route's inclusive bounds."""
    if route.min_args is not None and arg_count < route.min_args:
        return False
    if route.max_args is not None and arg_count > route.max_args:
        return False
    return True


def resolve_hop(
    query: str,
    routes: Mapping[str, Route],
    default_route: Optional[str],
) -> Resolution:
    """Resolve a query into a route and the arguments left for it.

    The first token is tried as a keyword. If it is not a keyword, or the
    keyword's argument bounds reject the remaining tokens, the whole query is
    handed to the default route, which must satisfy its own bounds.
    """
    tokens = split_query(query)
    if not tokens:
        logger.debug("Found empty query, returning no route.")
        return Unresolved()

    route = routes.get(tokens[0])
    if route is not None:
        args = tokens[1:]
        if check_route(route, len(args)):
            joined = " ".join(args)
            logger.debug("Resolved %s with args %s", route, joined)
            return Resolved(route=route, args=joined, keyword=tokens[0])

    if default_route is not None:
        route = routes.get(default_route)
        if route is not None and check_route(route, len(tokens)):
            joined = " ".join(tokens)
            logger.debug("Using default route %s with args %s", route, joined)
            return Resolved(route=route, args=joined, keyword=default_route)

    return Unresolved()
