from __future__ import annotations

import logging
from typing import Dict, Iterable

from keyhop.routes import Route, RouteGroup

logger = logging.getLogger("keyhop.index")

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def build_route_index(groups: Iterable[RouteGroup]) -> Dict[str, Route]:
    """Flatten route groups into a single keyword lookup.

    Groups are applied in order, so a keyword defined in a later group
    replaces the same keyword from an earlier one.
    """
    mapping: Dict[str, Route] = {}
    for group in groups:
        for keyword, route in group.routes.items():
            previous = mapping.get(keyword)
            mapping[keyword] = route
            if previous is None:
                logger.log(TRACE, "Inserting %s into mapping.", keyword)
            else:
                logger.debug("Overriding %s route from %s to %s.", keyword, previous, route)
    return mapping
