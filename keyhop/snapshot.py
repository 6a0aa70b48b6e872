from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from keyhop.config import Config
from keyhop.index import build_route_index
from keyhop.routes import Route, RouteGroup

logger = logging.getLogger("keyhop.snapshot")


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time view of the route configuration.

    ``routes`` is always derived from ``groups``; build snapshots through
    :meth:`from_config` or :meth:`from_groups` so the two cannot diverge.
    """

    public_address: str
    default_route: Optional[str]
    groups: Tuple[RouteGroup, ...]
    routes: Mapping[str, Route]

    @classmethod
    def from_groups(
        cls,
        public_address: str,
        default_route: Optional[str],
        groups: Tuple[RouteGroup, ...],
    ) -> "Snapshot":
        groups = tuple(groups)
        return cls(
            public_address=public_address,
            default_route=default_route,
            groups=groups,
            routes=MappingProxyType(build_route_index(groups)),
        )

    @classmethod
    def from_config(cls, config: Config) -> "Snapshot":
        return cls.from_groups(config.public_address, config.default_route, config.groups)


class SnapshotStore:
    """Holds the active snapshot behind a single swappable reference.

    Readers take the reference without locking; the snapshot itself is never
    mutated, so a reader keeps a consistent view for as long as it holds it.
    Writers are serialized so the last publish to complete wins.
    """

    def __init__(self, snapshot: Snapshot) -> None:
        self._current = snapshot
        self._publish_lock = threading.Lock()
        self._generation = 0

    def current(self) -> Snapshot:
        return self._current

    def publish(self, snapshot: Snapshot) -> int:
        with self._publish_lock:
            self._current = snapshot
            self._generation += 1
            generation = self._generation
        logger.info(
            "Published route snapshot",
            extra={"extra": {"generation": generation, "routes": len(snapshot.routes)}},
        )
        return generation

    @property
    def generation(self) -> int:
        return self._generation
