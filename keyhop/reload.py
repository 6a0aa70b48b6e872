from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Optional, Tuple

from keyhop.config import read_config
from keyhop.errors import HopError
from keyhop.metrics import RELOAD_COUNT
from keyhop.observability import get_tracer, record_error
from keyhop.snapshot import Snapshot, SnapshotStore

logger = logging.getLogger("keyhop.reload")

StatSignature = Tuple[int, int, int]


def reload_snapshot(store: SnapshotStore, path: str | Path, large_config: bool = False) -> bool:
    """Re-read the config and publish a fresh snapshot.

    On any failure the currently published snapshot is left in place.
    """
    with get_tracer().start_as_current_span("keyhop.reload") as span:
        span.set_attribute("keyhop.config.path", str(path))
        try:
            config = read_config(path, large_config=large_config)
        except (HopError, OSError) as exc:
            span.set_attribute("keyhop.reload.status", "error")
            record_error(span, exc)
            RELOAD_COUNT.labels("error").inc()
            logger.warning("Failed to update config file", extra={"extra": {"path": str(path), "error": str(exc)}})
            return False

        snapshot = Snapshot.from_config(config)
        generation = store.publish(snapshot)
        span.set_attribute("keyhop.reload.status", "ok")
        span.set_attribute("keyhop.snapshot.generation", generation)
        span.set_attribute("keyhop.snapshot.routes", len(snapshot.routes))
    RELOAD_COUNT.labels("ok").inc()
    logger.info("Successfully updated active state", extra={"extra": {"path": str(path)}})
    return True


def _stat_signature(path: Path) -> Optional[StatSignature]:
    try:
        stat = path.stat()
    except OSError:
        return None
    return stat.st_mtime_ns, stat.st_size, stat.st_ino


class ConfigWatcher:
    """Polls the config file and reloads the store when it changes.

    A changed stat signature counts as a write, a file that reappears counts
    as a create. Both trigger one reload per poll. Events are handled on the
    watcher thread, one at a time.
    """

    def __init__(
        self,
        path: str | Path,
        store: SnapshotStore,
        large_config: bool = False,
        interval_sec: Optional[float] = None,
    ) -> None:
        self.path = Path(path)
        self.store = store
        self.large_config = large_config
        if interval_sec is None:
            interval_sec = int(os.getenv("HOP_WATCH_INTERVAL_MS", "500")) / 1000
        self.interval_sec = interval_sec
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_signature: Optional[StatSignature] = None

    def prime(self) -> bool:
        """Record the file's current state as already loaded.

        Returns whether the file exists. Nothing is reloaded.
        """
        self._last_signature = _stat_signature(self.path)
        return self._last_signature is not None

    def start(self) -> "ConfigWatcher":
        if not self.prime():
            logger.warning(
                "Couldn't watch config; changes won't be seen until it exists",
                extra={"extra": {"path": str(self.path)}},
            )
        else:
            logger.info("Watcher is now watching config", extra={"extra": {"path": str(self.path)}})
        self._thread = threading.Thread(target=self._watch_loop, name="keyhop-config-watcher", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll(self) -> bool:
        """Check the file once; return whether a reload was attempted."""
        signature = _stat_signature(self.path)
        if signature is None:
            if self._last_signature is not None:
                logger.debug("Config file disappeared; keeping current routes", extra={"extra": {"path": str(self.path)}})
            self._last_signature = None
            return False
        if signature == self._last_signature:
            return False

        event = "create" if self._last_signature is None else "write"
        self._last_signature = signature
        logger.debug("Saw config %s event", event, extra={"extra": {"path": str(self.path)}})
        reload_snapshot(self.store, self.path, large_config=self.large_config)
        return True

    def _watch_loop(self) -> None:
        while not self._stop.wait(self.interval_sec):
            try:
                self.poll()
            except Exception:
                logger.exception("Config watcher poll failed")
