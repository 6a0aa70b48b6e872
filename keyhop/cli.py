from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from keyhop.config import get_config_path, load_custom_path, read_config
from keyhop.errors import HopError
from keyhop.index import TRACE
from keyhop.reload import ConfigWatcher
from keyhop.server import configure_logging, create_app
from keyhop.snapshot import Snapshot, SnapshotStore

logger = logging.getLogger("keyhop.cli")

_LEVELS = {
    -2: None,
    -1: logging.ERROR,
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
}


def log_level(verbose: int, quiet: int) -> Optional[int]:
    """Map -v/-q counts to a logging level; ``None`` means no logging."""
    return _LEVELS[min(verbose, 3) - min(quiet, 2)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keyhop", description="Keyword-based search redirector.")
    noise = parser.add_mutually_exclusive_group()
    noise.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increases the log level to info, debug, and trace, respectively.",
    )
    noise.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Decreases the log level to error or no logging at all, respectively.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Location of the config file to read from. Needs read permissions.",
    )
    parser.add_argument(
        "--large-config",
        action="store_true",
        help="Allow config sizes larger than 100MB.",
    )
    return parser


def split_bind_address(bind_address: str) -> Tuple[str, int]:
    host, sep, port = bind_address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Invalid bind address {bind_address!r}; expected host:port")
    return host.strip("[]"), int(port)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(log_level(args.verbose, args.quiet))

    try:
        config_path = load_custom_path(args.config) if args.config else get_config_path()
        config = read_config(config_path, large_config=args.large_config)
        host, port = split_bind_address(config.bind_address)
    except (HopError, OSError, ValueError) as exc:
        logger.error("Failed to load config", extra={"extra": {"error": str(exc)}})
        return 1

    store = SnapshotStore(Snapshot.from_config(config))
    watcher = ConfigWatcher(config_path, store, large_config=args.large_config).start()

    app = create_app(store)
    try:
        app.run(host=host, port=port, debug=False, threaded=True)
    finally:
        watcher.stop(timeout=1)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
