from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from keyhop.errors import (
    ConfigEmpty,
    ConfigParseError,
    ConfigTooLarge,
    InvalidConfigPath,
    NoValidConfigPath,
)
from keyhop.routes import RouteGroup

logger = logging.getLogger("keyhop.config")

CONFIG_FILENAME = "keyhop.yaml"
DEFAULT_MAX_CONFIG_BYTES = 100 * 1024 * 1024

DEFAULT_CONFIG = """\
# The location which your server is listening on and binds to. You must restart
# keyhop for changes to take effect for this config option.
bind_address: "127.0.0.1:8080"

# The root location where people can access your instance of keyhop.
public_address: "localhost:8080"

# A default route, used when no route matched. The entire query is then used
# as the query for the default route. Optional, but highly recommended.
default_route: "g"

# A list of route groups. Each group needs a name and a mapping of routes, with
# an optional description. A route may contain "{{query}}", which is replaced by
# the percent-escaped search query. If a keyword is defined more than once, the
# later group wins.
#
# A route may also be a path to an executable. The program receives the
# arguments as space-separated words, without any shell parsing, and must print
# a JSON object with exactly one of:
#  - "redirect": "some-path-to-redirect-to.com"
#  - "body": "The actual body to return."
#
# These programs accept arbitrary user input and must be written defensively.
groups:
  -
    name: "Meta commands"
    description: "Commands for keyhop"
    routes:
      ls: &ls
        path: "/ls"
        max_args: 0
      help:
        path: "/ls"
        max_args: 0
        hidden: true
      list: *ls
  -
    name: "Google"
    routes:
      g: "https://google.com/search?q={{query}}"
      yt:
        path: "https://www.youtube.com/results?search_query={{query}}"
        description: "A way to quickly search youtube videos"
  -
    name: "Uncategorized routes"
    routes:
      r: "https://reddit.com/r/{{query}}"
      nice: "https://youtu.be/dQw4w9WgXcQ"
  -
    name: "Hidden group"
    hidden: true
    routes:
      sneaky: "https://nyan.cat"
"""


@dataclass(frozen=True)
class Config:
    bind_address: str
    public_address: str
    default_route: Optional[str]
    groups: Tuple[RouteGroup, ...]


def max_config_bytes() -> int:
    return int(os.getenv("HOP_MAX_CONFIG_BYTES", str(DEFAULT_MAX_CONFIG_BYTES)))


def check_config_size(size: int, large_config: bool = False) -> None:
    if size == 0:
        raise ConfigEmpty()
    limit = max_config_bytes()
    if not large_config and size > limit:
        raise ConfigTooLarge(size, limit)


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader that reads scalar mapping keys as the text written.

    Without this, YAML 1.1 turns keywords such as ``no``, ``on`` or ``1``
    into booleans and integers.
    """

    def construct_mapping(self, node, deep=False):
        self.flatten_mapping(node)
        for key_node, _ in node.value:
            if isinstance(key_node, yaml.ScalarNode):
                key_node.tag = "tag:yaml.org,2002:str"
        return super().construct_mapping(node, deep=deep)


def parse_config(raw: bytes | str) -> Config:
    try:
        payload = yaml.load(raw, Loader=_ConfigLoader)
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"Invalid YAML: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigParseError("Config root must be a mapping")

    bind_address = _required_str(payload, "bind_address")
    public_address = _required_str(payload, "public_address")
    default_route = payload.get("default_route")
    if default_route is not None and not isinstance(default_route, str):
        raise ConfigParseError("'default_route' must be a string")

    raw_groups = payload.get("groups")
    if not isinstance(raw_groups, list):
        raise ConfigParseError("'groups' must be a list")

    groups: List[RouteGroup] = []
    for position, raw_group in enumerate(raw_groups):
        try:
            groups.append(RouteGroup.from_config(raw_group))
        except ValueError as exc:
            raise ConfigParseError(f"groups[{position}]: {exc}") from exc

    return Config(
        bind_address=bind_address,
        public_address=public_address,
        default_route=default_route,
        groups=tuple(groups),
    )


def _required_str(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ConfigParseError(f"'{key}' is required and must be a string")
    return value


def read_config(path: str | Path, large_config: bool = False) -> Config:
    """Read and parse the config file at ``path``.

    The size checks run against file metadata before any bytes are read, so
    an empty or pathologically large file is rejected without parsing.
    """
    path = Path(path)
    logger.debug("Loading config file", extra={"extra": {"path": str(path)}})
    check_config_size(path.stat().st_size, large_config)
    with open(path, "rb") as handle:
        raw = handle.read()
    # The file may have changed between stat and read.
    check_config_size(len(raw), large_config)
    return parse_config(raw)


def candidate_config_paths() -> List[Path]:
    """Config locations with highest priority first."""
    folders = [Path("/etc")]
    xdg_config = os.getenv("XDG_CONFIG_HOME")
    home = Path.home()
    folders.append(Path(xdg_config) if xdg_config else home / ".config")
    folders.append(home)
    return [folder / CONFIG_FILENAME for folder in folders]


def get_config_path(locations: Optional[List[Path]] = None) -> Path:
    """Find a readable config, or write the default config somewhere.

    Readable locations are tried first. If none exist yet, the default config
    is written to the first location that can be created.
    """
    locations = locations if locations is not None else candidate_config_paths()
    logger.debug("Checking locations for config file", extra={"extra": {"locations": [str(p) for p in locations]}})

    for location in locations:
        try:
            with open(location, "rb"):
                pass
        except OSError as exc:
            logger.debug("Tried to read %s but failed: %s", location, exc)
            continue
        logger.debug("Found config file at %s", location)
        return location

    logger.debug("Failed to find any config. Now trying to find first writable path")

    for location in locations:
        try:
            with open(location, "x", encoding="utf-8") as handle:
                handle.write(DEFAULT_CONFIG)
        except OSError as exc:
            logger.debug("Tried to create %s but failed: %s", location, exc)
            continue
        logger.info("Created new config file", extra={"extra": {"path": str(location)}})
        return location

    raise NoValidConfigPath()


def load_custom_path(path: str | Path) -> Path:
    """Only accept the given path, failing if it cannot be opened for reading."""
    path = Path(path)
    try:
        with open(path, "rb"):
            pass
    except OSError as exc:
        raise InvalidConfigPath(path, exc) from exc
    return path
