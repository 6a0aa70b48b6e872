from __future__ import annotations

from pathlib import Path


class HopError(Exception):
    """Base class for keyhop failures that are not plain OS errors."""


class ConfigParseError(HopError):
    pass


class ConfigTooLarge(HopError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Config is {size} bytes, which exceeds the {limit} byte limit. "
            "Pass --large-config to load it anyway."
        )
        self.size = size
        self.limit = limit


class ConfigEmpty(HopError):
    def __init__(self) -> None:
        super().__init__("Config file is empty (zero bytes).")


class NoValidConfigPath(HopError):
    def __init__(self) -> None:
        super().__init__("No valid config path was found!")


class InvalidConfigPath(HopError):
    def __init__(self, path: Path, reason: OSError) -> None:
        super().__init__(f"Failed to access {str(path)!r}: {reason}")
        self.path = path
        self.reason = reason


class ProgramOutputError(HopError):
    """Local program exited 0 but its stdout broke the JSON contract."""


class CustomProgramError(HopError):
    """Local program exited non-zero; carries its stderr verbatim."""

    def __init__(self, stderr: str) -> None:
        super().__init__(stderr)
        self.stderr = stderr
