from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from keyhop.errors import CustomProgramError, ProgramOutputError
from keyhop.observability import get_tracer
from keyhop.routes import Route

logger = logging.getLogger("keyhop.executor")


@dataclass(frozen=True)
class Redirect:
    target: str


@dataclass(frozen=True)
class Body:
    text: str


HopAction = Union[Redirect, Body]


def split_args(args: str) -> List[str]:
    # Split on single spaces without collapsing runs; no shell parsing.
    if not args:
        return []
    return args.split(" ")


def parse_program_output(stdout: bytes) -> HopAction:
    """Parse a program's stdout as ``{"redirect": ...}`` or ``{"body": ...}``."""
    try:
        payload = json.loads(stdout.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ProgramOutputError(f"Program output is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ProgramOutputError(f"Program output is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict) or len(payload) != 1:
        raise ProgramOutputError(
            "Program output must be a JSON object with exactly one of 'redirect' or 'body'"
        )
    key, value = next(iter(payload.items()))
    if not isinstance(value, str):
        raise ProgramOutputError(f"Program output field {key!r} must be a string")
    if key == "redirect":
        return Redirect(value)
    if key == "body":
        return Body(value)
    raise ProgramOutputError(f"Unknown program output field {key!r}")


def resolve_path(path: str | Path, args: str) -> HopAction:
    """Run the executable at ``path`` with ``args`` and interpret its output.

    Blocks until the program exits; there is no timeout. Raises ``OSError``
    when the path cannot be resolved or executed, ``CustomProgramError`` on
    a non-zero exit and ``ProgramOutputError`` on malformed output.
    """
    argv = split_args(args)
    with get_tracer().start_as_current_span("keyhop.program") as span:
        span.set_attribute("keyhop.program.path", str(path))
        span.set_attribute("keyhop.program.arg_count", len(argv))

        executable = Path(path).resolve(strict=True)
        completed = subprocess.run(
            [str(executable), *argv],
            stdin=subprocess.DEVNULL,
            capture_output=True,
            check=False,
        )
        span.set_attribute("keyhop.program.exit_code", completed.returncode)

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace")
            logger.error(
                "Program exit code was not 0",
                extra={"extra": {"path": str(path), "exit_code": completed.returncode, "stderr": stderr}},
            )
            raise CustomProgramError(stderr)

        return parse_program_output(completed.stdout)


def run_route(route: Route, args: str) -> HopAction:
    """Turn a resolved route into an action.

    External routes never start a process: their path is the redirect
    template itself.
    """
    if route.is_internal:
        return resolve_path(route.path, args)
    return Redirect(route.path)
