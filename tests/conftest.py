import os
import stat
from pathlib import Path

import pytest

os.environ.setdefault("HOP_OTEL_ENABLED", "0")
os.environ.setdefault("HOP_LOG_JSON", "1")


@pytest.fixture
def write_program(tmp_path):
    """Write an executable /bin/sh script into tmp_path and return its path."""

    def _write(body: str, name: str = "program.sh", executable: bool = True) -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        mode = path.stat().st_mode
        if executable:
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        else:
            path.chmod(mode & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
        return path

    return _write
