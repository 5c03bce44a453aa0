"""Shared fixtures for integration tests.

These tests use real infrastructure components (YtdlRunner, load_config,
the composition root) against a stand-in extractor executable.
"""

from __future__ import annotations

import json
import os
import stat
import sys
from pathlib import Path
from typing import Any, Callable

import pytest


@pytest.fixture()
def fake_ytdl(tmp_path: Path) -> Callable[..., Path]:
    """Write a shell script that behaves like youtube-dl -J.

    The script records its arguments to ``args.txt`` next to itself, prints
    *stdout* and exits with *exit_code*.
    """
    if sys.platform.startswith("win"):
        pytest.skip("shell script stand-in needs a POSIX shell")

    def _make(info: Any = None, *, stdout: str | None = None, exit_code: int = 0) -> Path:
        body = stdout if stdout is not None else json.dumps(info)
        script = tmp_path / "youtube-dl"
        args_file = tmp_path / "args.txt"
        script.write_text(
            "#!/bin/sh\n"
            f'printf "%s\\n" "$@" > "{args_file}"\n'
            "cat <<'PLAYPLAN_EOF'\n"
            f"{body}\n"
            "PLAYPLAN_EOF\n"
            f"exit {exit_code}\n",
            encoding="utf-8",
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture()
def recorded_args(tmp_path: Path) -> Callable[[], list[str]]:
    def _read() -> list[str]:
        path = tmp_path / "args.txt"
        if not path.exists():
            return []
        return path.read_text(encoding="utf-8").splitlines()

    return _read


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop PLAYPLAN_* variables inherited from the developer's shell."""
    for name in list(os.environ):
        if name.startswith("PLAYPLAN_"):
            monkeypatch.delenv(name)
