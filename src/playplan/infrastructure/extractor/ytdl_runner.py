"""youtube-dl subprocess adapter.

Builds the fixed argument template, runs the tool once, classifies failures
into a single ``UpstreamError`` message and parses the JSON it prints.
No retries: a failed extraction means the item stays unresolved.
"""

from __future__ import annotations

import json
import subprocess
import time
from typing import Mapping

import structlog

from playplan.domain.entities.extraction import ExtractionResult
from playplan.domain.exceptions import UpstreamError
from playplan.infrastructure.extractor.info_parser import parse_info

log = structlog.get_logger(__name__)

DEFAULT_FORMAT = "bestvideo+bestaudio/best"
AUDIO_ONLY_FORMAT = "bestaudio/best"

_BASE_ARGS = (
    "--no-warnings",
    "-J",
    "--flat-playlist",
    "--sub-format",
    "ass/srt/best",
    "--no-playlist",
)


class YtdlRunner:
    """Runs youtube-dl (or a compatible fork) and returns parsed results."""

    def __init__(
        self,
        path: str = "youtube-dl",
        format: str = "",
        raw_options: Mapping[str, str] | None = None,
        timeout_seconds: float | None = None,
        video_disabled: bool = False,
    ) -> None:
        self._path = path
        self._format = format
        self._raw_options = dict(raw_options or {})
        self._timeout = timeout_seconds
        self._video_disabled = video_disabled

    def build_command(self, url: str) -> list[str]:
        command = [self._path, *_BASE_ARGS]

        fmt = self._format
        if self._video_disabled and not fmt:
            fmt = AUDIO_ONLY_FORMAT
            log.debug("ytdl_video_disabled_audio_only")
        command += ["--format", fmt or DEFAULT_FORMAT]

        all_subs = True
        for param, arg in self._raw_options.items():
            command.append(f"--{param}")
            if arg:
                command.append(arg)
            if param == "sub-lang" and arg:
                all_subs = False

        if all_subs:
            command.append("--all-subs")
        command += ["--", url]
        return command

    def run(self, url: str) -> str:
        """Run the tool and return its stdout; raise ``UpstreamError`` on failure."""
        command = self.build_command(url)
        log.debug("ytdl_running", command=" ".join(command))

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise UpstreamError(
                "youtube-dl failed: not found or not enough permissions"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise UpstreamError(
                f"youtube-dl failed: killed after {self._timeout} seconds"
            ) from exc

        if completed.returncode != 0:
            stderr_text = (completed.stderr or "").strip()
            log.debug("ytdl_stderr", stderr=stderr_text)
            raise UpstreamError(f"youtube-dl failed: returned '{completed.returncode}'")
        if not completed.stdout:
            raise UpstreamError("youtube-dl failed: unexpected error occurred")
        return completed.stdout

    def extract(self, url: str) -> ExtractionResult:
        started = time.perf_counter()
        stdout = self.run(url)

        try:
            payload = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise UpstreamError(f"failed to parse JSON data: {exc}") from exc
        if not isinstance(payload, dict):
            raise UpstreamError("failed to parse JSON data: expected an object")

        log.info(
            "ytdl_succeeded",
            url=url,
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        return parse_info(payload)
