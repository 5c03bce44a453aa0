from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from playplan.application.handoff import PlanHandoff
from playplan.domain.exceptions import ResolutionError, UpstreamError
from playplan.infrastructure.config import load_config
from playplan.infrastructure.extractor.info_parser import parse_info
from playplan.infrastructure.logging.setup import configure_logging
from playplan.infrastructure.player.recording_host import RecordingPlayerHost
from playplan.interfaces.composition import build_use_case

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="playplan")

    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Page url (http(s)://... or ytdl://...) to resolve.",
    )
    parser.add_argument(
        "--info-json",
        default=None,
        help="Resolve a saved youtube-dl -J dump instead of running the extractor.",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--ytdl-path",
        default=None,
        help="Override extractor executable.",
    )
    parser.add_argument(
        "--no-native-dash",
        action="store_true",
        help="Host cannot demux DASH manifests; synthesize EDLs instead.",
    )
    parser.add_argument(
        "--explicit",
        action="append",
        default=None,
        metavar="OPTION",
        help="Host option set by the user (repeatable), e.g. user-agent.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    args = parser.parse_args(argv)
    if args.url is None and args.info_json is None:
        parser.error("either a url or --info-json is required")
    return args


def _load_info(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise UpstreamError(f"failed to read info JSON {str(path)!r}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise UpstreamError(f"failed to parse JSON data: {exc}") from exc
    if not isinstance(payload, dict):
        raise UpstreamError("failed to parse JSON data: expected an object")
    return payload


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Resolves one item, applies it to an in-memory host (both phases) and
    prints what the host received as JSON on stdout.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.ytdl_path:
        cli_overrides["ytdl_path"] = args.ytdl_path
    if args.no_native_dash:
        cli_overrides["native_dash"] = False
    if args.explicit:
        cli_overrides["explicit_options"] = args.explicit
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    try:
        config = load_config(
            config_path=config_path,
            dotenv_path=dotenv_path,
            cli_overrides=cli_overrides,
        )
    except (ValidationError, ValueError, OSError) as exc:
        # Logging is not configured yet; report on stderr like argparse does.
        sys.stderr.write(f"playplan: invalid configuration: {exc}\n")
        return 2
    configure_logging(config)

    use_case = build_use_case(config)
    try:
        if args.info_json:
            resolution = use_case.resolve(parse_info(_load_info(Path(args.info_json))))
        else:
            resolution = use_case.execute(args.url)
    except ResolutionError as exc:
        log.error("resolution_failed", error=str(exc), url=args.url)
        return 1

    host = RecordingPlayerHost()
    if resolution is not None:
        handoff = PlanHandoff(host)
        handoff.apply(resolution)
        handoff.on_stream_opened()

    output = {"resolved": resolution is not None, **host.to_dict()}
    sys.stdout.write(json.dumps(output, indent=2, ensure_ascii=False) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
