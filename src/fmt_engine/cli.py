"""Command-line driver formatting files through the minimal-edit engine."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from fmt_engine.buffer import Buffer
from fmt_engine.events import EventBus
from fmt_engine.orchestrator import BufferFormatter, FormatReport, FormatStatus
from fmt_engine.runtime.config import BackendConfig, ConfigError, FormatterConfig


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fmt-engine",
        description="Format files in place, applying only the changed lines.",
    )
    parser.add_argument("paths", nargs="+", type=Path, help="Files to format")
    parser.add_argument(
        "--backend",
        help="Backend name (black, autopep8, yapf, isort, ruff, blackd); "
        "default from FMT_ENGINE_BACKEND or 'black'",
    )
    parser.add_argument(
        "--command",
        help="Override the backend executable (turns --backend into a custom tool)",
    )
    parser.add_argument(
        "--arg",
        dest="args",
        action="append",
        default=[],
        help="Extra argument for a custom --command (repeatable; use --arg=-x)",
    )
    parser.add_argument(
        "--in-place-flag",
        help="Flag telling a custom --command to rewrite its file argument",
    )
    parser.add_argument("--line-length", type=int, help="Fixed output line width")
    parser.add_argument(
        "--fast", action="store_true", help="Skip the formatter's safety checks"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report files that would change without writing them",
    )
    parser.add_argument("--daemon-host", help="Host the formatting daemon binds to")
    parser.add_argument(
        "--daemon-port", type=int, help="Port the formatting daemon binds to"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> FormatterConfig:
    config = FormatterConfig.from_env()
    config = dataclasses.replace(
        config,
        backend=args.backend or config.backend,
        line_length=(
            args.line_length if args.line_length is not None else config.line_length
        ),
        fast=args.fast or config.fast,
    )
    daemon = config.daemon
    if args.daemon_host is not None:
        daemon = dataclasses.replace(daemon, host=args.daemon_host)
    if args.daemon_port is not None:
        daemon = dataclasses.replace(daemon, port=args.daemon_port)
    config.daemon = daemon
    if args.command:
        config = config.with_backend(
            BackendConfig(
                name=config.backend,
                command=args.command,
                args=tuple(args.args),
                in_place_flag=args.in_place_flag,
            )
        )
    return config


def _print_diagnostics(payload: object) -> None:
    if isinstance(payload, FormatReport) and payload.diagnostics:
        print(f"{payload.tool}: {payload.diagnostics.rstrip()}", file=sys.stderr)


def format_path(formatter: BufferFormatter, path: Path, *, check: bool) -> FormatReport:
    encoding = formatter.config.encoding
    try:
        text = path.read_bytes().decode(encoding)
    except (OSError, UnicodeDecodeError) as exc:
        report = FormatReport(FormatStatus.FAILED, formatter.config.backend, str(exc))
        _print_diagnostics(report)
        return report

    buffer = Buffer.from_text(text, name=str(path))
    report = formatter.format(buffer)
    if report.status is FormatStatus.FORMATTED and not check:
        # newline="" keeps the line endings the buffer already carries
        with path.open("w", encoding=encoding, newline="") as handle:
            handle.write(buffer.text)
    return report


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        config = build_config(args)
    except ConfigError as exc:
        print(f"fmt-engine: {exc}", file=sys.stderr)
        return 2

    bus = EventBus()
    bus.subscribe("format.failed", _print_diagnostics)
    failures: List[Path] = []
    changed: List[Path] = []
    with BufferFormatter(config, bus=bus) as formatter:
        for path in args.paths:
            report = format_path(formatter, path, check=args.check)
            if report.status is FormatStatus.FAILED:
                failures.append(path)
                print(f"failed: {path}")
            elif report.status is FormatStatus.FORMATTED:
                changed.append(path)
                verb = "would reformat" if args.check else "reformatted"
                print(
                    f"{verb}: {path} (+{report.lines_added} -{report.lines_removed})"
                )
            else:
                print(f"unchanged: {path}")

    if failures or (args.check and changed):
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - manual entry point
    sys.exit(main())
