"""Backend running a command-line formatter that rewrites a file in place."""

from __future__ import annotations

import os
import subprocess
import tempfile
from contextlib import suppress
from typing import List, Optional

from fmt_engine.runtime import telemetry
from fmt_engine.runtime.config import BackendConfig

from .base import FormatOutcome


class SubprocessBackend:
    """Writes the content to a private temp file and lets the tool rewrite it."""

    def __init__(self, config: BackendConfig) -> None:
        self.config = config
        self.name = config.name

    def command_line(
        self, path: str, *, line_length: Optional[int] = None, fast: bool = False
    ) -> List[str]:
        cfg = self.config
        argv = [cfg.command, *cfg.args]
        if line_length is not None and cfg.line_length_flag:
            argv += [cfg.line_length_flag, str(line_length)]
        if fast and cfg.fast_flag:
            argv.append(cfg.fast_flag)
        if cfg.in_place_flag:
            argv.append(cfg.in_place_flag)
        argv.append(path)
        return argv

    def format(
        self, content: bytes, *, line_length: Optional[int] = None, fast: bool = False
    ) -> FormatOutcome:
        with telemetry.span(
            f"backend::{self.name}",
            component="backends",
            metadata={"backend": self.name, "bytes": len(content)},
        ):
            try:
                fd, path = tempfile.mkstemp(
                    prefix="fmt-engine-", suffix=self.config.suffix
                )
            except OSError as exc:
                return self._failed(f"cannot create temporary file: {exc}")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(content)
                return self._run(
                    self.command_line(path, line_length=line_length, fast=fast), path
                )
            except OSError as exc:
                return self._failed(f"temporary file error: {exc}")
            finally:
                with suppress(FileNotFoundError):
                    os.unlink(path)

    def close(self) -> None:
        return None

    def _run(self, argv: List[str], path: str) -> FormatOutcome:
        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.config.cwd,
                check=False,
            )
        except OSError as exc:
            return self._failed(f"cannot run {argv[0]!r}: {exc}")

        output = completed.stdout.decode("utf-8", errors="replace")
        if completed.returncode != 0:
            return self._failed(
                output or f"{self.name} exited with status {completed.returncode}"
            )
        try:
            with open(path, "rb") as handle:
                formatted = handle.read()
        except OSError as exc:
            return self._failed(f"cannot read {self.name} output: {exc}")
        return FormatOutcome.formatted(self.name, formatted, output)

    def _failed(self, diagnostics: str) -> FormatOutcome:
        telemetry.record_event(
            "backend.failed",
            level="warning",
            data={"backend": self.name, "diagnostics": diagnostics[:200]},
        )
        return FormatOutcome.failed(self.name, diagnostics)


__all__ = ["SubprocessBackend"]
