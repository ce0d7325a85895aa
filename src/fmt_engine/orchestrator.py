"""Format a buffer: run the backend, diff its output, patch the buffer."""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from typing import ContextManager, Optional

from fmt_engine.backends import (
    BackendRegistry,
    FormatOutcome,
    FormatterBackend,
    OutcomeKind,
    UnknownBackendError,
)
from fmt_engine.buffer import BufferValidationError, LineBuffer, buffer_text
from fmt_engine.events import EventBus
from fmt_engine.patch import MalformedDiffError, apply_ed_diff, compute_ed_diff
from fmt_engine.runtime import telemetry
from fmt_engine.runtime.config import FormatterConfig


class FormatStatus(str, Enum):
    NO_CHANGE = "no_change"
    FORMATTED = "formatted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FormatReport:
    """What happened to one buffer, as handed to presentation code."""

    status: FormatStatus
    tool: str
    diagnostics: str = ""
    lines_added: int = 0
    lines_removed: int = 0

    @property
    def ok(self) -> bool:
        return self.status is not FormatStatus.FAILED


_EVENTS = {
    FormatStatus.NO_CHANGE: "format.no_change",
    FormatStatus.FORMATTED: "format.applied",
    FormatStatus.FAILED: "format.failed",
}


class BufferFormatter:
    """Long-lived formatting service for one host.

    Keeps backends (and any daemon they started) alive between calls. Every
    ``format`` call emits ``format.start`` followed by exactly one of
    ``format.no_change``, ``format.applied`` or ``format.failed`` on ``bus``,
    with the ``FormatReport`` as payload. An exception raised by a subscriber
    is logged and dropped; the remaining subscribers of that event are skipped.
    """

    def __init__(
        self,
        config: Optional[FormatterConfig] = None,
        *,
        registry: Optional[BackendRegistry] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.config = config or FormatterConfig()
        self._owns_registry = registry is None
        self.registry = registry or BackendRegistry(daemon=self.config.daemon)
        for backend_config in self.config.backends.values():
            self.registry.register(backend_config, replace=True)
        self.bus = bus or EventBus()

    def format(self, buffer: LineBuffer) -> FormatReport:
        tool = self.config.backend
        self._notify("format.start", tool)
        with telemetry.span(
            "format::buffer", component="orchestrator", metadata={"backend": tool}
        ):
            report = self._format(buffer, tool)
        telemetry.record_event(
            "format.report",
            level="info" if report.ok else "warning",
            data={
                "tool": report.tool,
                "status": report.status.value,
                "added": report.lines_added,
                "removed": report.lines_removed,
            },
        )
        self._notify(_EVENTS[report.status], report)
        return report

    def close(self) -> None:
        if self._owns_registry:
            self.registry.close()

    def __enter__(self) -> "BufferFormatter":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def _notify(self, event: str, payload: object) -> None:
        try:
            self.bus.emit(event, payload)
        except Exception as exc:
            # subscriber errors never escape format()
            telemetry.record_event(
                "format.subscriber_failed",
                level="error",
                data={"event": event, "error": f"{type(exc).__name__}: {exc}"},
            )

    def _format(self, buffer: LineBuffer, tool: str) -> FormatReport:
        encoding = self.config.encoding
        try:
            backend = self.registry.resolve(tool)
            original = buffer_text(buffer).encode(encoding)
        except (UnknownBackendError, UnicodeEncodeError) as exc:
            return FormatReport(FormatStatus.FAILED, tool, str(exc))

        outcome = self._run_backend(backend, original)
        if outcome.kind is OutcomeKind.FAILED:
            return FormatReport(FormatStatus.FAILED, outcome.tool, outcome.diagnostics)
        if outcome.kind is OutcomeKind.NO_CHANGE or outcome.text is None:
            return FormatReport(FormatStatus.NO_CHANGE, outcome.tool, outcome.diagnostics)

        try:
            diff = compute_ed_diff(original, outcome.text, encoding=encoding)
        except UnicodeDecodeError as exc:
            return FormatReport(
                FormatStatus.FAILED, outcome.tool, f"cannot decode output: {exc}"
            )
        if not diff:
            return FormatReport(FormatStatus.NO_CHANGE, outcome.tool, outcome.diagnostics)

        try:
            with _edit_group(buffer):
                apply_ed_diff(buffer, diff)
        except (MalformedDiffError, BufferValidationError) as exc:
            return FormatReport(FormatStatus.FAILED, outcome.tool, str(exc))

        return FormatReport(
            FormatStatus.FORMATTED,
            outcome.tool,
            outcome.diagnostics,
            lines_added=diff.lines_added,
            lines_removed=diff.lines_removed,
        )

    def _run_backend(
        self, backend: FormatterBackend, content: bytes
    ) -> FormatOutcome:
        try:
            return backend.format(
                content, line_length=self.config.line_length, fast=self.config.fast
            )
        except Exception as exc:
            # installed third-party backends may raise
            return FormatOutcome.failed(backend.name, f"{type(exc).__name__}: {exc}")


def _edit_group(buffer: LineBuffer) -> ContextManager[object]:
    transaction = getattr(buffer, "transaction", None)
    if callable(transaction):
        return transaction("format")
    return nullcontext()


def format_buffer(
    buffer: LineBuffer,
    config: Optional[FormatterConfig] = None,
    *,
    registry: Optional[BackendRegistry] = None,
    bus: Optional[EventBus] = None,
) -> FormatReport:
    """One-shot formatting; a daemon started here is stopped before returning
    unless ``registry`` is supplied by the caller."""

    with BufferFormatter(config, registry=registry, bus=bus) as formatter:
        return formatter.format(buffer)


__all__ = ["BufferFormatter", "FormatReport", "FormatStatus", "format_buffer"]
