from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from fmt_engine.backends import BackendRegistry, FormatOutcome
from fmt_engine.buffer import Buffer, BufferValidationError
from fmt_engine.events import EventBus
from fmt_engine.orchestrator import (
    BufferFormatter,
    FormatReport,
    FormatStatus,
    format_buffer,
)
from fmt_engine.runtime.config import FormatterConfig


class StubBackend:
    def __init__(
        self,
        outcome: Optional[FormatOutcome] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.name = "stub"
        self.outcome = outcome
        self.error = error
        self.calls: List[Tuple[bytes, Optional[int], bool]] = []
        self.closed = False

    def format(
        self, content: bytes, *, line_length: Optional[int] = None, fast: bool = False
    ) -> FormatOutcome:
        self.calls.append((content, line_length, fast))
        if self.error is not None:
            raise self.error
        assert self.outcome is not None
        return self.outcome

    def close(self) -> None:
        self.closed = True


class ReadOnlyInsertBuffer(Buffer):
    def insert_lines(self, index: int, lines: Sequence[str]) -> None:
        raise BufferValidationError("buffer is read-only")


def make_formatter(
    backend: StubBackend, **config: object
) -> Tuple[BufferFormatter, List[Tuple[str, object]]]:
    registry = BackendRegistry(load_defaults=False)
    registry.install("stub", backend)
    bus = EventBus()
    events: List[Tuple[str, object]] = []
    for name in ("format.start", "format.no_change", "format.applied", "format.failed"):
        bus.subscribe(name, lambda payload, name=name: events.append((name, payload)))
    formatter = BufferFormatter(
        FormatterConfig(backend="stub", **config),  # type: ignore[arg-type]
        registry=registry,
        bus=bus,
    )
    return formatter, events


def test_formatted_output_is_applied_as_one_undo_step() -> None:
    backend = StubBackend(FormatOutcome.formatted("stub", b"x = 1\ny = 2\n"))
    formatter, events = make_formatter(backend, line_length=79)
    buffer = Buffer.from_text("x=1\ny = 2\n", cursor=(1, 3))

    report = formatter.format(buffer)

    assert report.status is FormatStatus.FORMATTED
    assert (report.lines_added, report.lines_removed) == (1, 1)
    assert buffer.text == "x = 1\ny = 2\n"
    assert buffer.cursor == (1, 3)
    assert len(buffer.undo) == 1
    assert backend.calls == [(b"x=1\ny = 2\n", 79, False)]
    assert [name for name, _ in events] == ["format.start", "format.applied"]
    assert events[0][1] == "stub"
    assert events[1][1] is report


def test_no_change_leaves_buffer_alone() -> None:
    formatter, events = make_formatter(StubBackend(FormatOutcome.no_change("stub")))
    buffer = Buffer.from_text("x = 1\n")
    before = buffer.document

    report = formatter.format(buffer)

    assert report.status is FormatStatus.NO_CHANGE
    assert report.ok
    assert buffer.document is before
    assert len(buffer.undo) == 0
    assert [name for name, _ in events] == ["format.start", "format.no_change"]


def test_identical_formatted_output_counts_as_no_change() -> None:
    formatter, _ = make_formatter(
        StubBackend(FormatOutcome.formatted("stub", b"x = 1\n"))
    )
    buffer = Buffer.from_text("x = 1\n")

    report = formatter.format(buffer)

    assert report.status is FormatStatus.NO_CHANGE
    assert len(buffer.undo) == 0


def test_backend_failure_is_reported_without_edits() -> None:
    formatter, events = make_formatter(
        StubBackend(FormatOutcome.failed("stub", "error: cannot parse"))
    )
    buffer = Buffer.from_text("x = (\n")

    report = formatter.format(buffer)

    assert report.status is FormatStatus.FAILED
    assert not report.ok
    assert report.diagnostics == "error: cannot parse"
    assert buffer.text == "x = (\n"
    assert events[-1] == ("format.failed", report)


def test_raising_backend_becomes_failure() -> None:
    formatter, _ = make_formatter(StubBackend(error=RuntimeError("boom")))

    report = formatter.format(Buffer.from_text("x\n"))

    assert report.status is FormatStatus.FAILED
    assert report.diagnostics == "RuntimeError: boom"


def test_unknown_backend_becomes_failure() -> None:
    formatter, _ = make_formatter(StubBackend(FormatOutcome.no_change("stub")))
    formatter.config.backend = "missing"

    report = formatter.format(Buffer.from_text("x\n"))

    assert report.status is FormatStatus.FAILED
    assert report.tool == "missing"
    assert "Unknown backend 'missing'" in report.diagnostics


def test_undecodable_output_becomes_failure() -> None:
    formatter, _ = make_formatter(
        StubBackend(FormatOutcome.formatted("stub", b"\xff\xfe\n"))
    )
    buffer = Buffer.from_text("x\n")

    report = formatter.format(buffer)

    assert report.status is FormatStatus.FAILED
    assert "cannot decode" in report.diagnostics
    assert buffer.text == "x\n"


def test_failed_edit_rolls_buffer_back() -> None:
    formatter, _ = make_formatter(
        StubBackend(FormatOutcome.formatted("stub", b"x = 1\n"))
    )
    buffer = ReadOnlyInsertBuffer.from_text("x=1\n", cursor=(0, 2))

    report = formatter.format(buffer)

    assert report.status is FormatStatus.FAILED
    assert "read-only" in report.diagnostics
    assert buffer.text == "x=1\n"
    assert buffer.cursor == (0, 2)
    assert len(buffer.undo) == 0


def test_format_buffer_leaves_caller_registry_open() -> None:
    backend = StubBackend(FormatOutcome.formatted("stub", b"a = 1\n"))
    registry = BackendRegistry(load_defaults=False)
    registry.install("stub", backend)
    buffer = Buffer.from_text("a=1\n")

    report = format_buffer(buffer, FormatterConfig(backend="stub"), registry=registry)

    assert isinstance(report, FormatReport)
    assert report.status is FormatStatus.FORMATTED
    assert buffer.text == "a = 1\n"
    assert not backend.closed


def test_raising_subscriber_does_not_escape_format() -> None:
    formatter, events = make_formatter(
        StubBackend(FormatOutcome.formatted("stub", b"x = 1\n"))
    )

    def broken(payload: object) -> None:
        raise RuntimeError("status bar gone")

    formatter.bus.subscribe("format.start", broken)
    formatter.bus.subscribe("format.applied", broken)
    buffer = Buffer.from_text("x=1\n")

    report = formatter.format(buffer)

    assert report.status is FormatStatus.FORMATTED
    assert buffer.text == "x = 1\n"
    assert len(buffer.undo) == 1
    assert [name for name, _ in events] == ["format.start", "format.applied"]
