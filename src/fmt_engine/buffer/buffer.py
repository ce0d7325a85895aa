"""Concrete in-memory buffer combining document, cursor state, and undo."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import ContextManager, Optional, Sequence

from fmt_engine.runtime import telemetry

from .document import BufferDocument
from .state import BufferState, Cursor
from .undo import UndoEntry, UndoTimeline
from .validation import ensure_line_range


class Buffer:
    """Line-addressable text buffer implementing ``LineBuffer``."""

    def __init__(
        self,
        *,
        name: str = "default",
        document: Optional[BufferDocument] = None,
        state: Optional[BufferState] = None,
        undo: Optional[UndoTimeline] = None,
    ) -> None:
        self.name = name
        self.document = document or BufferDocument()
        self.state = state or BufferState()
        self.undo = undo or UndoTimeline()

    @classmethod
    def from_text(
        cls, text: str, *, name: str = "default", cursor: Cursor = (0, 0)
    ) -> "Buffer":
        buffer = cls(name=name, document=BufferDocument.from_text(text))
        buffer.set_cursor(*cursor)
        return buffer

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def line_count(self) -> int:
        return self.document.line_count

    @property
    def cursor(self) -> Cursor:
        return self.state.cursor

    def set_cursor(self, row: int, col: int) -> None:
        """Place the cursor, clamping both coordinates into the document."""

        last_row = max(self.document.line_count - 1, 0)
        row = min(max(row, 0), last_row)
        line_len = len(self.document.get_line(row)) if self.document.line_count else 0
        self.state.set_cursor(row, min(max(col, 0), line_len))

    def get_lines(self, start: int, end: int) -> Sequence[str]:
        ensure_line_range(self.document, start, end - start)
        return self.document.snapshot()[start:end]

    def insert_lines(self, index: int, lines: Sequence[str]) -> None:
        ensure_line_range(self.document, index, 0)
        if not lines:
            return
        self.document = self.document.update_lines(index, index, lines)
        self.state.shift_rows(index, len(lines))
        self._after_edit()

    def delete_lines(self, index: int, count: int) -> None:
        """Remove ``count`` whole lines; nothing is kept for later pasting."""

        ensure_line_range(self.document, index, count)
        if not count:
            return
        self.document = self.document.update_lines(index, index + count, ())
        self.state.shift_rows(index, -count)
        self._after_edit()

    def transaction(self, label: str) -> "Transaction":
        return Transaction(self, label)

    def _after_edit(self) -> None:
        self.set_cursor(*self.state.cursor)


class Transaction(AbstractContextManager["Transaction"]):
    """Groups buffer edits into one undo entry, rolling back on error."""

    def __init__(self, buffer: Buffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self._span_cm: Optional[ContextManager[object]] = None
        self._before_document: Optional[BufferDocument] = None
        self._before_cursor: Cursor = buffer.cursor

    def __enter__(self) -> "Transaction":
        self._before_document = self.buffer.document
        self._before_cursor = self.buffer.cursor
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component=True,
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        before = self._before_document
        assert before is not None
        if exc_type is not None:
            self.buffer.document = before
            self.buffer.state.set_cursor(*self._before_cursor)
        elif self.buffer.document is not before:
            self.buffer.undo.record(
                UndoEntry(
                    label=self.label,
                    before_text=before.text,
                    after_text=self.buffer.text,
                    cursor_before=self._before_cursor,
                    cursor_after=self.buffer.cursor,
                )
            )
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False
