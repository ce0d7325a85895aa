"""Host boundary: the line-addressable buffer the patch engine edits."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from .state import Cursor


@runtime_checkable
class LineBuffer(Protocol):
    """Minimal surface a host text container exposes to the formatter.

    Rows are 0-based. ``insert_lines(index, ...)`` inserts before ``index``;
    ``index == line_count`` appends at the end. Implementations move the
    cursor row along with inserted and deleted lines.
    """

    @property
    def line_count(self) -> int: ...

    @property
    def cursor(self) -> Cursor: ...

    def get_lines(self, start: int, end: int) -> Sequence[str]: ...

    def insert_lines(self, index: int, lines: Sequence[str]) -> None: ...

    def delete_lines(self, index: int, count: int) -> None: ...

    def set_cursor(self, row: int, col: int) -> None: ...


def buffer_text(buffer: LineBuffer) -> str:
    """Join every line of ``buffer`` back into its full text."""

    return "\n".join(buffer.get_lines(0, buffer.line_count))


class BufferValidationError(RuntimeError):
    """Raised when a line range or cursor falls outside the document."""

    def __init__(self, message: str, *, cursor: Cursor | None = None) -> None:
        super().__init__(message)
        self.cursor = cursor
