"""Validation helpers shared across buffer services."""

from __future__ import annotations

from .document import BufferDocument
from .protocol import BufferValidationError


def ensure_line_range(document: BufferDocument, start: int, count: int) -> None:
    """Check that ``count`` lines starting at ``start`` exist.

    ``count == 0`` validates an insertion point, which may sit one past the
    last line.
    """

    if count < 0:
        raise BufferValidationError(f"Negative line count {count}")
    if start < 0 or start + count > document.line_count:
        raise BufferValidationError(
            f"Lines {start}..{start + count} outside document of "
            f"{document.line_count} lines"
        )
