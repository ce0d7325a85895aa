"""Cursor and change tracking state for buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

Cursor = Tuple[int, int]  # (row, column)


@dataclass(slots=True)
class BufferState:
    """Mutable cursor position of a buffer."""

    cursor: Cursor = (0, 0)

    def set_cursor(self, row: int, col: int) -> None:
        self.cursor = (row, col)

    def shift_rows(self, at: int, delta: int) -> None:
        """Move the cursor row by ``delta`` when it sits at or below ``at``."""

        row, col = self.cursor
        if row >= at:
            self.cursor = (max(at, row + delta), col)
