"""Bounded undo/redo history of grouped buffer edits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .state import Cursor


@dataclass(frozen=True, slots=True)
class UndoEntry:
    """Whole-text snapshot pair recorded when a transaction commits."""

    label: str
    before_text: str
    after_text: str
    cursor_before: Cursor
    cursor_after: Cursor


class UndoTimeline:
    """Linear history; recording after an undo discards the redo tail."""

    def __init__(self, *, max_entries: int = 100) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: List[UndoEntry] = []
        self._position = 0  # entries[:position] are undoable

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: UndoEntry) -> None:
        del self._entries[self._position :]
        self._entries.append(entry)
        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            del self._entries[:overflow]
        self._position = len(self._entries)

    def peek(self) -> Optional[UndoEntry]:
        return self._entries[self._position - 1] if self._position else None

    def undo(self) -> Optional[UndoEntry]:
        if not self._position:
            return None
        self._position -= 1
        return self._entries[self._position]

    def redo(self) -> Optional[UndoEntry]:
        if self._position >= len(self._entries):
            return None
        self._position += 1
        return self._entries[self._position - 1]
