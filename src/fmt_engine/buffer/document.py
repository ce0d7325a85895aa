"""Core document data structures for fmt_engine buffers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence


@dataclass(slots=True)
class BufferDocument:
    """Versioned list-of-lines text storage.

    Text is split on ``"\\n"`` only, so ``"a\\nb\\n"`` is stored as
    ``["a", "b", ""]`` and joining with ``"\\n"`` gives back the exact input.
    Every edit returns a new document with a bumped version.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    version: int = 0

    @classmethod
    def from_text(cls, text: str) -> "BufferDocument":
        return cls(_lines=text.split("\n"), version=0)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def snapshot(self) -> Sequence[str]:
        """Return the current lines without exposing internal mutability."""

        return tuple(self._lines)

    def update_lines(
        self, start: int, end: int, new_lines: Iterable[str]
    ) -> "BufferDocument":
        """Return a document with ``[start:end]`` replaced by ``new_lines``."""

        lines = list(self._lines)
        lines[start:end] = list(new_lines)
        return BufferDocument(_lines=lines, version=self.version + 1)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]
