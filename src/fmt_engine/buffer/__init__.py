"""Buffer abstractions and undo data structures."""

from .buffer import Buffer, Transaction
from .document import BufferDocument
from .protocol import BufferValidationError, LineBuffer, buffer_text
from .state import BufferState, Cursor
from .undo import UndoEntry, UndoTimeline
from .validation import ensure_line_range

__all__ = [
    "Buffer",
    "BufferDocument",
    "BufferState",
    "BufferValidationError",
    "Cursor",
    "LineBuffer",
    "Transaction",
    "UndoEntry",
    "UndoTimeline",
    "buffer_text",
    "ensure_line_range",
]
