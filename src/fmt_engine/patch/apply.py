"""Replay an ed-style diff against a live buffer with minimal line edits."""

from __future__ import annotations

from typing import Iterable

from fmt_engine.buffer.protocol import LineBuffer
from fmt_engine.runtime import telemetry

from .ed_diff import EdDiff, EdDiffOp, EdOpKind, MalformedDiffError, as_ed_diff


def apply_ed_diff(buffer: LineBuffer, diff: EdDiff | str | Iterable[EdDiffOp]) -> int:
    """Apply ``diff`` to ``buffer`` in place and return the number of ops replayed.

    Ops are anchored to original-file line numbers. ``line_offset`` tracks how
    far the buffer has drifted from that numbering: deletes push it up,
    appends push it down, so every anchor maps to its buffer line in a single
    forward pass.

    Text input is parsed completely before the buffer is touched. An anchor
    that falls outside the buffer raises ``MalformedDiffError`` part way
    through; callers wanting all-or-nothing semantics wrap the call in a
    transaction.

    The cursor keeps its column; its row is whatever the buffer's own line
    tracking left it on.
    """

    ops = as_ed_diff(diff)
    if not ops:
        return 0

    _, column = buffer.cursor
    line_offset = 0
    with telemetry.span(
        "patch::apply", component="patch", metadata={"ops": len(ops)}
    ):
        for op in ops:
            if op.kind is EdOpKind.APPEND:
                line_offset -= op.count
                index = op.from_line - op.count - line_offset
                _check_anchor(buffer, op, index, 0)
                buffer.insert_lines(index, op.lines)
            else:
                index = op.from_line - line_offset - 1
                _check_anchor(buffer, op, index, op.count)
                buffer.delete_lines(index, op.count)
                line_offset += op.count

        _restore_column(buffer, column)

    telemetry.record_event(
        "patch.applied",
        level="debug",
        data={
            "ops": len(ops),
            "added": ops.lines_added,
            "removed": ops.lines_removed,
        },
    )
    return len(ops)


def _check_anchor(buffer: LineBuffer, op: EdDiffOp, index: int, count: int) -> None:
    if index < 0 or index + count > buffer.line_count:
        raise MalformedDiffError(
            f"{op.header!r} maps to buffer lines {index}..{index + count}, "
            f"buffer has {buffer.line_count}"
        )


def _restore_column(buffer: LineBuffer, column: int) -> None:
    if not buffer.line_count:
        return
    row, _ = buffer.cursor
    row = min(row, buffer.line_count - 1)
    line = buffer.get_lines(row, row + 1)[0]
    buffer.set_cursor(row, min(column, len(line)))


__all__ = ["apply_ed_diff"]
