"""Ed-style diff between a buffer's content and a formatter's output."""

from __future__ import annotations

import difflib
from typing import List, Sequence

from .ed_diff import EdDiff, EdDiffOp, EdOpKind


def compute_ed_diff(
    original: bytes, formatted: bytes, *, encoding: str = "utf-8"
) -> EdDiff:
    """Return the append/delete script turning ``original`` into ``formatted``.

    Byte-identical inputs short-circuit to an empty diff. A changed region is
    expressed as a delete of the old lines followed by an append anchored
    after the last deleted line, the same shape ``diff -n`` produces.
    """

    if original == formatted:
        return EdDiff()
    return diff_lines(
        original.decode(encoding).split("\n"),
        formatted.decode(encoding).split("\n"),
    )


def diff_lines(before: Sequence[str], after: Sequence[str]) -> EdDiff:
    matcher = difflib.SequenceMatcher(None, before, after, autojunk=False)
    ops: List[EdDiffOp] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        if tag in ("delete", "replace"):
            ops.append(EdDiffOp(EdOpKind.DELETE, i1 + 1, i2 - i1))
        if tag in ("insert", "replace"):
            ops.append(EdDiffOp(EdOpKind.APPEND, i2, j2 - j1, tuple(after[j1:j2])))
    return EdDiff(tuple(ops))


__all__ = ["compute_ed_diff", "diff_lines"]
