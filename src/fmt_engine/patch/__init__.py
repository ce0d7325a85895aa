"""Ed-style diff computation, parsing, and replay."""

from .apply import apply_ed_diff
from .compute import compute_ed_diff, diff_lines
from .ed_diff import (
    EdDiff,
    EdDiffOp,
    EdOpKind,
    MalformedDiffError,
    iter_ed_diff,
    parse_ed_diff,
)

__all__ = [
    "EdDiff",
    "EdDiffOp",
    "EdOpKind",
    "MalformedDiffError",
    "apply_ed_diff",
    "compute_ed_diff",
    "diff_lines",
    "iter_ed_diff",
    "parse_ed_diff",
]
