"""Ed-style (``diff -n``) line diff model and parser.

A script is a sequence of blocks. Each block starts with a header ``aN C``
(append ``C`` lines after original line ``N``) or ``dN C`` (delete ``C``
lines starting at original line ``N``). Append headers are followed by
exactly ``C`` literal lines of new text. No other line shapes are valid.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Tuple

_HEADER = re.compile(r"^([ad])([0-9]+) ([0-9]+)$")


class MalformedDiffError(ValueError):
    """Raised when ed-script text or an op anchor does not fit the buffer."""

    def __init__(
        self,
        message: str,
        *,
        line_number: int | None = None,
        line: str | None = None,
    ) -> None:
        if line_number is not None:
            message = f"{message} (script line {line_number}: {line!r})"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class EdOpKind(str, Enum):
    APPEND = "a"
    DELETE = "d"


@dataclass(frozen=True, slots=True)
class EdDiffOp:
    """One block of an ed script, anchored to a 1-based original line."""

    kind: EdOpKind
    from_line: int
    count: int
    lines: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", EdOpKind(self.kind))
        object.__setattr__(self, "lines", tuple(self.lines))
        if self.count < 0:
            raise MalformedDiffError(f"negative count in {self.header!r}")
        # diff -n anchors prepends at line 0; deletes always name a real line
        minimum = 0 if self.kind is EdOpKind.APPEND else 1
        if self.from_line < minimum:
            raise MalformedDiffError(f"line number out of range in {self.header!r}")
        if self.kind is EdOpKind.APPEND and len(self.lines) != self.count:
            raise MalformedDiffError(
                f"{self.header!r} carries {len(self.lines)} lines of text"
            )
        if self.kind is EdOpKind.DELETE and self.lines:
            raise MalformedDiffError(f"{self.header!r} cannot carry text")

    @property
    def header(self) -> str:
        return f"{self.kind.value}{self.from_line} {self.count}"


@dataclass(frozen=True, slots=True)
class EdDiff:
    """Ordered ops in the order the diff tool emitted them."""

    ops: Tuple[EdDiffOp, ...] = ()

    def __iter__(self) -> Iterator[EdDiffOp]:
        return iter(self.ops)

    def __len__(self) -> int:
        return len(self.ops)

    def __bool__(self) -> bool:
        return bool(self.ops)

    @property
    def lines_added(self) -> int:
        return sum(op.count for op in self.ops if op.kind is EdOpKind.APPEND)

    @property
    def lines_removed(self) -> int:
        return sum(op.count for op in self.ops if op.kind is EdOpKind.DELETE)

    def render(self) -> str:
        out: List[str] = []
        for op in self.ops:
            out.append(op.header)
            out.extend(op.lines)
        return "".join(f"{line}\n" for line in out)


def _script_lines(text: str) -> List[str]:
    if not text:
        return []
    # The final newline terminates the last line rather than opening a new one.
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n")


def iter_ed_diff(text: str) -> Iterator[EdDiffOp]:
    """Yield ops from ``text`` in document order, raising on the first bad line."""

    lines = _script_lines(text)
    index = 0
    while index < len(lines):
        header = lines[index]
        match = _HEADER.match(header)
        if match is None:
            raise MalformedDiffError(
                "expected an 'aN C' or 'dN C' header",
                line_number=index + 1,
                line=header,
            )
        header_number = index + 1
        tag, from_line, count = match.group(1), int(match.group(2)), int(match.group(3))
        index += 1
        body: Tuple[str, ...] = ()
        if tag == EdOpKind.APPEND.value:
            body = tuple(lines[index : index + count])
            if len(body) != count:
                raise MalformedDiffError(
                    f"append block wants {count} lines, script has {len(body)}",
                    line_number=header_number,
                    line=header,
                )
            index += count
        try:
            op = EdDiffOp(EdOpKind(tag), from_line, count, body)
        except MalformedDiffError as exc:
            raise MalformedDiffError(
                str(exc), line_number=header_number, line=header
            ) from exc
        yield op


def parse_ed_diff(text: str) -> EdDiff:
    return EdDiff(tuple(iter_ed_diff(text)))


def as_ed_diff(ops: Iterable[EdDiffOp] | str) -> EdDiff:
    if isinstance(ops, EdDiff):
        return ops
    if isinstance(ops, str):
        return parse_ed_diff(ops)
    return EdDiff(tuple(ops))


__all__ = [
    "EdDiff",
    "EdDiffOp",
    "EdOpKind",
    "MalformedDiffError",
    "as_ed_diff",
    "iter_ed_diff",
    "parse_ed_diff",
]
