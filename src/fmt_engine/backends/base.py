"""Uniform result type and protocol shared by formatter backends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class OutcomeKind(str, Enum):
    NO_CHANGE = "no_change"
    FORMATTED = "formatted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FormatOutcome:
    """Result of one formatting attempt.

    ``text`` is set only for ``FORMATTED``. ``diagnostics`` holds whatever the
    tool printed; for ``FAILED`` it explains the failure.
    """

    kind: OutcomeKind
    tool: str
    text: Optional[bytes] = None
    diagnostics: str = ""

    @classmethod
    def no_change(cls, tool: str, diagnostics: str = "") -> "FormatOutcome":
        return cls(OutcomeKind.NO_CHANGE, tool, diagnostics=diagnostics)

    @classmethod
    def formatted(
        cls, tool: str, text: bytes, diagnostics: str = ""
    ) -> "FormatOutcome":
        return cls(OutcomeKind.FORMATTED, tool, text=text, diagnostics=diagnostics)

    @classmethod
    def failed(cls, tool: str, diagnostics: str) -> "FormatOutcome":
        return cls(OutcomeKind.FAILED, tool, diagnostics=diagnostics)

    @property
    def ok(self) -> bool:
        return self.kind is not OutcomeKind.FAILED


class FormatterBackend(Protocol):
    """Runs one external formatter against raw source bytes."""

    name: str

    def format(
        self, content: bytes, *, line_length: Optional[int] = None, fast: bool = False
    ) -> FormatOutcome:
        """Format ``content``; never raises for tool or transport failures."""
        ...

    def close(self) -> None:
        """Release long-lived resources (clients, daemons)."""
        ...


__all__ = ["FormatOutcome", "FormatterBackend", "OutcomeKind"]
