"""Minimal-edit buffer formatting through external formatter backends."""

__all__ = [
    "backends",
    "buffer",
    "cli",
    "daemon",
    "events",
    "orchestrator",
    "patch",
    "runtime",
]

__version__ = "0.1.0"
