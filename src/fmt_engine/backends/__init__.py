"""Formatter backends and their registry."""

from .base import FormatOutcome, FormatterBackend, OutcomeKind
from .daemon_backend import DaemonBackend
from .registry import (
    BackendConflictError,
    BackendRegistry,
    RegistryStats,
    UnknownBackendError,
)
from .subprocess_backend import SubprocessBackend

__all__ = [
    "BackendConflictError",
    "BackendRegistry",
    "DaemonBackend",
    "FormatOutcome",
    "FormatterBackend",
    "OutcomeKind",
    "RegistryStats",
    "SubprocessBackend",
    "UnknownBackendError",
]
