"""Supervision of long-lived formatting daemons."""

from .supervisor import (
    DaemonHandle,
    DaemonStartError,
    DaemonState,
    DaemonSupervisor,
    StartStatus,
)

__all__ = [
    "DaemonHandle",
    "DaemonStartError",
    "DaemonState",
    "DaemonSupervisor",
    "StartStatus",
]
