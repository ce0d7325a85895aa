"""Runtime services: telemetry and configuration."""

from . import telemetry
from .config import (
    BackendConfig,
    BackendKind,
    ConfigError,
    DaemonConfig,
    FormatterConfig,
    StartupStrategy,
)

__all__ = [
    "telemetry",
    "BackendConfig",
    "BackendKind",
    "ConfigError",
    "DaemonConfig",
    "FormatterConfig",
    "StartupStrategy",
]
