"""Configuration values consumed by the formatting core."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

ENV_PREFIX = "FMT_ENGINE_"


class ConfigError(ValueError):
    """Raised when a configuration value cannot be interpreted."""


class BackendKind(str, Enum):
    SUBPROCESS = "subprocess"
    DAEMON = "daemon"


class StartupStrategy(str, Enum):
    """How callers wait for a freshly spawned daemon."""

    WAIT = "wait"  # sleep the full grace period
    POLL = "poll"  # connect until the port answers or the grace period ends


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Command-line shape of one formatting backend."""

    name: str
    kind: BackendKind = BackendKind.SUBPROCESS
    command: str = ""
    args: Tuple[str, ...] = ()
    in_place_flag: Optional[str] = None
    line_length_flag: Optional[str] = None
    fast_flag: Optional[str] = None
    suffix: str = ".py"
    cwd: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("backend name cannot be empty")
        object.__setattr__(self, "kind", BackendKind(self.kind))
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True, slots=True)
class DaemonConfig:
    command: str = "blackd"
    args: Tuple[str, ...] = ()
    host: str = "localhost"
    port: int = 45484
    host_flag: str = "--bind-host"
    port_flag: str = "--bind-port"
    startup_grace: float = 2.0
    startup_strategy: StartupStrategy = StartupStrategy.WAIT
    request_timeout: float = 5.0
    stop_timeout: float = 2.0

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ConfigError(f"daemon port out of range: {self.port}")
        if self.startup_grace < 0:
            raise ConfigError("startup_grace cannot be negative")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        object.__setattr__(
            self, "startup_strategy", StartupStrategy(self.startup_strategy)
        )
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def endpoint(self) -> str:
        return f"http://{self.host}:{self.port}/"


DEFAULT_BACKENDS: Tuple[BackendConfig, ...] = (
    BackendConfig(
        name="black",
        command="black",
        args=("--quiet",),
        line_length_flag="--line-length",
        fast_flag="--fast",
    ),
    BackendConfig(
        name="autopep8",
        command="autopep8",
        in_place_flag="--in-place",
        line_length_flag="--max-line-length",
    ),
    BackendConfig(name="yapf", command="yapf", in_place_flag="--in-place"),
    BackendConfig(
        name="isort",
        command="isort",
        args=("--quiet",),
        line_length_flag="--line-length",
    ),
    BackendConfig(
        name="ruff",
        command="ruff",
        args=("format", "--quiet"),
        line_length_flag="--line-length",
    ),
    BackendConfig(name="blackd", kind=BackendKind.DAEMON),
)


@dataclass(slots=True)
class FormatterConfig:
    """Top-level settings for one formatting run."""

    backend: str = "black"
    line_length: Optional[int] = None
    fast: bool = False
    encoding: str = "utf-8"
    daemon: DaemonConfig = field(default_factory=DaemonConfig)
    backends: Dict[str, BackendConfig] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.line_length is not None and self.line_length <= 0:
            raise ConfigError("line_length must be positive")

    def with_backend(self, backend: BackendConfig) -> "FormatterConfig":
        """Return a copy where ``backend`` overrides the entry of the same name."""

        backends = dict(self.backends)
        backends[backend.name] = backend
        return replace(self, backends=backends)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FormatterConfig":
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(f"{ENV_PREFIX}{name}")
            return value if value else None

        daemon_kwargs: Dict[str, object] = {}
        if get("DAEMON_COMMAND"):
            daemon_kwargs["command"] = get("DAEMON_COMMAND")
        if get("DAEMON_HOST"):
            daemon_kwargs["host"] = get("DAEMON_HOST")
        if get("DAEMON_PORT"):
            daemon_kwargs["port"] = _parse_int("DAEMON_PORT", get("DAEMON_PORT"))
        if get("DAEMON_GRACE"):
            daemon_kwargs["startup_grace"] = _parse_float(
                "DAEMON_GRACE", get("DAEMON_GRACE")
            )
        if get("DAEMON_TIMEOUT"):
            daemon_kwargs["request_timeout"] = _parse_float(
                "DAEMON_TIMEOUT", get("DAEMON_TIMEOUT")
            )
        if get("DAEMON_STARTUP"):
            try:
                daemon_kwargs["startup_strategy"] = StartupStrategy(
                    str(get("DAEMON_STARTUP")).lower()
                )
            except ValueError as exc:
                raise ConfigError(
                    f"{ENV_PREFIX}DAEMON_STARTUP must be 'wait' or 'poll'"
                ) from exc

        line_length = get("LINE_LENGTH")
        return cls(
            backend=get("BACKEND") or "black",
            line_length=_parse_int("LINE_LENGTH", line_length) if line_length else None,
            fast=(get("FAST") or "").lower() in {"1", "true", "yes", "on"},
            encoding=get("ENCODING") or "utf-8",
            daemon=DaemonConfig(**daemon_kwargs),  # type: ignore[arg-type]
        )


def _parse_int(name: str, raw: Optional[str]) -> int:
    try:
        return int(str(raw))
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def _parse_float(name: str, raw: Optional[str]) -> float:
    try:
        return float(str(raw))
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


__all__ = [
    "BackendConfig",
    "BackendKind",
    "ConfigError",
    "DEFAULT_BACKENDS",
    "DaemonConfig",
    "FormatterConfig",
    "StartupStrategy",
]
