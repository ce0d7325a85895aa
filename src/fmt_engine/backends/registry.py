"""Backend registry: maps configured names to live formatter backends."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, Optional

from fmt_engine.daemon import DaemonSupervisor
from fmt_engine.runtime.config import (
    DEFAULT_BACKENDS,
    BackendConfig,
    BackendKind,
    DaemonConfig,
)
from fmt_engine.runtime.telemetry import span

from .base import FormatterBackend
from .daemon_backend import DaemonBackend
from .subprocess_backend import SubprocessBackend

SupervisorFactory = Callable[[DaemonConfig, str], DaemonSupervisor]


@dataclass(slots=True)
class RegistryStats:
    """Lightweight snapshot describing registry state."""

    backend_count: int
    live_count: int
    names: tuple[str, ...]


class BackendConflictError(RuntimeError):
    """Raised when registering a name that is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Backend '{name}' already registered")
        self.name = name


class UnknownBackendError(KeyError):
    """Raised when resolving a name no backend was registered under."""

    def __init__(self, name: str, known: Iterable[str]) -> None:
        known_names = ", ".join(sorted(known))
        super().__init__(f"Unknown backend '{name}' (known: {known_names})")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


def _default_supervisor(config: DaemonConfig, name: str) -> DaemonSupervisor:
    return DaemonSupervisor(config, name=name)


class BackendRegistry:
    """Owns backend configs and the lazily built backend instances.

    Each daemon backend gets its own ``DaemonSupervisor``, so there is one
    process handle per configured daemon.
    """

    def __init__(
        self,
        *,
        daemon: Optional[DaemonConfig] = None,
        load_defaults: bool = True,
        supervisor_factory: SupervisorFactory = _default_supervisor,
    ) -> None:
        self.daemon = daemon or DaemonConfig()
        self._configs: Dict[str, BackendConfig] = {}
        self._live: Dict[str, FormatterBackend] = {}
        self._supervisor_factory = supervisor_factory
        if load_defaults:
            for config in DEFAULT_BACKENDS:
                self.register(config)

    def __contains__(self, name: object) -> bool:
        return name in self._configs or name in self._live

    def names(self) -> Iterator[str]:
        yield from sorted(set(self._configs) | set(self._live))

    def get_config(self, name: str) -> BackendConfig:
        try:
            return self._configs[name]
        except KeyError:
            raise UnknownBackendError(name, self.names()) from None

    def register(self, config: BackendConfig, *, replace: bool = False) -> BackendConfig:
        with span(
            "backends::register",
            component="backends",
            metadata={"backend": config.name, "kind": config.kind.value},
        ):
            if config.name in self and not replace:
                raise BackendConflictError(config.name)
            stale = self._live.pop(config.name, None)
            if stale is not None:
                stale.close()
            self._configs[config.name] = config
            return config

    def install(
        self, name: str, backend: FormatterBackend, *, replace: bool = False
    ) -> FormatterBackend:
        """Plug in a prebuilt backend under ``name``."""

        if name in self and not replace:
            raise BackendConflictError(name)
        stale = self._live.pop(name, None)
        if stale is not None and stale is not backend:
            stale.close()
        self._configs.pop(name, None)
        self._live[name] = backend
        return backend

    def resolve(self, name: str) -> FormatterBackend:
        backend = self._live.get(name)
        if backend is not None:
            return backend
        config = self.get_config(name)
        with span(
            "backends::build",
            component="backends",
            metadata={"backend": name, "kind": config.kind.value},
        ):
            if config.kind is BackendKind.DAEMON:
                daemon = self.daemon
                if config.command:
                    daemon = dataclasses.replace(
                        daemon, command=config.command, args=config.args
                    )
                backend = DaemonBackend(
                    self._supervisor_factory(daemon, name), name=name
                )
            else:
                backend = SubprocessBackend(config)
        self._live[name] = backend
        return backend

    def stats(self) -> RegistryStats:
        names = tuple(self.names())
        return RegistryStats(
            backend_count=len(names), live_count=len(self._live), names=names
        )

    def close(self) -> None:
        """Close every live backend, stopping any daemons they started."""

        for name, backend in list(self._live.items()):
            backend.close()
            if name in self._configs:
                del self._live[name]


__all__ = [
    "BackendConflictError",
    "BackendRegistry",
    "RegistryStats",
    "UnknownBackendError",
]
