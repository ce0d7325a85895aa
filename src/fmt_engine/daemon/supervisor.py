"""Lifecycle management for the optional background formatting daemon."""

from __future__ import annotations

import atexit
import socket
import subprocess
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from fmt_engine.runtime import telemetry
from fmt_engine.runtime.config import DaemonConfig, StartupStrategy


class DaemonStartError(RuntimeError):
    """Raised when the daemon process cannot be spawned."""


class DaemonState(str, Enum):
    ABSENT = "absent"
    STARTING = "starting"
    RUNNING = "running"


class StartStatus(str, Enum):
    ALREADY_RUNNING = "already_running"
    JUST_STARTED = "just_started"


@dataclass(slots=True)
class DaemonHandle:
    process: Any  # subprocess.Popen or a compatible object
    host: str
    port: int

    @property
    def pid(self) -> int:
        return int(self.process.pid)

    def is_alive(self) -> bool:
        return self.process.poll() is None


class DaemonSupervisor:
    """Owns one daemon process: lazy start, liveness check, explicit stop.

    ``ensure_running`` and ``stop`` are serialized by a lock; callers still
    run one format request per buffer at a time.
    """

    def __init__(
        self,
        config: DaemonConfig,
        *,
        name: str = "blackd",
        popen: Callable[..., Any] = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        connect: Callable[..., Any] = socket.create_connection,
    ) -> None:
        self.config = config
        self.name = name
        self._popen = popen
        self._sleep = sleep
        self._clock = clock
        self._connect = connect
        self._lock = threading.RLock()
        self._handle: Optional[DaemonHandle] = None
        self._state = DaemonState.ABSENT
        self._atexit_registered = False

    @property
    def handle(self) -> Optional[DaemonHandle]:
        return self._handle

    @property
    def state(self) -> DaemonState:
        with self._lock:
            if self._handle is not None and not self._handle.is_alive():
                self._forget("exited")
            return self._state

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    def command_line(self) -> List[str]:
        cfg = self.config
        return [
            cfg.command,
            *cfg.args,
            cfg.host_flag,
            cfg.host,
            cfg.port_flag,
            str(cfg.port),
        ]

    def ensure_running(self) -> StartStatus:
        with self._lock:
            if self._handle is not None and self._handle.is_alive():
                return StartStatus.ALREADY_RUNNING
            if self._handle is not None:
                self._forget("exited")

            argv = self.command_line()
            try:
                process = self._popen(
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as exc:
                raise DaemonStartError(f"cannot start {argv[0]!r}: {exc}") from exc

            self._handle = DaemonHandle(process, self.config.host, self.config.port)
            self._state = DaemonState.STARTING
            if not self._atexit_registered:
                atexit.register(self.stop)
                self._atexit_registered = True
            telemetry.record_event(
                "daemon.started",
                data={"daemon": self.name, "pid": self._handle.pid, "argv": argv},
            )
            return StartStatus.JUST_STARTED

    def wait_until_ready(self) -> bool:
        """Block until a just-started daemon should accept requests.

        With the ``wait`` strategy this sleeps the configured grace period and
        returns True. With ``poll`` it connects to the port until it answers,
        giving up once the grace period has elapsed; False means the daemon
        never answered and requests may fail.
        """

        grace = self.config.startup_grace
        if self.config.startup_strategy is StartupStrategy.WAIT:
            self._sleep(grace)
            self._mark_running()
            return True

        deadline = self._clock() + grace
        while True:
            handle = self._handle
            if handle is None or not handle.is_alive():
                return False
            try:
                conn = self._connect((self.config.host, self.config.port), timeout=0.1)
            except OSError:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    break
                self._sleep(min(0.05, remaining))
                continue
            conn.close()
            self._mark_running()
            return True

        telemetry.record_event(
            "daemon.unready",
            level="warning",
            data={"daemon": self.name, "grace": grace},
        )
        self._mark_running()
        return False

    def stop(self) -> None:
        with self._lock:
            if self._atexit_registered:
                atexit.unregister(self.stop)
                self._atexit_registered = False
            handle = self._handle
            if handle is None:
                return
            self._handle = None
            self._state = DaemonState.ABSENT
            if handle.is_alive():
                handle.process.terminate()
                try:
                    handle.process.wait(timeout=self.config.stop_timeout)
                except subprocess.TimeoutExpired:
                    handle.process.kill()
                    handle.process.wait()
            telemetry.record_event(
                "daemon.stopped", data={"daemon": self.name, "pid": handle.pid}
            )

    def __enter__(self) -> "DaemonSupervisor":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.stop()
        return False

    def _mark_running(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._state = DaemonState.RUNNING

    def _forget(self, reason: str) -> None:
        handle = self._handle
        self._handle = None
        self._state = DaemonState.ABSENT
        if handle is not None:
            telemetry.record_event(
                "daemon.lost",
                level="warning",
                data={"daemon": self.name, "pid": handle.pid, "reason": reason},
            )


__all__ = [
    "DaemonHandle",
    "DaemonStartError",
    "DaemonState",
    "DaemonSupervisor",
    "StartStatus",
]
