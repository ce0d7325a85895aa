"""Backend posting source to a blackd-style HTTP formatting daemon."""

from __future__ import annotations

from typing import Dict, Optional

import httpx

from fmt_engine.daemon import DaemonStartError, DaemonSupervisor, StartStatus
from fmt_engine.runtime import telemetry

from .base import FormatOutcome


class DaemonBackend:
    """Formats through a supervised daemon, starting it on first use.

    Protocol: ``POST /`` with the raw source as body. ``204`` means the source
    is already formatted, ``200`` carries the formatted source, anything else
    carries an error message.
    """

    def __init__(
        self,
        supervisor: DaemonSupervisor,
        *,
        name: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.supervisor = supervisor
        self.name = name or supervisor.name
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.supervisor.config.request_timeout)
        return self._client

    def request_headers(
        self, *, line_length: Optional[int] = None, fast: bool = False
    ) -> Dict[str, str]:
        headers = {
            "X-Protocol-Version": "1",
            "X-Fast-Or-Safe": "fast" if fast else "safe",
        }
        if line_length is not None:
            headers["X-Line-Length"] = str(line_length)
        return headers

    def format(
        self, content: bytes, *, line_length: Optional[int] = None, fast: bool = False
    ) -> FormatOutcome:
        with telemetry.span(
            f"backend::{self.name}",
            component="backends",
            metadata={"backend": self.name, "bytes": len(content)},
        ) as handle:
            try:
                if self.supervisor.ensure_running() is StartStatus.JUST_STARTED:
                    self.supervisor.wait_until_ready()
            except DaemonStartError as exc:
                return self._failed(str(exc))

            timeout = self.supervisor.config.request_timeout
            try:
                response = self.client.post(
                    self.supervisor.endpoint,
                    content=content,
                    headers=self.request_headers(line_length=line_length, fast=fast),
                    timeout=timeout,
                )
            except httpx.TimeoutException:
                return self._failed(
                    f"{self.name} request timed out after {timeout:g}s"
                )
            except httpx.HTTPError as exc:
                return self._failed(f"{self.name} request failed: {exc}")

            handle.add_metadata("status", response.status_code)
            if response.status_code == 204:
                return FormatOutcome.no_change(self.name)
            if response.status_code == 200:
                return FormatOutcome.formatted(self.name, response.content)
            return self._failed(
                response.text or f"{self.name} answered HTTP {response.status_code}"
            )

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
        self.supervisor.stop()

    def _failed(self, diagnostics: str) -> FormatOutcome:
        telemetry.record_event(
            "backend.failed",
            level="warning",
            data={"backend": self.name, "diagnostics": diagnostics[:200]},
        )
        return FormatOutcome.failed(self.name, diagnostics)


__all__ = ["DaemonBackend"]
