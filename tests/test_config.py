from __future__ import annotations

import pytest

from fmt_engine.runtime.config import (
    BackendConfig,
    ConfigError,
    DaemonConfig,
    FormatterConfig,
    StartupStrategy,
)


def test_empty_environment_gives_defaults() -> None:
    config = FormatterConfig.from_env({})

    assert config.backend == "black"
    assert config.line_length is None
    assert config.fast is False
    assert config.encoding == "utf-8"
    assert config.daemon == DaemonConfig()
    assert config.daemon.endpoint == "http://localhost:45484/"


def test_environment_overrides_every_field() -> None:
    config = FormatterConfig.from_env(
        {
            "FMT_ENGINE_BACKEND": "blackd",
            "FMT_ENGINE_LINE_LENGTH": "100",
            "FMT_ENGINE_FAST": "yes",
            "FMT_ENGINE_ENCODING": "latin-1",
            "FMT_ENGINE_DAEMON_COMMAND": "/opt/blackd",
            "FMT_ENGINE_DAEMON_HOST": "127.0.0.1",
            "FMT_ENGINE_DAEMON_PORT": "9001",
            "FMT_ENGINE_DAEMON_GRACE": "0.5",
            "FMT_ENGINE_DAEMON_TIMEOUT": "10",
            "FMT_ENGINE_DAEMON_STARTUP": "POLL",
        }
    )

    assert config.backend == "blackd"
    assert config.line_length == 100
    assert config.fast is True
    assert config.encoding == "latin-1"
    assert config.daemon.command == "/opt/blackd"
    assert config.daemon.endpoint == "http://127.0.0.1:9001/"
    assert config.daemon.startup_grace == 0.5
    assert config.daemon.request_timeout == 10.0
    assert config.daemon.startup_strategy is StartupStrategy.POLL


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("FMT_ENGINE_LINE_LENGTH", "wide"),
        ("FMT_ENGINE_LINE_LENGTH", "0"),
        ("FMT_ENGINE_DAEMON_PORT", "70000"),
        ("FMT_ENGINE_DAEMON_GRACE", "soon"),
        ("FMT_ENGINE_DAEMON_TIMEOUT", "-1"),
        ("FMT_ENGINE_DAEMON_STARTUP", "spin"),
    ],
)
def test_bad_values_raise_config_error(name: str, value: str) -> None:
    with pytest.raises(ConfigError):
        FormatterConfig.from_env({name: value})


def test_with_backend_returns_new_config() -> None:
    base = FormatterConfig()
    custom = BackendConfig(name="black", command="/opt/black")

    updated = base.with_backend(custom)

    assert updated.backends == {"black": custom}
    assert base.backends == {}


def test_backend_config_coerces_kind_and_args() -> None:
    config = BackendConfig(name="tool", kind="daemon", args=["-q"])  # type: ignore[arg-type]

    assert config.kind.value == "daemon"
    assert config.args == ("-q",)

    with pytest.raises(ConfigError):
        BackendConfig(name="")
