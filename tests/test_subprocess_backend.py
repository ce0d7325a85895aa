from __future__ import annotations

import os
import sys
import tempfile

import pytest

from fmt_engine.backends import OutcomeKind, SubprocessBackend
from fmt_engine.runtime.config import BackendConfig

SPACE_EQUALS = (
    "import sys\n"
    "path = sys.argv[-1]\n"
    "with open(path, 'rb') as handle:\n"
    "    data = handle.read()\n"
    "with open(path, 'wb') as handle:\n"
    "    handle.write(data.replace(b'=', b' = '))\n"
    "print(path, flush=True)\n"
)

REJECT = (
    "import sys\n"
    "print(sys.argv[-1], flush=True)\n"
    "sys.stderr.write('error: cannot parse\\n')\n"
    "sys.exit(1)\n"
)

REMOVE_FILE = (
    "import os, sys\n"
    "os.remove(sys.argv[-1])\n"
    "print(sys.argv[-1], flush=True)\n"
)


def make_backend(script: str, **overrides: object) -> SubprocessBackend:
    config = BackendConfig(
        name="pyfmt",
        command=sys.executable,
        args=("-c", script),
        **overrides,  # type: ignore[arg-type]
    )
    return SubprocessBackend(config)


def test_successful_run_returns_rewritten_file() -> None:
    backend = make_backend(SPACE_EQUALS)

    outcome = backend.format(b"x=1\n")

    assert outcome.kind is OutcomeKind.FORMATTED
    assert outcome.text == b"x = 1\n"
    assert outcome.tool == "pyfmt"


def test_nonzero_exit_is_failure_with_combined_output() -> None:
    backend = make_backend(REJECT)

    outcome = backend.format(b"x=\n")

    assert outcome.kind is OutcomeKind.FAILED
    assert outcome.text is None
    assert "error: cannot parse" in outcome.diagnostics


def test_temp_file_is_removed_on_success_and_failure() -> None:
    for script in (SPACE_EQUALS, REJECT):
        outcome = make_backend(script).format(b"y=2\n")
        temp_path = outcome.diagnostics.splitlines()[0].strip()

        assert os.path.basename(temp_path).startswith("fmt-engine-")
        assert temp_path.endswith(".py")
        assert not os.path.exists(temp_path)


def test_missing_executable_is_failure() -> None:
    backend = SubprocessBackend(
        BackendConfig(name="ghost", command="fmt-engine-no-such-formatter")
    )

    outcome = backend.format(b"x = 1\n")

    assert outcome.kind is OutcomeKind.FAILED
    assert "cannot run" in outcome.diagnostics


def test_command_line_places_options_before_file() -> None:
    backend = SubprocessBackend(
        BackendConfig(
            name="tool",
            command="tool",
            args=("--quiet",),
            in_place_flag="--in-place",
            line_length_flag="--line-length",
            fast_flag="--fast",
        )
    )

    argv = backend.command_line("/tmp/src.py", line_length=79, fast=True)

    assert argv == [
        "tool",
        "--quiet",
        "--line-length",
        "79",
        "--fast",
        "--in-place",
        "/tmp/src.py",
    ]


def test_unsupported_options_are_left_out() -> None:
    backend = SubprocessBackend(
        BackendConfig(name="yapf", command="yapf", in_place_flag="--in-place")
    )

    argv = backend.command_line("f.py", line_length=100, fast=True)

    assert argv == ["yapf", "--in-place", "f.py"]


def test_suffix_is_configurable() -> None:
    outcome = make_backend(SPACE_EQUALS, suffix=".pyi").format(b"a=b\n")

    assert outcome.diagnostics.strip().endswith(".pyi")


def test_temp_file_creation_failure_is_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def no_space(*args: object, **kwargs: object) -> tuple:
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(tempfile, "mkstemp", no_space)

    outcome = make_backend(SPACE_EQUALS).format(b"x=1\n")

    assert outcome.kind is OutcomeKind.FAILED
    assert "cannot create temporary file" in outcome.diagnostics
    assert "No space left on device" in outcome.diagnostics


def test_tool_removing_its_file_is_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    created = []
    real_mkstemp = tempfile.mkstemp

    def recording_mkstemp(*args: object, **kwargs: object) -> tuple:
        fd, path = real_mkstemp(*args, **kwargs)  # type: ignore[call-overload]
        created.append(path)
        return fd, path

    monkeypatch.setattr(tempfile, "mkstemp", recording_mkstemp)

    outcome = make_backend(REMOVE_FILE).format(b"x=1\n")

    assert outcome.kind is OutcomeKind.FAILED
    assert "cannot read pyfmt output" in outcome.diagnostics
    assert len(created) == 1
    assert not os.path.exists(created[0])
