"""Tests for the nix-instantiate invocation adapter.

The evaluator is replaced by fake runners or a patched ``subprocess.run``;
no real Nix installation is needed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from evalnix.core.environment import EvalNixSettings
from evalnix.core.errors import (
    EvaluationError,
    EvaluatorStartError,
    InstantiationParseError,
    NestingTooDeep,
    UndecodableOutput,
    UnexpectedEndOfInput,
    UnparsableEvaluationError,
)
from evalnix.core.instantiate import (
    InstantiationResult,
    ProcessOutput,
    ProcessRunner,
    SubprocessRunner,
    build_command,
    classify_output,
    exec_nix_instantiate,
)
from evalnix.core.ir.values import ListValue, MapValue, NumberValue


class FakeRunner(ProcessRunner):
    """Returns a canned ProcessOutput and records the argv it was given."""

    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> None:
        self.output = ProcessOutput(returncode=returncode, stdout=stdout, stderr=stderr)
        self.calls: list[list[str]] = []

    def run(self, argv: Sequence[str]) -> ProcessOutput:
        self.calls.append(list(argv))
        return self.output


class MissingRunner(ProcessRunner):
    def run(self, argv: Sequence[str]) -> ProcessOutput:
        raise FileNotFoundError(2, "No such file or directory", argv[0])


# ============================================================================
# Command construction
# ============================================================================


class TestBuildCommand:
    def test_path_only(self) -> None:
        assert build_command("nix-instantiate", "default.nix") == [
            "nix-instantiate",
            "--eval",
            "default.nix",
        ]

    def test_attribute_and_args(self) -> None:
        cmd = build_command(
            "nix-instantiate",
            Path("/src/release.nix"),
            "hello",
            [("system", '"x86_64-linux"'), ("debug", "true")],
        )
        assert cmd == [
            "nix-instantiate",
            "--eval",
            "/src/release.nix",
            "-A",
            "hello",
            "--arg",
            "system",
            '"x86_64-linux"',
            "--arg",
            "debug",
            "true",
        ]

    def test_empty_attribute_is_passed(self) -> None:
        assert build_command("nix", "f.nix", "")[-2:] == ["-A", ""]


# ============================================================================
# End-to-end with fake runners
# ============================================================================


class TestExecNixInstantiate:
    def test_success(self) -> None:
        runner = FakeRunner(stdout=b"42\n")
        result = exec_nix_instantiate("default.nix", runner=runner)
        assert result.ok
        assert result.value == NumberValue(value=42)
        assert result.unwrap() == NumberValue(value=42)
        assert runner.calls == [["nix-instantiate", "--eval", "default.nix"]]

    def test_success_structured(self) -> None:
        runner = FakeRunner(stdout=b"{ xs = [ 1 2 ]; }\n")
        result = exec_nix_instantiate("default.nix", "pkg", [("a", "1")], runner=runner)
        assert result.value == MapValue(
            entries={"xs": ListValue(items=[NumberValue(value=1), NumberValue(value=2)])}
        )
        assert runner.calls[0][3:] == ["-A", "pkg", "--arg", "a", "1"]

    def test_evaluation_error(self) -> None:
        runner = FakeRunner(returncode=1, stderr=b"error: foo")
        result = exec_nix_instantiate("default.nix", runner=runner)
        assert not result.ok
        assert isinstance(result.error, EvaluationError)
        assert result.error.message == "error: foo"
        assert result.error.returncode == 1

    def test_unparsable_evaluation_error(self) -> None:
        runner = FakeRunner(returncode=1, stderr=b"\xff\xfe\x00bad")
        result = exec_nix_instantiate("default.nix", runner=runner)
        assert isinstance(result.error, UnparsableEvaluationError)

    def test_parse_error(self) -> None:
        runner = FakeRunner(stdout=b"[1 2")
        result = exec_nix_instantiate("default.nix", runner=runner)
        assert isinstance(result.error, InstantiationParseError)
        assert isinstance(result.error.inner, UnexpectedEndOfInput)
        assert result.value is None

    def test_undecodable_stdout(self) -> None:
        runner = FakeRunner(stdout=b"\xff")
        result = exec_nix_instantiate("default.nix", runner=runner)
        assert isinstance(result.error, InstantiationParseError)
        assert isinstance(result.error.inner, UndecodableOutput)

    def test_missing_executable(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="evalnix.core.instantiate"):
            result = exec_nix_instantiate("default.nix", runner=MissingRunner())
        assert isinstance(result.error, EvaluatorStartError)
        assert result.error.executable == "nix-instantiate"
        assert "No such file or directory" in result.error.reason
        assert "Could not start" in caplog.text

    def test_settings_executable(self) -> None:
        runner = FakeRunner(stdout=b"null")
        settings = EvalNixSettings(executable="/opt/nix/bin/nix-instantiate")
        exec_nix_instantiate("f.nix", runner=runner, settings=settings)
        assert runner.calls[0][0] == "/opt/nix/bin/nix-instantiate"

    def test_executable_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EVAL_NIX_INSTANTIATE", "my-nix-instantiate")
        runner = FakeRunner(stdout=b"null")
        exec_nix_instantiate("f.nix", runner=runner)
        assert runner.calls[0][0] == "my-nix-instantiate"

    def test_settings_limits_apply(self) -> None:
        runner = FakeRunner(stdout=b"[[[]]]")
        result = exec_nix_instantiate(
            "f.nix", runner=runner, settings=EvalNixSettings(max_depth=2)
        )
        assert isinstance(result.error, InstantiationParseError)
        assert isinstance(result.error.inner, NestingTooDeep)

    def test_nonzero_exit_ignores_stdout(self) -> None:
        runner = FakeRunner(returncode=1, stdout=b"42", stderr=b"error: boom\n")
        result = exec_nix_instantiate("f.nix", runner=runner)
        assert isinstance(result.error, EvaluationError)


class TestClassifyOutput:
    def test_success(self) -> None:
        result = classify_output(ProcessOutput(returncode=0, stdout=b"<LAMBDA>", stderr=b""))
        assert result.ok

    def test_strict(self) -> None:
        output = ProcessOutput(returncode=0, stdout=b"1 2", stderr=b"")
        assert classify_output(output).ok
        assert not classify_output(output, strict=True).ok


# ============================================================================
# Result
# ============================================================================


class TestInstantiationResult:
    def test_unwrap_raises_error(self) -> None:
        result = InstantiationResult(error=EvaluationError("error: foo"))
        with pytest.raises(EvaluationError):
            result.unwrap()

    def test_to_dict_ok(self) -> None:
        result = InstantiationResult(value=ListValue(items=[NumberValue(value=1)]))
        assert result.to_dict() == {"Ok": [1]}

    def test_to_dict_err(self) -> None:
        result = InstantiationResult(error=EvaluationError("error: foo", 1))
        assert result.to_dict() == {
            "Err": {"kind": "EvaluationError", "message": "error: foo", "returncode": 1}
        }

    def test_to_dict_parse_error(self) -> None:
        result = InstantiationResult(
            error=InstantiationParseError(UnexpectedEndOfInput("']'"))
        )
        err = result.to_dict()["Err"]
        assert err["kind"] == "ParseError"
        assert err["error"] == "UnexpectedEndOfInput"


# ============================================================================
# SubprocessRunner
# ============================================================================


class TestSubprocessRunner:
    def test_captures_bytes(self) -> None:
        with patch("evalnix.core.instantiate.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=b"true\n", stderr=b"")
            output = SubprocessRunner().run(["nix-instantiate", "--eval", "f.nix"])
        assert output == ProcessOutput(returncode=0, stdout=b"true\n", stderr=b"")
        cmd = mock_run.call_args[0][0]
        assert cmd == ["nix-instantiate", "--eval", "f.nix"]
        assert mock_run.call_args.kwargs["capture_output"] is True

    def test_default_runner_used(self) -> None:
        with patch("evalnix.core.instantiate.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout=b"", stderr=b"error: foo")
            result = exec_nix_instantiate("f.nix")
        assert isinstance(result.error, EvaluationError)

    def test_file_not_found(self) -> None:
        with patch(
            "evalnix.core.instantiate.subprocess.run",
            side_effect=FileNotFoundError(2, "No such file or directory"),
        ):
            result = exec_nix_instantiate("f.nix")
        assert isinstance(result.error, EvaluatorStartError)

    def test_permission_denied(self) -> None:
        with patch(
            "evalnix.core.instantiate.subprocess.run",
            side_effect=PermissionError(13, "Permission denied"),
        ):
            result = exec_nix_instantiate("f.nix")
        assert isinstance(result.error, EvaluatorStartError)
        assert result.error.reason == "Permission denied"

    def test_real_missing_executable(self) -> None:
        settings = EvalNixSettings(executable="definitely-not-a-real-nix-instantiate-binary")
        result = exec_nix_instantiate("f.nix", settings=settings)
        assert isinstance(result.error, EvaluatorStartError)


class TestDeepOutput:
    def test_depth_beyond_interpreter_stack_is_returned(self) -> None:
        runner = FakeRunner(stdout=b"[" * 5000 + b"]" * 5000)
        result = exec_nix_instantiate(
            "f.nix", runner=runner, settings=EvalNixSettings(max_depth=100_000)
        )
        assert isinstance(result.error, InstantiationParseError)
        assert isinstance(result.error.inner, NestingTooDeep)


class TestInstantiationResultShape:
    def test_requires_value_or_error(self) -> None:
        with pytest.raises(ValueError):
            InstantiationResult()

    def test_rejects_both(self) -> None:
        with pytest.raises(ValueError):
            InstantiationResult(value=NumberValue(value=1), error=EvaluationError("error: foo"))
