"""
Invocation adapter for ``nix-instantiate --eval``.

Runs the evaluator once, waits for it to finish, and classifies the outcome:

  exit 0       → stdout is tokenized and parsed into a value
  exit != 0    → stderr becomes an ``EvaluationError``
  cannot start → ``EvaluatorStartError``

Failures are returned inside an ``InstantiationResult`` rather than raised.
The process itself sits behind ``ProcessRunner`` so the pipeline can be
exercised without a real evaluator.
"""

from __future__ import annotations

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from evalnix.core.environment import EvalNixSettings, load_settings
from evalnix.core.errors import (
    EvaluationError,
    EvaluatorStartError,
    InstantiationError,
    InstantiationParseError,
    ParseError,
    UndecodableOutput,
    UnparsableEvaluationError,
)
from evalnix.core.ir.values import Value, to_plain
from evalnix.core.nix_output.parser import parse_nix_instantiate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Process interface
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProcessOutput:
    """Exit status and captured streams of a finished process."""

    returncode: int
    stdout: bytes
    stderr: bytes


class ProcessRunner(ABC):
    """Runs a command to completion and captures its output."""

    @abstractmethod
    def run(self, argv: Sequence[str]) -> ProcessOutput:
        """Run ``argv`` and wait for it.

        Raises:
            OSError: If the process cannot be started.
        """


class SubprocessRunner(ProcessRunner):
    """Runs commands with :func:`subprocess.run`, stdin closed."""

    def run(self, argv: Sequence[str]) -> ProcessOutput:
        completed = subprocess.run(
            list(argv),
            stdin=subprocess.DEVNULL,
            capture_output=True,
        )
        return ProcessOutput(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InstantiationResult:
    """Either the parsed value or the reason there is none."""

    value: Value | None = None
    error: InstantiationError | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("InstantiationResult needs exactly one of value or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Value:
        """Return the value, raising the stored error if there is one."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form: ``{"Ok": ...}`` or ``{"Err": {...}}``."""
        if self.error is not None:
            return {"Err": self.error.to_dict()}
        return {"Ok": to_plain(self.value)}  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Invocation
# ---------------------------------------------------------------------------


def build_command(
    executable: str,
    filepath: str | os.PathLike[str],
    attribute: str | None = None,
    args: Iterable[tuple[str, str]] = (),
) -> list[str]:
    """Build the evaluator argv: ``--eval PATH [-A ATTR] [--arg NAME VALUE]...``"""
    cmd = [executable, "--eval", os.fspath(filepath)]
    if attribute is not None:
        cmd.extend(["-A", attribute])
    for name, value in args:
        cmd.extend(["--arg", name, value])
    return cmd


def classify_output(
    output: ProcessOutput,
    *,
    strict: bool | None = None,
    max_depth: int | None = None,
) -> InstantiationResult:
    """Turn a finished evaluator run into a value or an error."""
    if output.returncode != 0:
        try:
            message = output.stderr.decode("utf-8")
        except UnicodeDecodeError:
            return InstantiationResult(error=UnparsableEvaluationError(output.returncode))
        return InstantiationResult(error=EvaluationError(message, output.returncode))

    try:
        text = output.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        return InstantiationResult(error=InstantiationParseError(UndecodableOutput(str(e))))

    try:
        value = parse_nix_instantiate(text, strict=strict, max_depth=max_depth)
    except ParseError as e:
        logger.debug("Unparsable evaluator output: %s", e)
        return InstantiationResult(error=InstantiationParseError(e))
    return InstantiationResult(value=value)


def exec_nix_instantiate(
    filepath: str | os.PathLike[str],
    attribute: str | None = None,
    args: Iterable[tuple[str, str]] = (),
    *,
    runner: ProcessRunner | None = None,
    settings: EvalNixSettings | None = None,
) -> InstantiationResult:
    """
    Evaluate a Nix file (optionally one attribute of it) and parse the result.

    Args:
        filepath: Path of the Nix file to evaluate
        attribute: Optional attribute selector passed as ``-A``
        args: (name, value) pairs passed as ``--arg name value``
        runner: Process runner (default: :class:`SubprocessRunner`)
        settings: Executable and parser settings (default: from environment)

    Returns:
        InstantiationResult holding the parsed value or an InstantiationError
    """
    settings = settings or load_settings()
    runner = runner or SubprocessRunner()
    cmd = build_command(settings.executable, filepath, attribute, args)

    logger.debug("Running %s", " ".join(cmd))
    try:
        output = runner.run(cmd)
    except OSError as e:
        logger.warning("Could not start %s: %s", settings.executable, e)
        reason = e.strerror or str(e)
        return InstantiationResult(error=EvaluatorStartError(settings.executable, reason))

    if output.returncode != 0:
        logger.info("%s exited with status %d", settings.executable, output.returncode)

    return classify_output(output, strict=settings.strict, max_depth=settings.max_depth)
