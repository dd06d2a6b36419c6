"""Shared exception types for the tracecheck harness."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .process import CapturedOutput


class TracecheckError(RuntimeError):
    """Base error for tracecheck harness operations."""


class ConfigError(TracecheckError):
    """Raised when the harness configuration cannot be loaded."""


class MissingFixtureError(TracecheckError):
    """Raised when a fixture or its expected-output file is absent."""

    def __init__(self, name: str, path: Path) -> None:
        """Record the fixture and the path that was expected to exist."""
        super().__init__(f"Fixture {name!r} is missing {path}")
        self.name = name
        self.path = path


class BlankExpectationError(TracecheckError):
    """Raised in strict mode when an expected-output file has a blank line."""

    def __init__(self, path: Path, lineno: int) -> None:
        """Record the offending file and line number."""
        super().__init__(f"{path}:{lineno}: blank expectation line")
        self.path = path
        self.lineno = lineno


class UnreadableExpectationError(TracecheckError):
    """Raised when an expected-output file cannot be read as UTF-8 text."""

    def __init__(self, path: Path, reason: Exception) -> None:
        """Record the file and the underlying read or decode failure."""
        super().__init__(f"{path}: cannot read expected output: {reason}")
        self.path = path


class InvocationError(TracecheckError):
    """Raised when an external invocation cannot be tolerated."""

    def __init__(self, message: str, captured: CapturedOutput | None = None) -> None:
        """Keep the captured output for diagnostics."""
        super().__init__(message)
        self.captured = captured


class ReplayInvocationFailure(InvocationError):  # noqa: N818 - domain term
    """Raised when replaying a trace fixture exits nonzero."""

    def __init__(self, trace: str, captured: CapturedOutput) -> None:
        """Describe the failed replay and its exit status."""
        super().__init__(
            f"replay of trace {trace!r} exited with status {captured.returncode}",
            captured,
        )
        self.trace = trace


class InvocationTimeoutError(InvocationError):
    """Raised when an external command exceeds the configured timeout."""

    def __init__(self, command: typ.Sequence[str], timeout: float) -> None:
        """Describe the command that timed out."""
        super().__init__(f"{' '.join(command)!r} timed out after {timeout:g}s")
        self.command = tuple(command)
        self.timeout = timeout


class ExpectationMismatch(TracecheckError):  # noqa: N818 - domain term
    """Raised when an expected literal line is absent from captured output."""

    def __init__(
        self,
        fixture: str,
        line: str,
        captured: CapturedOutput | None = None,
    ) -> None:
        """Record the fixture and the first missing line."""
        super().__init__(f"{fixture}: expected output not found: {line!r}")
        self.fixture = fixture
        self.line = line
        self.captured = captured
