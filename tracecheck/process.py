"""External process execution for the build step and the tool under test.

Every external command the harness runs goes through a ``ProcessRunner``. The
default runner wraps :func:`subprocess.run` with standard error merged into
standard output, matching what an operator sees when running ``cmd 2>&1``.
Tests substitute a fake runner that returns canned output instead.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import subprocess
import typing as typ

from .errors import InvocationTimeoutError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

_logger = logging.getLogger(__name__)

PATH_VAR = "PATH"


@dataclasses.dataclass(frozen=True)
class CapturedOutput:
    """Merged stdout/stderr text and exit status of one invocation."""

    command: tuple[str, ...]
    text: str
    returncode: int

    @property
    def succeeded(self) -> bool:
        """Return True when the command exited with status zero."""
        return self.returncode == 0


class ProcessRunner(typ.Protocol):
    """Callable that runs a command and captures its merged output."""

    def __call__(
        self,
        command: cabc.Sequence[str],
        *,
        env: cabc.Mapping[str, str] | None = None,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CapturedOutput:
        """Run ``command`` to completion and return its captured output."""
        ...


@dataclasses.dataclass(frozen=True)
class HarnessIO:
    """Output streams used to echo captured tool output."""

    stdout: typ.IO[str]
    stderr: typ.IO[str]


def write_stream_output(stream: typ.IO[str], content: str) -> None:
    """Write content to a stream, ensuring it ends with a newline."""
    stream.write(content)
    if not content.endswith("\n"):
        stream.write("\n")
    stream.flush()


def decode_output(raw: bytes) -> str:
    """Decode captured bytes as UTF-8 without translating line endings."""
    return raw.decode("utf-8", errors="replace")


def format_command(command: cabc.Sequence[str]) -> str:
    """Render a command for log output."""
    return " ".join(command)


def run_process(
    command: cabc.Sequence[str],
    *,
    env: cabc.Mapping[str, str] | None = None,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> CapturedOutput:
    """Run a command, blocking until it exits, and capture merged output.

    Parameters
    ----------
    command : Sequence[str]
        The program and its arguments.
    env : Mapping[str, str] | None
        Complete environment for the child; ``None`` inherits the parent's.
    cwd : Path | None
        Working directory for the child.
    timeout : float | None
        Seconds to wait before giving up; ``None`` waits indefinitely.

    Returns
    -------
    CapturedOutput
        The merged output and exit status. A nonzero exit is not an error here;
        callers decide whether to tolerate it.

    Raises
    ------
    InvocationTimeoutError
        When ``timeout`` elapses before the command exits.

    """
    args = [str(part) for part in command]
    try:
        completed = subprocess.run(  # noqa: S603
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=dict(env) if env is not None else None,
            cwd=str(cwd) if cwd is not None else None,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as error:
        raise InvocationTimeoutError(args, typ.cast("float", timeout)) from error
    _logger.debug("exited %d: %s", completed.returncode, format_command(args))
    return CapturedOutput(
        command=tuple(args),
        text=decode_output(completed.stdout or b""),
        returncode=completed.returncode,
    )


def augmented_path_env(
    extra_dir: Path,
    base: cabc.Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return a copy of ``base`` with ``extra_dir`` appended to ``PATH``.

    The inherited search path is kept intact and ``extra_dir`` is added after
    it, once.
    """
    env = dict(os.environ if base is None else base)
    current = env.get(PATH_VAR, "")
    if str(extra_dir) in current.split(os.pathsep):
        return env
    env[PATH_VAR] = f"{current}{os.pathsep}{extra_dir}" if current else str(extra_dir)
    return env
