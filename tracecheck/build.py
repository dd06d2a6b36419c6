"""Build fixture binaries before asking the tool to resolve them."""

from __future__ import annotations

import logging
import typing as typ

from .errors import InvocationTimeoutError
from .process import CapturedOutput, format_command, run_process

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .manifest import ActiveConfiguration
    from .process import ProcessRunner

_logger = logging.getLogger(__name__)

DEFAULT_BUILD_COMMAND = ("cargo", "build")
BUILD_TAIL_LINES = 20


class BuildRunner:
    """Run the external build step for a named binary target.

    Build failures are logged and otherwise ignored: the tool under test is
    expected to report compilation problems in its own output, which is what
    the expected-output fixtures assert on.
    """

    def __init__(
        self,
        root: Path,
        *,
        command: cabc.Sequence[str] = DEFAULT_BUILD_COMMAND,
        runner: ProcessRunner = run_process,
        timeout: float | None = None,
    ) -> None:
        """Configure the build command and where it runs."""
        self.root = root
        self.command = tuple(command)
        self.runner = runner
        self.timeout = timeout

    def command_for(self, binary_name: str) -> list[str]:
        """Return the build argv for ``binary_name``."""
        return [*self.command, "--bin", binary_name]

    def build(
        self,
        binary_name: str,
        configuration: ActiveConfiguration,
    ) -> CapturedOutput | None:
        """Build ``binary_name`` under ``configuration``; never raises on failure."""
        args = self.command_for(binary_name)
        _logger.info(
            "running: %s (cwd=%s, manifest=%s)",
            format_command(args),
            self.root,
            configuration.name,
        )
        try:
            result = self.runner(args, cwd=self.root, timeout=self.timeout)
        except InvocationTimeoutError as error:
            _logger.warning("build of %s tolerated: %s", binary_name, error)
            return None
        if not result.succeeded:
            tail = "\n".join(result.text.splitlines()[-BUILD_TAIL_LINES:])
            _logger.warning(
                "build of %s exited with status %d (tolerated)\n%s",
                binary_name,
                result.returncode,
                tail,
            )
        return result
