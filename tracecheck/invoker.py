"""Invoke the tracing tool under test and capture what it prints."""

from __future__ import annotations

import logging
import typing as typ

from .errors import ReplayInvocationFailure
from .process import CapturedOutput, augmented_path_env, format_command, run_process

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .fixtures import Fixture
    from .manifest import ActiveConfiguration
    from .process import ProcessRunner

_logger = logging.getLogger(__name__)

TRACE_SUBCOMMAND = "trace"
REPLAY_SUBCOMMAND = "replay"
RESOLVE_ONLY_FLAG = "--resolve-only"
BIN_FLAG = "--bin"
TRACE_FILE_FLAG = "--trace-file"


class ToolInvoker:
    """Run the tool binary from the fixture root with merged output."""

    def __init__(
        self,
        tool: Path,
        root: Path,
        *,
        tool_bin_dir: Path | None = None,
        runner: ProcessRunner = run_process,
        timeout: float | None = None,
    ) -> None:
        """Bind the invoker to an absolute tool path and fixture root."""
        self.tool = tool.resolve()
        self.root = root
        self.tool_bin_dir = tool_bin_dir
        self.runner = runner
        self.timeout = timeout

    def invoke(
        self,
        subcommand: str,
        flags: cabc.Sequence[str],
        target: str,
        *,
        env: cabc.Mapping[str, str] | None = None,
    ) -> CapturedOutput:
        """Run ``tool subcommand flags... target`` and return its output."""
        args = [str(self.tool), subcommand, *flags, target]
        _logger.info("running: %s (cwd=%s)", format_command(args), self.root)
        return self.runner(args, env=env, cwd=self.root, timeout=self.timeout)

    def resolve_only(
        self,
        binary: str,
        configuration: ActiveConfiguration,
    ) -> CapturedOutput:
        """Resolve ``binary`` without capturing; a nonzero exit is tolerated."""
        result = self.invoke(TRACE_SUBCOMMAND, [RESOLVE_ONLY_FLAG, BIN_FLAG], binary)
        if not result.succeeded:
            _logger.debug(
                "resolve of %s under %s exited with status %d (tolerated)",
                binary,
                configuration.name,
                result.returncode,
            )
        return result

    def replay(self, trace: Fixture) -> CapturedOutput:
        """Replay a recorded trace file.

        Raises
        ------
        ReplayInvocationFailure
            When the tool exits nonzero. Replaying a recorded fixture is
            expected to always succeed.

        """
        target = str(trace.path.relative_to(self.root))
        env = augmented_path_env(self.tool_bin_dir) if self.tool_bin_dir else None
        result = self.invoke(REPLAY_SUBCOMMAND, [TRACE_FILE_FLAG], target, env=env)
        if not result.succeeded:
            raise ReplayInvocationFailure(trace.name, result)
        return result
