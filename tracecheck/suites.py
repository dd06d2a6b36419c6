"""Sequence the three golden-output suites with fail-fast semantics.

A run walks ``PER_BINARY_RESOLVE``, ``PER_MANIFEST_RESOLVE`` and
``PER_TRACE_REPLAY`` in that order. Within a suite, fixtures run in catalog
order. The first fatal error stops the run; nothing after it is invoked.
"""

from __future__ import annotations

import contextlib
import dataclasses
import enum
import logging
import os
import typing as typ

from .build import BuildRunner
from .errors import ExpectationMismatch, InvocationError, TracecheckError
from .fixtures import FixtureCatalog, FixtureStore, read_expected_output
from .invoker import ToolInvoker
from .manifest import activate
from .matching import require_match
from .process import write_stream_output

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .config import HarnessConfig
    from .fixtures import Fixture
    from .manifest import ActiveConfiguration
    from .process import CapturedOutput, HarnessIO, ProcessRunner

_logger = logging.getLogger(__name__)


class Suite(enum.Enum):
    """Suites in the order they run."""

    PER_BINARY_RESOLVE = "per-binary resolve"
    PER_MANIFEST_RESOLVE = "per-manifest resolve"
    PER_TRACE_REPLAY = "per-trace replay"


@dataclasses.dataclass(frozen=True)
class SuiteResult:
    """Overall outcome of a harness run."""

    passed: bool
    suite: Suite | None = None
    fixture: str | None = None
    line: str | None = None
    reason: str | None = None

    @property
    def exit_code(self) -> int:
        """Return the process exit status for this result."""
        return 0 if self.passed else 1

    def render(self) -> str:
        """Return a one-line summary."""
        if self.passed:
            return "all suites passed"
        where = f"{self.suite.value}: " if self.suite else ""
        return f"aborted in {where}{self.reason}"


@contextlib.contextmanager
def fixture_root(path: Path) -> cabc.Iterator[Path]:
    """Enter ``path`` and restore the previous working directory on exit."""
    previous = os.getcwd()
    os.chdir(path)
    _logger.debug("entered %s", path)
    try:
        yield path
    finally:
        os.chdir(previous)
        _logger.debug("restored %s", previous)


class SuiteRunner:
    """Drive every fixture through activate, build, invoke and match."""

    def __init__(
        self,
        tool: Path,
        catalog: FixtureCatalog,
        config: HarnessConfig,
        io: HarnessIO,
        *,
        runner: ProcessRunner | None = None,
    ) -> None:
        """Wire the collaborators for one run."""
        self.catalog = catalog
        self.config = config
        self.io = io
        self.store = FixtureStore(catalog.root)
        process_kwargs: dict[str, typ.Any] = {"timeout": config.timeout}
        if runner is not None:
            process_kwargs["runner"] = runner
        self.builder = BuildRunner(
            catalog.root,
            command=config.build_command,
            **process_kwargs,
        )
        self.invoker = ToolInvoker(
            tool,
            catalog.root,
            tool_bin_dir=config.tool_bin_dir,
            **process_kwargs,
        )
        self._suite: Suite | None = None
        self._fixture: str | None = None

    def run(self) -> SuiteResult:
        """Run all suites and return the first failure, if any."""
        with fixture_root(self.catalog.root):
            try:
                for suite, step in (
                    (Suite.PER_BINARY_RESOLVE, self._run_binaries),
                    (Suite.PER_MANIFEST_RESOLVE, self._run_manifests),
                    (Suite.PER_TRACE_REPLAY, self._run_traces),
                ):
                    self._suite = suite
                    _logger.info("suite: %s", suite.value)
                    step()
            except TracecheckError as error:
                return self._abort(error)
        _logger.info("all suites passed (%d fixtures)", len(self.catalog))
        return SuiteResult(passed=True)

    def _run_binaries(self) -> None:
        self._fixture = f"manifest:{self.config.general_manifest}"
        general = self.catalog.manifest(self.config.general_manifest)
        configuration = self._activate(general)
        for fixture in self.catalog.binaries:
            expected = self._expected(fixture)
            self.builder.build(fixture.name, configuration)
            captured = self.invoker.resolve_only(fixture.name, configuration)
            self._match(fixture, captured, expected)

    def _run_manifests(self) -> None:
        for fixture in self.catalog.manifests:
            expected = self._expected(fixture)
            configuration = self._activate(fixture)
            captured = self.invoker.resolve_only(
                self.config.resolve_target, configuration
            )
            self._match(fixture, captured, expected)

    def _run_traces(self) -> None:
        for fixture in self.catalog.traces:
            expected = self._expected(fixture)
            captured = self.invoker.replay(fixture)
            self._match(fixture, captured, expected)

    def _activate(self, manifest: Fixture) -> ActiveConfiguration:
        return activate(manifest, self.catalog.root, self.config.active_manifest)

    def _expected(self, fixture: Fixture) -> tuple[str, ...]:
        self._fixture = str(fixture)
        path = self.store.expected_output_for(fixture)
        return read_expected_output(path, strict=self.config.strict_blank_lines)

    def _match(
        self,
        fixture: Fixture,
        captured: CapturedOutput,
        expected: tuple[str, ...],
    ) -> None:
        require_match(str(fixture), captured, expected)
        _logger.info("ok: %s (%d expectations)", fixture, len(expected))

    def _abort(self, error: TracecheckError) -> SuiteResult:
        line = None
        captured = None
        if isinstance(error, ExpectationMismatch):
            line = error.line
            captured = error.captured
        elif isinstance(error, InvocationError):
            captured = error.captured
        if captured is not None:
            write_stream_output(self.io.stderr, captured.text)
        result = SuiteResult(
            passed=False,
            suite=self._suite,
            fixture=self._fixture,
            line=line,
            reason=str(error),
        )
        write_stream_output(self.io.stderr, result.render())
        return result
