"""Command line entry points for the tracecheck harness."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from cyclopts import App

from .config import default_fixtures_root, load_config
from .errors import ConfigError, TracecheckError
from .fixtures import FixtureCatalog, FixtureStore
from .process import HarnessIO
from .suites import SuiteRunner

app = App(
    name="tracecheck",
    help="Golden-output regression harness for a trace resolution tool.",
)

ERROR_TOOL_MISSING = "Tool binary {tool} does not exist."
ERROR_ROOT_MISSING = "Fixture root {root} is not a directory."
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(*, verbose: bool) -> None:
    logger = logging.getLogger("tracecheck")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def _resolve_root(fixtures_root: Path | None) -> Path:
    root = (fixtures_root or default_fixtures_root()).resolve()
    if not root.is_dir():
        raise ConfigError(ERROR_ROOT_MISSING.format(root=root))
    return root


@app.default
def run(
    tool: Path,
    *,
    fixtures_root: Path | None = None,
    config: Path | None = None,
    timeout: float | None = None,
    tool_bin_dir: Path | None = None,
    strict_blank_lines: bool = False,
    verbose: bool = False,
) -> int:
    """Run every golden-output suite against TOOL.

    Parameters
    ----------
    tool
        Path to the tool binary under test.
    fixtures_root
        Directory holding manifests/, src/bin/, traces/ and out/.
    config
        YAML configuration file; defaults to tracecheck.yaml in the fixture root.
    timeout
        Seconds to allow each external command before aborting.
    tool_bin_dir
        Directory appended to PATH for the replay suite.
    strict_blank_lines
        Reject blank lines in expected-output files instead of skipping them.
    verbose
        Log every command and skipped expectation.

    """
    _configure_logging(verbose=verbose)
    resolved_tool = tool.resolve()
    if not resolved_tool.is_file():
        raise ConfigError(ERROR_TOOL_MISSING.format(tool=resolved_tool))
    root = _resolve_root(fixtures_root)
    settings = load_config(
        root,
        config,
        timeout=timeout,
        tool_bin_dir=tool_bin_dir.expanduser() if tool_bin_dir else None,
        strict_blank_lines=strict_blank_lines or None,
    )
    catalog = FixtureCatalog.discover(root)
    io = HarnessIO(stdout=sys.stdout, stderr=sys.stderr)
    result = SuiteRunner(resolved_tool, catalog, settings, io).run()
    print(result.render())
    return result.exit_code


@app.command(name="ls")
def ls(
    *,
    fixtures_root: Path | None = None,
    config: Path | None = None,
) -> int:
    """List discovered fixtures and their expected-output files."""
    root = _resolve_root(fixtures_root)
    settings = load_config(root, config)
    store = FixtureStore(root)
    catalog = store.catalog()
    missing = 0
    for fixture in catalog:
        path = store.expected_output_path(fixture)
        marker = "" if path.is_file() else "\tMISSING"
        missing += bool(marker)
        print(f"{fixture.kind.value}\t{fixture.name}\t{path}{marker}")
    if settings.general_manifest not in {item.name for item in catalog.manifests}:
        print(f"general manifest {settings.general_manifest!r} not found")
        missing += 1
    return 1 if missing else 0


def main(argv: list[str] | tuple[str, ...] | None = None) -> int:
    """Entry point for the tracecheck CLI."""
    try:
        result = app(argv)
    except TracecheckError as error:
        print(f"tracecheck: {error}")
        return 1
    return int(result or 0)


if __name__ == "__main__":
    raise SystemExit(main())
