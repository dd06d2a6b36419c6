"""Read-only access to the on-disk fixture tree.

The fixture root holds three kinds of inputs, each paired with an expected
output file under ``out/`` by naming convention::

    src/bin/<name>.rs        -> out/<name>.run
    manifests/<name>.toml    -> out/<name>.run
    traces/<name>.trace      -> out/trace-<name>.run
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import typing as typ

from .errors import (
    BlankExpectationError,
    MissingFixtureError,
    UnreadableExpectationError,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

_logger = logging.getLogger(__name__)

BINARY_DIR = ("src", "bin")
MANIFEST_DIR = ("manifests",)
TRACE_DIR = ("traces",)
EXPECTED_DIR = "out"
EXPECTED_SUFFIX = ".run"
TRACE_PREFIX = "trace-"


class FixtureKind(enum.Enum):
    """The three kinds of fixture the harness knows about."""

    BINARY = "binary"
    MANIFEST = "manifest"
    TRACE = "trace"


_LAYOUT: dict[FixtureKind, tuple[tuple[str, ...], str]] = {
    FixtureKind.BINARY: (BINARY_DIR, ".rs"),
    FixtureKind.MANIFEST: (MANIFEST_DIR, ".toml"),
    FixtureKind.TRACE: (TRACE_DIR, ".trace"),
}


@dataclasses.dataclass(frozen=True)
class Fixture:
    """A named input artifact discovered beneath the fixture root."""

    kind: FixtureKind
    name: str
    path: Path

    @property
    def expected_name(self) -> str:
        """Return the filename of the paired expected-output file."""
        prefix = TRACE_PREFIX if self.kind is FixtureKind.TRACE else ""
        return f"{prefix}{self.name}{EXPECTED_SUFFIX}"

    def __str__(self) -> str:
        """Render as ``kind:name`` for log and error messages."""
        return f"{self.kind.value}:{self.name}"


@dataclasses.dataclass(frozen=True)
class FixtureCatalog:
    """Every fixture discovered at startup, in stable name order."""

    root: Path
    binaries: tuple[Fixture, ...] = ()
    manifests: tuple[Fixture, ...] = ()
    traces: tuple[Fixture, ...] = ()

    @classmethod
    def discover(cls, root: Path) -> FixtureCatalog:
        """Enumerate the fixture root once."""
        store = FixtureStore(root)
        return cls(
            root=store.root,
            binaries=tuple(store.list_binary_fixtures()),
            manifests=tuple(store.list_manifest_fixtures()),
            traces=tuple(store.list_trace_fixtures()),
        )

    def __iter__(self) -> typ.Iterator[Fixture]:
        """Iterate binaries, then manifests, then traces."""
        yield from self.binaries
        yield from self.manifests
        yield from self.traces

    def __len__(self) -> int:
        """Return the total number of fixtures."""
        return len(self.binaries) + len(self.manifests) + len(self.traces)

    def manifest(self, name: str) -> Fixture:
        """Return the manifest fixture called ``name``."""
        for fixture in self.manifests:
            if fixture.name == name:
                return fixture
        path = self.root.joinpath(*MANIFEST_DIR, f"{name}.toml")
        raise MissingFixtureError(name, path)


class FixtureStore:
    """Enumerate fixtures and resolve their expected-output files."""

    def __init__(self, root: Path) -> None:
        """Bind the store to an absolute fixture root."""
        self.root = root.resolve()

    def list_binary_fixtures(self) -> typ.Iterator[Fixture]:
        """Yield binary fixtures from ``src/bin/*.rs``."""
        return self._list(FixtureKind.BINARY)

    def list_manifest_fixtures(self) -> typ.Iterator[Fixture]:
        """Yield manifest fixtures from ``manifests/*.toml``."""
        return self._list(FixtureKind.MANIFEST)

    def list_trace_fixtures(self) -> typ.Iterator[Fixture]:
        """Yield trace fixtures from ``traces/*.trace``."""
        return self._list(FixtureKind.TRACE)

    def catalog(self) -> FixtureCatalog:
        """Return a catalog snapshot of the fixture root."""
        return FixtureCatalog.discover(self.root)

    def expected_output_path(self, fixture: Fixture) -> Path:
        """Return where the expected output for ``fixture`` should live."""
        return self.root / EXPECTED_DIR / fixture.expected_name

    def expected_output_for(self, fixture: Fixture) -> Path:
        """Return the expected-output file for ``fixture``.

        Raises
        ------
        MissingFixtureError
            When the file derived from the naming convention does not exist.

        """
        path = self.expected_output_path(fixture)
        if not path.is_file():
            raise MissingFixtureError(str(fixture), path)
        return path

    def _list(self, kind: FixtureKind) -> typ.Iterator[Fixture]:
        segments, suffix = _LAYOUT[kind]
        directory = self.root.joinpath(*segments)
        if not directory.is_dir():
            _logger.debug("no %s fixtures: %s is absent", kind.value, directory)
            return
        for path in sorted(directory.glob(f"*{suffix}")):
            if path.is_file():
                yield Fixture(kind=kind, name=path.stem, path=path)


def parse_expected_lines(
    content: str,
    *,
    source: Path,
    strict: bool = False,
) -> tuple[str, ...]:
    """Split expected-output text into literal lines.

    Only the line feed is removed. A carriage return before it belongs to the
    expectation, as does any other byte the fixture holds. Blank lines are
    skipped, since an empty substring is present in any output, unless
    ``strict`` is set, in which case they are rejected.
    """
    pieces = content.split("\n")
    if pieces[-1] == "":
        pieces.pop()
    lines: list[str] = []
    for lineno, line in enumerate(pieces, start=1):
        if line:
            lines.append(line)
            continue
        if strict:
            raise BlankExpectationError(source, lineno)
        _logger.debug("%s:%d: skipping blank expectation line", source, lineno)
    return tuple(lines)


def read_expected_output(path: Path, *, strict: bool = False) -> tuple[str, ...]:
    """Read an expected-output fixture file without newline translation."""
    try:
        with path.open(encoding="utf-8", newline="") as handle:
            content = handle.read()
    except (OSError, UnicodeDecodeError) as error:
        raise UnreadableExpectationError(path, error) from error
    return parse_expected_lines(content, source=path, strict=strict)
