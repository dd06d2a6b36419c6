"""Fake process runner returning canned output for harness tests."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ
from pathlib import Path

from tracecheck.process import CapturedOutput

if typ.TYPE_CHECKING:
    from tracecheck.errors import TracecheckError


@dataclasses.dataclass
class RecordedCall:
    """One invocation observed by the fake runner."""

    command: tuple[str, ...]
    env: dict[str, str] | None
    cwd: Path | None
    timeout: float | None
    manifest: str | None

    @property
    def key(self) -> str:
        """Return the argv without the program path, joined by spaces."""
        return " ".join((Path(self.command[0]).name, *self.command[1:]))


@dataclasses.dataclass
class FakeRunner:
    """Record calls and answer them from a table of canned responses.

    Responses are keyed by the program's basename followed by its arguments,
    for example ``"tool trace --resolve-only --bin general"``. Unknown keys
    produce empty output and a zero exit status. A response may also be an
    exception instance, which is raised instead.
    """

    responses: dict[str, tuple[str, int] | TracecheckError] = dataclasses.field(
        default_factory=dict
    )
    calls: list[RecordedCall] = dataclasses.field(default_factory=list)
    active_manifest: str = "Cargo.toml"

    def __call__(
        self,
        command: cabc.Sequence[str],
        *,
        env: cabc.Mapping[str, str] | None = None,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CapturedOutput:
        """Record the call and return its canned response."""
        manifest_path = (cwd or Path.cwd()) / self.active_manifest
        manifest = (
            manifest_path.read_text(encoding="utf-8")
            if manifest_path.is_file()
            else None
        )
        call = RecordedCall(
            command=tuple(command),
            env=dict(env) if env is not None else None,
            cwd=cwd,
            timeout=timeout,
            manifest=manifest,
        )
        self.calls.append(call)
        response = self.responses.get(call.key, ("", 0))
        if isinstance(response, Exception):
            raise response
        text, code = response
        return CapturedOutput(command=tuple(command), text=text, returncode=code)

    @property
    def keys(self) -> list[str]:
        """Return the keys of every recorded call in order."""
        return [call.key for call in self.calls]
