"""Literal substring matching of captured output against expectations."""

from __future__ import annotations

import dataclasses
import typing as typ

from .errors import ExpectationMismatch

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .process import CapturedOutput


@dataclasses.dataclass(frozen=True)
class MatchResult:
    """Outcome of checking one captured output."""

    missing: str | None = None

    @property
    def matched(self) -> bool:
        """Return True when every expected line was found."""
        return self.missing is None


def check(captured_text: str, expected_lines: cabc.Iterable[str]) -> MatchResult:
    """Return the first expected line that is not a substring of the text.

    Matching is case-sensitive and literal. Only presence is checked: how many
    times a line occurs and where it occurs are irrelevant.
    """
    for line in expected_lines:
        if line not in captured_text:
            return MatchResult(missing=line)
    return MatchResult()


def require_match(
    fixture: str,
    captured: CapturedOutput,
    expected_lines: cabc.Iterable[str],
) -> None:
    """Raise ``ExpectationMismatch`` unless every line is present."""
    result = check(captured.text, expected_lines)
    if result.missing is not None:
        raise ExpectationMismatch(fixture, result.missing, captured)
