"""Shared fixtures for behaviour-driven CLI tests."""

from __future__ import annotations

import dataclasses
import typing as typ

import pytest


@dataclasses.dataclass
class RunResult:
    """Record CLI invocation results."""

    stdout: str
    stderr: str
    returncode: int


@pytest.fixture
def cli_invocation() -> dict[str, RunResult]:
    """Collect the result of running the CLI within a scenario."""
    return {}


@pytest.fixture
def harness_state() -> dict[str, typ.Any]:
    """State shared between steps in harness scenarios."""
    return {}
