"""Golden-output regression harness for trace resolution tooling."""

from __future__ import annotations

__version__ = "0.1.0"
