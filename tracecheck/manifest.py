"""Install manifest fixtures as the active project configuration."""

from __future__ import annotations

import dataclasses
import logging
import os
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .fixtures import Fixture

_logger = logging.getLogger(__name__)

DEFAULT_ACTIVE_MANIFEST = "Cargo.toml"


@dataclasses.dataclass(frozen=True)
class ActiveConfiguration:
    """The manifest currently installed at the fixed configuration path."""

    manifest: Fixture
    path: Path

    @property
    def name(self) -> str:
        """Return the name of the installed manifest fixture."""
        return self.manifest.name


def activate(
    manifest: Fixture,
    root: Path,
    filename: str = DEFAULT_ACTIVE_MANIFEST,
) -> ActiveConfiguration:
    """Copy ``manifest`` over the active configuration file.

    The copy is flushed to disk before returning so the next build or tool
    invocation reads the new content.
    """
    destination = root / filename
    payload = manifest.path.read_bytes()
    with destination.open("wb") as handle:
        handle.write(payload)
        handle.flush()
        os.fsync(handle.fileno())
    _logger.info("activated manifest %s -> %s", manifest.name, destination)
    return ActiveConfiguration(manifest=manifest, path=destination)
