"""Harness configuration loaded from ``tracecheck.yaml`` and CLI overrides."""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .build import DEFAULT_BUILD_COMMAND
from .errors import ConfigError
from .manifest import DEFAULT_ACTIVE_MANIFEST

CONFIG_FILENAME = "tracecheck.yaml"
DEFAULT_FIXTURES_ROOT = "expected"
DEFAULT_GENERAL_MANIFEST = "general"
DEFAULT_RESOLVE_TARGET = "general"
DEFAULT_TOOL_BIN_DIR = "~/.cargo/bin"
ENV_FIXTURES_ROOT = "TRACECHECK_FIXTURES_ROOT"
ENV_TOOL_BIN_DIR = "TRACECHECK_TOOL_BIN_DIR"

ERROR_NOT_MAPPING = "{path}: expected a mapping at the top level."
ERROR_UNKNOWN_KEYS = "{path}: unknown configuration keys: {keys}"
ERROR_BAD_TYPE = "{path}: {key!r} must be {expected}."
ERROR_UNREADABLE = "{path}: cannot read configuration: {error}"
OVERRIDE_SOURCE = "command line"

_yaml = YAML(typ="safe")


@dataclasses.dataclass(frozen=True)
class HarnessConfig:
    """Settings that shape a harness run."""

    general_manifest: str = DEFAULT_GENERAL_MANIFEST
    resolve_target: str = DEFAULT_RESOLVE_TARGET
    active_manifest: str = DEFAULT_ACTIVE_MANIFEST
    build_command: tuple[str, ...] = DEFAULT_BUILD_COMMAND
    tool_bin_dir: Path = dataclasses.field(
        default_factory=lambda: Path(DEFAULT_TOOL_BIN_DIR).expanduser()
    )
    timeout: float | None = None
    strict_blank_lines: bool = False


_FIELD_TYPES: dict[str, tuple[str, typ.Callable[[object], bool]]] = {
    "general_manifest": ("a string", lambda value: isinstance(value, str)),
    "resolve_target": ("a string", lambda value: isinstance(value, str)),
    "active_manifest": ("a string", lambda value: isinstance(value, str)),
    "build_command": (
        "a non-empty list of strings",
        lambda value: isinstance(value, list)
        and bool(value)
        and all(isinstance(item, str) for item in value),
    ),
    "tool_bin_dir": ("a string", lambda value: isinstance(value, str)),
    "timeout": (
        "a positive number",
        lambda value: value is None
        or (
            isinstance(value, int | float)
            and not isinstance(value, bool)
            and value > 0
        ),
    ),
    "strict_blank_lines": ("a boolean", lambda value: isinstance(value, bool)),
}


def default_fixtures_root(env: typ.Mapping[str, str] | None = None) -> Path:
    """Return the fixture root used when none is given on the command line."""
    source = os.environ if env is None else env
    return Path(source.get(ENV_FIXTURES_ROOT) or DEFAULT_FIXTURES_ROOT)


def _read_config_file(path: Path) -> dict[str, object]:
    try:
        with path.open(encoding="utf-8") as handle:
            data = _yaml.load(handle)
    except (OSError, YAMLError) as error:
        raise ConfigError(ERROR_UNREADABLE.format(path=path, error=error)) from error
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(ERROR_NOT_MAPPING.format(path=path))
    return dict(data)


def _validate(path: Path | str, data: dict[str, object]) -> dict[str, object]:
    unknown = sorted(set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(
            ERROR_UNKNOWN_KEYS.format(path=path, keys=", ".join(unknown))
        )
    values: dict[str, object] = {}
    for key, value in data.items():
        expected, predicate = _FIELD_TYPES[key]
        if not predicate(value):
            raise ConfigError(
                ERROR_BAD_TYPE.format(path=path, key=key, expected=expected)
            )
        if key == "build_command":
            value = tuple(typ.cast("list[str]", value))
        elif key == "tool_bin_dir":
            value = Path(typ.cast("str", value)).expanduser()
        elif key == "timeout" and value is not None:
            value = float(typ.cast("float", value))
        values[key] = value
    return values


def load_config(
    root: Path,
    path: Path | None = None,
    *,
    env: typ.Mapping[str, str] | None = None,
    **overrides: object,
) -> HarnessConfig:
    """Build the harness configuration.

    Precedence, lowest first: built-in defaults, environment variables, the
    YAML file (``path`` or ``<root>/tracecheck.yaml`` when present), then
    ``overrides`` whose value is not ``None``.
    """
    source = os.environ if env is None else env
    values: dict[str, object] = {}
    if bin_dir := source.get(ENV_TOOL_BIN_DIR):
        values["tool_bin_dir"] = Path(bin_dir).expanduser()

    config_path = path if path is not None else root / CONFIG_FILENAME
    if path is not None or config_path.is_file():
        values |= _validate(config_path, _read_config_file(config_path))

    unknown = sorted(set(overrides) - set(_FIELD_TYPES))
    if unknown:
        msg = f"unknown configuration override {', '.join(unknown)}"
        raise ConfigError(msg)
    supplied = {
        key: str(value) if isinstance(value, Path) else value
        for key, value in overrides.items()
        if value is not None
    }
    values |= _validate(OVERRIDE_SOURCE, supplied)
    return HarnessConfig(**values)  # type: ignore[arg-type]
