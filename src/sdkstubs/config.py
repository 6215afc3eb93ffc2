"""Configuration for sdk-stubs.

Settings are resolved in three layers, later layers winning:

1. Built-in defaults.
2. An optional YAML file, named by ``--config`` or ``SDK_STUBS_CONFIG``.
3. Environment variables.

The CLI applies its own options on top of the result with
:meth:`StubsConfig.with_overrides`.

Example
-------
A YAML configuration file::

    base_dir: /var/cache/prebuilt-indices
    pythons_root: /opt/pythons
    generator_helper: /opt/helpers/generator3/__main__.py
    backend: manifest
    pack_timeout: 600
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from sdkstubs.errors import ConfigurationError

PREBUILT_INDICES_PATH = "PREBUILT_INDICES_PATH"
MERGE_STUBS_FROM_PATHS = "MERGE_STUBS_FROM_PATHS"
PACK_STDLIB_FROM_PATH = "PACK_STDLIB_FROM_PATH"
PYCHARM_PYTHONS = "PYCHARM_PYTHONS"
GENERATOR3_HELPER = "GENERATOR3_HELPER"
ENV_CONFIG_FILE = "SDK_STUBS_CONFIG"
ENV_STORAGE_NAME = "SDK_STUBS_STORAGE_NAME"
ENV_BACKEND = "SDK_STUBS_BACKEND"
ENV_EMPTY_TEST_DATA = "SDK_STUBS_EMPTY_TEST_DATA"
ENV_PACK_TIMEOUT = "SDK_STUBS_PACK_TIMEOUT"
ENV_STRICT_PACK = "SDK_STUBS_STRICT_PACK"

SDK_STUBS_STORAGE_NAME = "sdk-stubs"
DEFAULT_BACKEND = "manifest"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class StubsConfig:
    """Resolved settings for one sdk-stubs run.

    Parameters
    ----------
    base_dir:
        Output directory for every stub storage. Mandatory for all modes.
    merge_sources:
        Directories whose storages are merged. Selects merge mode when set.
    pack_root:
        Directory whose non-dot children are interpreter homes. Selects
        pack mode when set and ``merge_sources`` is not.
    pythons_root:
        Directory the default generator enumerates interpreters from.
    generator_helper:
        Helper script each interpreter runs in pack mode.
    storage_name:
        Base name of the stub storage files.
    backend:
        Registered storage backend name.
    empty_test_data:
        Empty project directory handed to the merge step.
    pack_timeout:
        Seconds each pack-mode process may run; ``None`` waits forever.
    strict_pack:
        Exit 1 from pack mode if any interpreter failed. Pack mode exits 0
        otherwise, whatever the individual outcomes.
    """

    base_dir: Path | None = None
    merge_sources: tuple[str, ...] | None = None
    pack_root: Path | None = None
    pythons_root: Path | None = None
    generator_helper: Path | None = None
    storage_name: str = SDK_STUBS_STORAGE_NAME
    backend: str = DEFAULT_BACKEND
    empty_test_data: Path | None = None
    pack_timeout: float | None = None
    strict_pack: bool = False
    source: str = field(default="defaults", compare=False)

    def with_overrides(self, **overrides: Any) -> "StubsConfig":
        """Return a copy with every non-``None`` override applied."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        if not applied:
            return self
        return replace(self, **_coerce(applied))


def split_merge_sources(value: str) -> tuple[str, ...]:
    """Split a merge-sources value on the platform path separator.

    Every element is kept, including empty ones, in input order.
    """
    return tuple(value.split(os.pathsep))


def load_config(
    environ: Mapping[str, str] | None = None,
    config_file: str | Path | None = None,
) -> StubsConfig:
    """Build a :class:`StubsConfig` from defaults, YAML and the environment.

    Parameters
    ----------
    environ:
        Environment mapping; defaults to ``os.environ``.
    config_file:
        Explicit YAML file. When ``None`` the ``SDK_STUBS_CONFIG``
        variable is consulted.

    Raises
    ------
    ConfigurationError
        If the YAML file is missing, malformed, or holds unknown keys or
        invalid values.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    source = "defaults"

    path = config_file if config_file is not None else env.get(ENV_CONFIG_FILE)
    if path:
        values.update(_read_yaml(Path(path)))
        source = str(path)

    env_values = _from_environment(env)
    if env_values:
        source = f"{source}+environment"
    values.update(env_values)

    return StubsConfig(**_coerce(values), source=source)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}", ENV_CONFIG_FILE) from None
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Cannot parse {path}: {exc}", ENV_CONFIG_FILE) from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level", ENV_CONFIG_FILE)

    known = {f.name for f in fields(StubsConfig)} - {"source"}
    unknown = sorted(set(loaded) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration key(s) in {path}: {', '.join(unknown)}", ENV_CONFIG_FILE
        )
    if isinstance(loaded.get("merge_sources"), str):
        loaded["merge_sources"] = split_merge_sources(loaded["merge_sources"])
    return loaded


def _from_environment(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if PREBUILT_INDICES_PATH in env:
        values["base_dir"] = env[PREBUILT_INDICES_PATH]
    # Presence alone selects the mode, so an empty value still counts.
    if MERGE_STUBS_FROM_PATHS in env:
        values["merge_sources"] = split_merge_sources(env[MERGE_STUBS_FROM_PATHS])
    if PACK_STDLIB_FROM_PATH in env:
        values["pack_root"] = env[PACK_STDLIB_FROM_PATH]
    if PYCHARM_PYTHONS in env:
        values["pythons_root"] = env[PYCHARM_PYTHONS]
    if GENERATOR3_HELPER in env:
        values["generator_helper"] = env[GENERATOR3_HELPER]
    if ENV_STORAGE_NAME in env:
        values["storage_name"] = env[ENV_STORAGE_NAME]
    if ENV_BACKEND in env:
        values["backend"] = env[ENV_BACKEND]
    if ENV_EMPTY_TEST_DATA in env:
        values["empty_test_data"] = env[ENV_EMPTY_TEST_DATA]
    if ENV_PACK_TIMEOUT in env:
        values["pack_timeout"] = env[ENV_PACK_TIMEOUT]
    if ENV_STRICT_PACK in env:
        values["strict_pack"] = env[ENV_STRICT_PACK]
    return values


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    coerced = dict(values)
    pack_root = coerced.get("pack_root")
    if pack_root is not None and not str(pack_root).strip():
        raise ConfigurationError(f"{PACK_STDLIB_FROM_PATH} must not be empty", PACK_STDLIB_FROM_PATH)
    for key in ("base_dir", "pack_root", "pythons_root", "generator_helper", "empty_test_data"):
        if coerced.get(key) is None:
            continue
        # Path("") would silently mean the current directory.
        if not str(coerced[key]).strip():
            coerced[key] = None
        else:
            coerced[key] = Path(coerced[key]).expanduser()
    if coerced.get("merge_sources") is not None:
        coerced["merge_sources"] = tuple(str(item) for item in coerced["merge_sources"])
    if coerced.get("pack_timeout") is not None:
        coerced["pack_timeout"] = _to_timeout(coerced["pack_timeout"])
    if "strict_pack" in coerced:
        coerced["strict_pack"] = _to_bool(coerced["strict_pack"])
    for key in ("storage_name", "backend"):
        if key in coerced and not str(coerced[key]).strip():
            raise ConfigurationError(f"{key} must not be empty", key)
    return coerced


def _to_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"pack_timeout must be a number, got {value!r}", ENV_PACK_TIMEOUT) from None
    if timeout <= 0:
        raise ConfigurationError(f"pack_timeout must be positive, got {value!r}", ENV_PACK_TIMEOUT)
    return timeout


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"strict_pack must be a boolean, got {value!r}", ENV_STRICT_PACK
    )
