"""sdk-stubs — pre-generated, mergeable stub indices for Python interpreters.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import sdkstubs

    config = sdkstubs.load_config()
    result = sdkstubs.run(config)

    # Or call one mode directly
    sdkstubs.merge_stubs(["out/3.11", "out/3.12"], Path("out"), "sdk-stubs", None, "1")

    sdkstubs.__version__
    '0.1.0'
"""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from sdkstubs.config import StubsConfig
    from sdkstubs.dispatch import DispatchResult
    from sdkstubs.pack.stdlib import PackReport


def load_config(environ: dict[str, str] | None = None, config_file: str | Path | None = None) -> "StubsConfig":
    """Resolve settings from defaults, an optional YAML file and the environment.

    Parameters
    ----------
    environ:
        Environment mapping; ``os.environ`` when omitted.
    config_file:
        YAML file to read; ``SDK_STUBS_CONFIG`` when omitted.
    """
    from sdkstubs.config import load_config as _load_config

    return _load_config(environ, config_file)


def run(config: "StubsConfig") -> "DispatchResult":
    """Run whichever mode ``config`` selects.

    Raises
    ------
    sdkstubs.errors.ConfigurationError
        If the base directory is not configured.
    """
    from sdkstubs.dispatch import run as _run

    return _run(config)


def merge_stubs(
    sources: Sequence[str | Path],
    base_dir: Path,
    storage_name: str,
    empty_test_data: Path | None,
    stub_version: str,
    backend: str = "manifest",
) -> Path:
    """Merge per-interpreter storages into ``base_dir`` and return the result."""
    from sdkstubs.storage.merge import merge_stubs as _merge_stubs

    return _merge_stubs(sources, base_dir, storage_name, empty_test_data, stub_version, backend=backend)


def pack_stdlib_from_path(base_dir: Path, root: Path, helper: Path) -> "PackReport":
    """Run the generator helper against every interpreter under ``root``."""
    from sdkstubs.pack.stdlib import pack_stdlib_from_path as _pack

    return _pack(base_dir, root, helper)


def stub_version(backend: str = "manifest") -> str:
    """Return the stub version string of a registered backend."""
    from sdkstubs.storage.registry import get_backend

    return get_backend(backend).stub_version


__all__ = [
    "__version__",
    "load_config",
    "run",
    "merge_stubs",
    "pack_stdlib_from_path",
    "stub_version",
]
