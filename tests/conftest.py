"""Shared test fixtures for sdk-stubs.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from sdkstubs import config as config_module

_SETTINGS_ENV_VARS = (
    config_module.PREBUILT_INDICES_PATH,
    config_module.MERGE_STUBS_FROM_PATHS,
    config_module.PACK_STDLIB_FROM_PATH,
    config_module.PYCHARM_PYTHONS,
    config_module.GENERATOR3_HELPER,
    config_module.ENV_CONFIG_FILE,
    config_module.ENV_STORAGE_NAME,
    config_module.ENV_BACKEND,
    config_module.ENV_EMPTY_TEST_DATA,
    config_module.ENV_PACK_TIMEOUT,
    config_module.ENV_STRICT_PACK,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own settings out of every test."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


InterpreterFactory = Callable[..., Path]


@pytest.fixture()
def make_interpreter(tmp_path: Path) -> InterpreterFactory:
    """Return a factory laying out a fake interpreter home under ``tmp_path/pythons``.

    The home gets ``bin/python`` (unless ``executable=False``) and a
    ``lib/python<version>`` directory populated from ``files``.
    """
    root = tmp_path / "pythons"

    def factory(
        name: str,
        files: dict[str, str] | None = None,
        executable: bool = True,
        version: str = "3.12",
    ) -> Path:
        home = root / name
        home.mkdir(parents=True)
        if executable:
            (home / "bin").mkdir()
            (home / "bin" / "python").write_text("#!/bin/sh\n", encoding="utf-8")
        lib = home / "lib" / f"python{version}"
        lib.mkdir(parents=True)
        for relative, content in (files or {}).items():
            path = lib / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return home

    return factory
