"""Python-specific capabilities and the generators wired to them."""
from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

from sdkstubs.config import PYCHARM_PYTHONS
from sdkstubs.generator.capabilities import FilterDecision, StubsCapabilities
from sdkstubs.generator.language_level import LanguageLevelAwareStubsGenerator
from sdkstubs.generator.project import ProjectSdkStubsGenerator
from sdkstubs.levels import LanguageLevel, iter_supported_levels
from sdkstubs.sdk.discovery import PythonSdk, discover_sdks
from sdkstubs.storage.base import StubStorageBackend

PYTHON_MODULE = "PYTHON_MODULE"
PYTHON_SOURCE_SUFFIXES = frozenset({".py", ".pyw"})
# Build-tree directories some distributions ship inside the stdlib.
PRUNED_DIRECTORY = "parts"


def python_file_filter(path: Path) -> FilterDecision:
    """Prune ``parts`` directories and accept only Python source files."""
    if path.is_dir():
        return FilterDecision.PRUNE if path.name == PRUNED_DIRECTORY else FilterDecision.ACCEPT
    if path.suffix.lower() in PYTHON_SOURCE_SUFFIXES:
        return FilterDecision.ACCEPT
    return FilterDecision.REJECT


class PythonStubsCapabilities(StubsCapabilities):
    @property
    def module_type_id(self) -> str:
        return PYTHON_MODULE

    def create_sdk_producer(self, sdk_path: Path) -> Iterator[PythonSdk]:
        return discover_sdks(sdk_path)

    def create_stubs_generator(self, backend: StubStorageBackend) -> "PyStubsGenerator":
        return PyStubsGenerator(backend)

    def file_filter(self, path: Path) -> FilterDecision:
        return python_file_filter(path)

    def language_levels(self) -> Iterator[LanguageLevel]:
        return iter_supported_levels()

    def default_language_level(self) -> LanguageLevel:
        return LanguageLevel.default()


class PyStubsGenerator(LanguageLevelAwareStubsGenerator):
    """Language-level-aware generator for Python sources."""

    def __init__(self, backend: StubStorageBackend, stub_version: str | None = None) -> None:
        super().__init__(PythonStubsCapabilities(), backend, stub_version)


class PyProjectSdkStubsGenerator(ProjectSdkStubsGenerator):
    """Project SDK generator for Python interpreters.

    When no root is given it is read from the ``PYCHARM_PYTHONS``
    environment variable; a blank value counts as unset.
    """

    def __init__(self, backend: StubStorageBackend, storage_name: str, root: Path | None = None) -> None:
        if root is None:
            value = os.environ.get(PYCHARM_PYTHONS, "").strip()
            root = Path(value).expanduser() if value else None
        super().__init__(PythonStubsCapabilities(), backend, storage_name, root)
