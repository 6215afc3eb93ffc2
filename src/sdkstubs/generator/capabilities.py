"""Capability interface plugged into the generic stub generators.

The generic generators know how to enumerate interpreters, walk their
library roots and drive a storage writer once per language level. What
they do not know is anything language-specific; that is supplied by a
:class:`StubsCapabilities` implementation injected at construction.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from sdkstubs.levels import LanguageLevel

if TYPE_CHECKING:
    from sdkstubs.generator.language_level import LanguageLevelAwareStubsGenerator
    from sdkstubs.sdk.discovery import PythonSdk
    from sdkstubs.storage.base import StubStorageBackend


class FilterDecision(Enum):
    """Outcome of the file filter for one filesystem entry.

    ACCEPT
        Index this file (or, for a directory, descend into it).
    REJECT
        Skip this entry; siblings are still visited.
    PRUNE
        Skip this directory and everything below it.
    """

    ACCEPT = auto()
    REJECT = auto()
    PRUNE = auto()


@dataclass(frozen=True)
class GenerationContext:
    """Settings of a single generation pass.

    Passed explicitly to every storage write so that nothing depends on
    process-wide state.

    Parameters
    ----------
    level:
        Language level the stubs are produced for.
    default_level:
        The level treated as canonical by the consumer.
    module_type_id:
        Module type the stubs belong to, e.g. ``"PYTHON_MODULE"``.
    stub_version:
        Version string recorded with the storage.
    """

    level: LanguageLevel
    default_level: LanguageLevel
    module_type_id: str
    stub_version: str

    @property
    def is_default(self) -> bool:
        return self.level == self.default_level


class StubsCapabilities(ABC):
    """Language-specific policies consumed by the generic generators."""

    @property
    @abstractmethod
    def module_type_id(self) -> str:
        """Identifier of the module type these stubs serve."""

    @abstractmethod
    def create_sdk_producer(self, sdk_path: Path) -> Iterable["PythonSdk"]:
        """Return the interpreters found under ``sdk_path``."""

    @abstractmethod
    def create_stubs_generator(self, backend: "StubStorageBackend") -> "LanguageLevelAwareStubsGenerator":
        """Return the generator used for each interpreter."""

    @abstractmethod
    def file_filter(self, path: Path) -> FilterDecision:
        """Decide whether ``path`` is indexed, skipped or pruned."""

    @abstractmethod
    def language_levels(self) -> Iterator[LanguageLevel]:
        """Iterate over every level stubs are generated for."""

    @abstractmethod
    def default_language_level(self) -> LanguageLevel:
        """The canonical level; it is always generated first."""
