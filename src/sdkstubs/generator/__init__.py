"""Stub generators.

The generic generators (:class:`ProjectSdkStubsGenerator`,
:class:`LanguageLevelAwareStubsGenerator`) are parameterised by a
:class:`StubsCapabilities` implementation; :mod:`sdkstubs.generator.python`
provides the one for Python.
"""
from __future__ import annotations

from sdkstubs.generator.capabilities import FilterDecision, GenerationContext, StubsCapabilities
from sdkstubs.generator.language_level import GenerationSummary, LanguageLevelAwareStubsGenerator
from sdkstubs.generator.project import ProjectSdkStubsGenerator
from sdkstubs.generator.python import (
    PYTHON_MODULE,
    PyProjectSdkStubsGenerator,
    PyStubsGenerator,
    PythonStubsCapabilities,
    python_file_filter,
)

__all__ = [
    "PYTHON_MODULE",
    "FilterDecision",
    "GenerationContext",
    "GenerationSummary",
    "LanguageLevelAwareStubsGenerator",
    "ProjectSdkStubsGenerator",
    "PyProjectSdkStubsGenerator",
    "PyStubsGenerator",
    "PythonStubsCapabilities",
    "StubsCapabilities",
    "python_file_filter",
]
