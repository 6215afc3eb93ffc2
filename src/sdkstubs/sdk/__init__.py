"""Python interpreter discovery."""
from __future__ import annotations

from sdkstubs.sdk.discovery import (
    PythonSdk,
    discover_sdks,
    find_python_executable,
    iter_interpreter_homes,
    require_python_executable,
)

__all__ = [
    "PythonSdk",
    "discover_sdks",
    "find_python_executable",
    "iter_interpreter_homes",
    "require_python_executable",
]
