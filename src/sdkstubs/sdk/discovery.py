"""Interpreter discovery.

An interpreter *home* is a directory holding one Python installation,
e.g. a ``pyenv`` version directory or an unpacked Windows distribution.
A root directory groups several homes as its immediate children.
"""
from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from sdkstubs.errors import InterpreterNotFoundError

logger = logging.getLogger(__name__)

_POSIX_CANDIDATES = (
    "bin/python3",
    "bin/python",
    "bin/pypy3",
    "bin/pypy",
    "python3",
    "python",
)
_WINDOWS_CANDIDATES = (
    "python.exe",
    "Scripts/python.exe",
    "pypy3.exe",
    "pypy.exe",
)


def find_python_executable(sdk_home: str | Path) -> Path | None:
    """Return the Python executable inside ``sdk_home``, or ``None``.

    Both POSIX and Windows layouts are probed regardless of the host
    platform, so a root may mix layouts.
    """
    home = Path(sdk_home)
    if not home.is_dir():
        return None
    candidates = _WINDOWS_CANDIDATES + _POSIX_CANDIDATES if sys.platform == "win32" else (
        _POSIX_CANDIDATES + _WINDOWS_CANDIDATES
    )
    for candidate in candidates:
        path = home / candidate
        if path.is_file():
            return path
    return None


def require_python_executable(sdk_home: str | Path) -> Path:
    """Like :func:`find_python_executable` but raise when nothing is found.

    Raises
    ------
    InterpreterNotFoundError
        If no executable exists under ``sdk_home``.
    """
    executable = find_python_executable(sdk_home)
    if executable is None:
        raise InterpreterNotFoundError(Path(sdk_home))
    return executable


def iter_interpreter_homes(root: str | Path) -> Iterator[Path]:
    """Yield the immediate subdirectories of ``root`` not starting with a dot.

    Homes are yielded in name order so runs are reproducible.
    """
    for child in sorted(Path(root).iterdir(), key=lambda path: path.name):
        if child.name.startswith("."):
            logger.debug("Skipping hidden entry %s", child)
            continue
        if not child.is_dir():
            continue
        yield child.absolute()


@dataclass(frozen=True)
class PythonSdk:
    """One discovered Python installation."""

    home: Path
    executable: Path

    @property
    def name(self) -> str:
        return self.home.name

    def library_roots(self) -> list[Path]:
        """Directories holding this interpreter's standard library.

        ``Lib`` for Windows layouts, every ``lib/python*`` directory for
        POSIX layouts.
        """
        posix_lib = self.home / "lib"
        if posix_lib.is_dir():
            roots = sorted(path for path in posix_lib.glob("python*") if path.is_dir())
            if roots:
                return roots
        windows_lib = self.home / "Lib"
        return [windows_lib] if windows_lib.is_dir() else []


def discover_sdks(root: str | Path) -> Iterator[PythonSdk]:
    """Yield a :class:`PythonSdk` for every interpreter home under ``root``.

    Homes without an executable are logged and skipped.
    """
    for home in iter_interpreter_homes(root):
        executable = find_python_executable(home)
        if executable is None:
            logger.warning("No python executable under %s; skipping", home)
            continue
        yield PythonSdk(home=home, executable=executable)
