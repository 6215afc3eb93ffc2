"""Python language levels understood by the stub generator.

A language level is a specific version of the Python grammar. Stubs are
generated once per supported level so the analysis engine can pick the
one matching a project's interpreter.
"""
from __future__ import annotations

from collections.abc import Iterator
from enum import Enum


class LanguageLevel(Enum):
    """Supported Python grammar versions, oldest first."""

    PYTHON27 = (2, 7)
    PYTHON35 = (3, 5)
    PYTHON36 = (3, 6)
    PYTHON37 = (3, 7)
    PYTHON38 = (3, 8)
    PYTHON39 = (3, 9)
    PYTHON310 = (3, 10)
    PYTHON311 = (3, 11)
    PYTHON312 = (3, 12)
    PYTHON313 = (3, 13)

    @property
    def major(self) -> int:
        return self.value[0]

    @property
    def minor(self) -> int:
        return self.value[1]

    @property
    def is_py3k(self) -> bool:
        return self.major >= 3

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    @classmethod
    def from_string(cls, text: str) -> "LanguageLevel":
        """Return the level for a ``"MAJOR.MINOR"`` string.

        Raises
        ------
        ValueError
            If ``text`` does not name a supported level.
        """
        for level in cls:
            if str(level) == text.strip():
                return level
        supported = ", ".join(str(level) for level in cls)
        raise ValueError(f"Unsupported language level {text!r}. Supported: {supported}")

    @classmethod
    def default(cls) -> "LanguageLevel":
        """The newest supported Python 3 level."""
        return max((level for level in cls if level.is_py3k), key=lambda level: level.value)


SUPPORTED_LEVELS: tuple[LanguageLevel, ...] = tuple(LanguageLevel)


def iter_supported_levels() -> Iterator[LanguageLevel]:
    """Iterate over every supported level, oldest first."""
    return iter(SUPPORTED_LEVELS)
