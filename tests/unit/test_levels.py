"""Unit tests for sdkstubs.levels."""
from __future__ import annotations

import pytest

from sdkstubs.levels import SUPPORTED_LEVELS, LanguageLevel, iter_supported_levels


class TestLanguageLevel:
    def test_default_is_newest_python3(self) -> None:
        assert LanguageLevel.default() is LanguageLevel.PYTHON313

    def test_str(self) -> None:
        assert str(LanguageLevel.PYTHON27) == "2.7"
        assert str(LanguageLevel.PYTHON310) == "3.10"

    def test_from_string(self) -> None:
        assert LanguageLevel.from_string("3.9") is LanguageLevel.PYTHON39
        assert LanguageLevel.from_string(" 2.7 ") is LanguageLevel.PYTHON27

    def test_from_string_rejects_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            LanguageLevel.from_string("4.0")

    def test_is_py3k(self) -> None:
        assert not LanguageLevel.PYTHON27.is_py3k
        assert LanguageLevel.PYTHON35.is_py3k

    def test_supported_levels_are_ordered(self) -> None:
        values = [level.value for level in SUPPORTED_LEVELS]
        assert values == sorted(values)

    def test_iterator_covers_every_level(self) -> None:
        assert list(iter_supported_levels()) == list(LanguageLevel)
