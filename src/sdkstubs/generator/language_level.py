"""Generator that produces one stub set per supported language level."""
from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from sdkstubs.generator.capabilities import FilterDecision, GenerationContext, StubsCapabilities
from sdkstubs.levels import LanguageLevel
from sdkstubs.storage.base import StubStorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationSummary:
    """What one call to :meth:`LanguageLevelAwareStubsGenerator.build_stubs_for_roots` produced."""

    storage: Path
    file_count: int
    levels: tuple[LanguageLevel, ...]


class LanguageLevelAwareStubsGenerator:
    """Walks source roots and records stubs at every language level.

    Parameters
    ----------
    capabilities:
        Supplies the file filter and the language levels.
    backend:
        Storage format the stubs are written in.
    stub_version:
        Version recorded with the storage; defaults to the backend's.
    """

    def __init__(
        self,
        capabilities: StubsCapabilities,
        backend: StubStorageBackend,
        stub_version: str | None = None,
    ) -> None:
        self._capabilities = capabilities
        self._backend = backend
        self._stub_version = stub_version or backend.stub_version

    @property
    def stub_version(self) -> str:
        return self._stub_version

    def ordered_levels(self) -> list[LanguageLevel]:
        """The default level followed by every other level, without repeats."""
        default = self._capabilities.default_language_level()
        levels = [default]
        for level in self._capabilities.language_levels():
            if level not in levels:
                levels.append(level)
        return levels

    def collect_files(self, roots: Iterable[Path]) -> list[tuple[str, Path]]:
        """Return ``(relative_path, path)`` for every accepted file under ``roots``.

        Directories the filter rejects or prunes are not descended into.
        Results are sorted by relative path within each root.
        """
        accept = self._capabilities.file_filter
        collected: list[tuple[str, Path]] = []
        for root in roots:
            root = Path(root)
            if not root.is_dir():
                logger.warning("Source root %s does not exist; skipping", root)
                continue
            found: list[tuple[str, Path]] = []
            for dirpath, dirnames, filenames in os.walk(root):
                current = Path(dirpath)
                dirnames[:] = sorted(
                    name for name in dirnames if accept(current / name) is FilterDecision.ACCEPT
                )
                for name in filenames:
                    path = current / name
                    if path.is_file() and accept(path) is FilterDecision.ACCEPT:
                        found.append((path.relative_to(root).as_posix(), path))
            collected.extend(sorted(found))
        return collected

    def build_stubs_for_roots(
        self,
        output_dir: Path,
        storage_name: str,
        roots: Sequence[Path],
    ) -> GenerationSummary:
        """Index every accepted file under ``roots`` into one storage."""
        files = self.collect_files(roots)
        levels = self.ordered_levels()
        default = levels[0]
        contexts = [
            GenerationContext(
                level=level,
                default_level=default,
                module_type_id=self._capabilities.module_type_id,
                stub_version=self._stub_version,
            )
            for level in levels
        ]
        logger.info(
            "Generating stubs for %d file(s) at %d language level(s) into %s",
            len(files),
            len(levels),
            output_dir,
        )

        output_dir.mkdir(parents=True, exist_ok=True)
        writer = self._backend.open_writer(
            output_dir, storage_name, self._stub_version, self._capabilities.module_type_id
        )
        with writer:
            for relative_path, path in files:
                content = path.read_bytes()
                for context in contexts:
                    writer.add(relative_path, content, context)

        return GenerationSummary(
            storage=self._backend.storage_path(output_dir, storage_name),
            file_count=len(files),
            levels=tuple(levels),
        )
