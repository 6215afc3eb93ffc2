"""Generator that builds one stub storage per discovered interpreter."""
from __future__ import annotations

import logging
from pathlib import Path

from sdkstubs.config import PYCHARM_PYTHONS
from sdkstubs.errors import ConfigurationError
from sdkstubs.generator.capabilities import StubsCapabilities
from sdkstubs.generator.language_level import GenerationSummary
from sdkstubs.storage.base import StubStorageBackend

logger = logging.getLogger(__name__)


class ProjectSdkStubsGenerator:
    """Enumerates interpreters under a root and indexes each one's library.

    Each interpreter gets its own directory under the base directory,
    named after the interpreter home, so the results can be fed to
    :func:`sdkstubs.storage.merge_stubs` afterwards.

    Parameters
    ----------
    capabilities:
        Language-specific policies.
    backend:
        Storage format to write.
    storage_name:
        Base name of each storage file.
    root:
        Directory holding the interpreter homes.
    """

    def __init__(
        self,
        capabilities: StubsCapabilities,
        backend: StubStorageBackend,
        storage_name: str,
        root: Path | None = None,
    ) -> None:
        self.capabilities = capabilities
        self.backend = backend
        self.storage_name = storage_name
        self._root = root

    @property
    def root(self) -> Path | None:
        return self._root

    def build_stubs(self, base_dir: Path) -> list[GenerationSummary]:
        """Generate a storage for every interpreter found under :attr:`root`.

        Raises
        ------
        ConfigurationError
            If no root is configured or it is not a directory.
        """
        root = self.root
        if root is None:
            raise ConfigurationError(
                f"{PYCHARM_PYTHONS} is not set; cannot locate interpreters", PYCHARM_PYTHONS
            )
        if not root.is_dir():
            raise ConfigurationError(f"Interpreter root {root} is not a directory", PYCHARM_PYTHONS)

        generator = self.capabilities.create_stubs_generator(self.backend)
        summaries: list[GenerationSummary] = []
        for sdk in self.capabilities.create_sdk_producer(root):
            roots = sdk.library_roots()
            if not roots:
                logger.warning("No library roots found for %s; skipping", sdk.home)
                continue
            logger.info("Building stubs for %s (%s)", sdk.name, sdk.executable)
            summary = generator.build_stubs_for_roots(Path(base_dir) / sdk.name, self.storage_name, roots)
            summaries.append(summary)

        if not summaries:
            logger.warning("No interpreters with library roots found under %s", root)
        return summaries
