"""Abstract interface for stub storage backends.

A backend owns the on-disk format of a stub storage: how entries are
written during generation, and how several storages are merged into
one. The rest of sdk-stubs treats storages as opaque files identified
by a directory, a storage name and a stub version.

Every storage is accompanied by a ``<storage_name>.version`` file holding
the stub version it was written with. Merging refuses storages whose
version differs from the running backend's.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sdkstubs.generator.capabilities import GenerationContext

VERSION_SUFFIX = ".version"


def version_file(directory: Path, storage_name: str) -> Path:
    """Return the path of the version file for a storage."""
    return directory / f"{storage_name}{VERSION_SUFFIX}"


def write_version(directory: Path, storage_name: str, stub_version: str) -> Path:
    path = version_file(directory, storage_name)
    path.write_text(stub_version + "\n", encoding="utf-8")
    return path


def read_version(directory: Path, storage_name: str) -> str | None:
    """Return the recorded stub version, or ``None`` if there is none."""
    path = version_file(directory, storage_name)
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None


class StubStorageWriter(ABC):
    """Collects stubs for one storage and writes it on :meth:`close`.

    Writers are context managers; leaving the ``with`` block normally
    closes the writer, leaving it with an exception discards the
    partially built storage.
    """

    @abstractmethod
    def add(self, relative_path: str, content: bytes, context: "GenerationContext") -> None:
        """Record the stub for one source file at one language level.

        Parameters
        ----------
        relative_path:
            POSIX-style path of the source file relative to its root.
        content:
            Raw source bytes.
        context:
            The language level and related settings of this pass.
        """

    @abstractmethod
    def close(self) -> Path:
        """Write the storage and its version file; return the storage path."""

    def discard(self) -> None:
        """Drop everything collected so far without writing."""

    def __enter__(self) -> "StubStorageWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
        else:
            self.discard()


class StubStorageBackend(ABC):
    """Abstract base class for stub storage formats.

    Subclasses must implement :attr:`format_version`,
    :meth:`storage_path`, :meth:`open_writer` and :meth:`merge`.
    """

    @property
    @abstractmethod
    def format_version(self) -> int:
        """Version of the on-disk stub schema; bumped on incompatible changes."""

    @property
    def stub_version(self) -> str:
        """The version string recorded next to every storage."""
        return str(self.format_version)

    @abstractmethod
    def storage_path(self, directory: Path, storage_name: str) -> Path:
        """Return where the storage named ``storage_name`` lives in ``directory``."""

    @abstractmethod
    def open_writer(
        self,
        directory: Path,
        storage_name: str,
        stub_version: str,
        module_type_id: str,
    ) -> StubStorageWriter:
        """Return a writer producing a storage in ``directory``."""

    @abstractmethod
    def merge(
        self,
        sources: Sequence[str | Path],
        target_dir: Path,
        storage_name: str,
        empty_test_data: Path | None,
        stub_version: str,
    ) -> Path:
        """Merge the storages found in ``sources`` into ``target_dir``.

        Parameters
        ----------
        sources:
            Directories each holding a storage named ``storage_name``.
        target_dir:
            Directory receiving the merged storage.
        storage_name:
            Base name shared by the source and target storages.
        empty_test_data:
            An empty project directory the merged storage is checked
            against, or ``None`` to skip the check.
        stub_version:
            Version every source must carry; also written to the result.

        Returns
        -------
        Path
            The merged storage.

        Raises
        ------
        StorageNotFoundError
            If a source holds no storage.
        StubVersionMismatchError
            If a source was written with a different stub version.
        """
