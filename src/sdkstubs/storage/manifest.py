"""The ``manifest`` storage backend.

A manifest storage is a JSON document keyed by the SHA-256 of each
indexed source file. Every entry remembers the first path the content
was seen under and the language levels it was indexed at::

    {
      "format": "sdk-stubs-manifest",
      "stub_version": "1",
      "module_type": "PYTHON_MODULE",
      "entries": {
        "3f2a...": {"path": "os.py", "levels": ["3.12", "3.13"]}
      }
    }

Keying by content hash makes storages from different interpreters
mergeable: identical files collapse into one entry whose levels are
the union of both sides.
"""
from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sdkstubs.errors import StorageError, StorageNotFoundError, StubVersionMismatchError
from sdkstubs.levels import LanguageLevel
from sdkstubs.storage.base import (
    StubStorageBackend,
    StubStorageWriter,
    read_version,
    write_version,
)
from sdkstubs.storage.registry import backend_registry

if TYPE_CHECKING:
    from sdkstubs.generator.capabilities import GenerationContext

logger = logging.getLogger(__name__)

MANIFEST_FORMAT = "sdk-stubs-manifest"


def _level_sort_key(text: str) -> tuple[int, ...]:
    try:
        return LanguageLevel.from_string(text).value
    except ValueError:
        return (99, 99)


def _write_manifest(
    path: Path,
    stub_version: str,
    module_type_id: str,
    entries: dict[str, dict[str, Any]],
) -> None:
    document = {
        "format": MANIFEST_FORMAT,
        "stub_version": stub_version,
        "module_type": module_type_id,
        "entries": {
            digest: {
                "path": entry["path"],
                "levels": sorted(entry["levels"], key=_level_sort_key),
            }
            for digest, entry in sorted(entries.items())
        },
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    tmp_path.replace(path)


def load_manifest(path: Path) -> dict[str, Any]:
    """Read a manifest storage.

    Raises
    ------
    StorageNotFoundError
        If ``path`` does not exist.
    StorageError
        If the file is not a manifest storage or its entries are malformed.
    """
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise StorageNotFoundError(path) from None
    except json.JSONDecodeError as exc:
        raise StorageError(f"Corrupt stub storage {path}: {exc}") from exc
    if not isinstance(document, dict) or document.get("format") != MANIFEST_FORMAT:
        raise StorageError(f"{path} is not a {MANIFEST_FORMAT} storage")
    entries = document.get("entries")
    if not isinstance(entries, dict):
        raise StorageError(f"Corrupt stub storage {path}: missing entries")
    for digest, entry in entries.items():
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("path"), str)
            or not isinstance(entry.get("levels"), list)
        ):
            raise StorageError(f"Corrupt stub storage {path}: malformed entry {digest}")
    return document


class ManifestWriter(StubStorageWriter):
    """Accumulates manifest entries in memory until :meth:`close`."""

    def __init__(self, path: Path, storage_name: str, stub_version: str, module_type_id: str) -> None:
        self.path = path
        self._storage_name = storage_name
        self._stub_version = stub_version
        self._module_type_id = module_type_id
        self._entries: dict[str, dict[str, Any]] = {}
        self._closed = False

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def add(self, relative_path: str, content: bytes, context: "GenerationContext") -> None:
        if self._closed:
            raise StorageError(f"Writer for {self.path} is already closed")
        digest = hashlib.sha256(content).hexdigest()
        entry = self._entries.setdefault(digest, {"path": relative_path, "levels": set()})
        entry["levels"].add(str(context.level))

    def close(self) -> Path:
        if self._closed:
            return self.path
        _write_manifest(self.path, self._stub_version, self._module_type_id, self._entries)
        write_version(self.path.parent, self._storage_name, self._stub_version)
        self._closed = True
        logger.info("Wrote %d stub entries to %s", len(self._entries), self.path)
        return self.path

    def discard(self) -> None:
        self._entries.clear()
        self._closed = True


@backend_registry.register("manifest")
class ManifestBackend(StubStorageBackend):
    """Content-hash keyed JSON storage."""

    suffix = ".json"

    @property
    def format_version(self) -> int:
        return 1

    def storage_path(self, directory: Path, storage_name: str) -> Path:
        return Path(directory) / f"{storage_name}{self.suffix}"

    def open_writer(
        self,
        directory: Path,
        storage_name: str,
        stub_version: str,
        module_type_id: str,
    ) -> ManifestWriter:
        return ManifestWriter(
            self.storage_path(directory, storage_name),
            storage_name,
            stub_version,
            module_type_id,
        )

    def merge(
        self,
        sources: Sequence[str | Path],
        target_dir: Path,
        storage_name: str,
        empty_test_data: Path | None,
        stub_version: str,
    ) -> Path:
        if empty_test_data is not None and not Path(empty_test_data).is_dir():
            raise StorageError(f"Empty test data directory does not exist: {empty_test_data}")

        merged: dict[str, dict[str, Any]] = {}
        module_type_id = ""
        for source in sources:
            directory = Path(source)
            path = self.storage_path(directory, storage_name)
            if not path.is_file():
                raise StorageNotFoundError(path)
            found = read_version(directory, storage_name)
            if found != stub_version:
                raise StubVersionMismatchError(path, stub_version, found or "<missing>")

            document = load_manifest(path)
            module_type_id = module_type_id or document.get("module_type", "")
            for digest, entry in document["entries"].items():
                target = merged.setdefault(digest, {"path": entry["path"], "levels": set()})
                target["levels"].update(entry["levels"])
            logger.debug("Merged %d entries from %s", len(document["entries"]), path)

        target_dir = Path(target_dir)
        target = self.storage_path(target_dir, storage_name)
        _write_manifest(target, stub_version, module_type_id, merged)
        write_version(target_dir, storage_name, stub_version)

        if empty_test_data is not None:
            _check_against_empty_project(target, Path(empty_test_data))
        logger.info("Merged %d source(s) into %s (%d entries)", len(sources), target, len(merged))
        return target


def _check_against_empty_project(storage: Path, project: Path) -> None:
    """Reload the merged storage and confirm it resolves nothing in ``project``."""
    document = load_manifest(storage)
    local = {
        hashlib.sha256(path.read_bytes()).hexdigest()
        for path in project.rglob("*.py")
        if path.is_file()
    }
    overlap = local & set(document["entries"])
    if overlap:
        raise StorageError(
            f"Merged storage {storage} unexpectedly indexes {len(overlap)} file(s) "
            f"from the empty project {project}"
        )
