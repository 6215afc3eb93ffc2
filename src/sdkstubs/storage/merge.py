"""Merging per-interpreter stub storages into one."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from sdkstubs.storage.base import StubStorageBackend
from sdkstubs.storage.registry import get_backend

logger = logging.getLogger(__name__)


def merge_stubs(
    sources: Sequence[str | Path],
    base_dir: Path,
    storage_name: str,
    empty_test_data: Path | None,
    stub_version: str,
    backend: StubStorageBackend | str = "manifest",
) -> Path:
    """Merge the storages in ``sources`` into ``base_dir``.

    ``sources`` are passed to the backend as given, in order. Errors from
    the backend propagate unchanged.
    """
    if isinstance(backend, str):
        backend = get_backend(backend)
    logger.info("Merging %d stub storage(s) into %s", len(sources), base_dir)
    return backend.merge(list(sources), Path(base_dir), storage_name, empty_test_data, stub_version)
