"""Stub storage backends and merging.

Importing this package registers the built-in ``manifest`` backend.
"""
from __future__ import annotations

from sdkstubs.storage.base import StubStorageBackend, StubStorageWriter, read_version
from sdkstubs.storage.manifest import ManifestBackend, load_manifest
from sdkstubs.storage.merge import merge_stubs
from sdkstubs.storage.registry import ENTRY_POINT_GROUP, BackendRegistry, backend_registry, get_backend

__all__ = [
    "ENTRY_POINT_GROUP",
    "BackendRegistry",
    "ManifestBackend",
    "StubStorageBackend",
    "StubStorageWriter",
    "backend_registry",
    "get_backend",
    "load_manifest",
    "merge_stubs",
    "read_version",
]
