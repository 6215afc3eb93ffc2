"""Registry of stub storage backends.

Backends register under a short name, either with the ``@register``
decorator at import time or through package entry-points in the
``sdk_stubs.backends`` group::

    [project.entry-points."sdk_stubs.backends"]
    binary = "my_package.storage:BinaryBackend"

Entry-points are loaded lazily, the first time a name is looked up or
the registry is listed.
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable

from sdkstubs.errors import BackendNotFoundError
from sdkstubs.storage.base import StubStorageBackend

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "sdk_stubs.backends"

BackendClass = type[StubStorageBackend]


class BackendRegistry:
    """Maps backend names to :class:`StubStorageBackend` subclasses.

    Parameters
    ----------
    group:
        Entry-point group scanned by :meth:`load_entrypoints`.
    """

    def __init__(self, group: str = ENTRY_POINT_GROUP) -> None:
        self._group = group
        self._backends: dict[str, BackendClass] = {}
        self._entrypoints_loaded = False

    def register(self, name: str) -> Callable[[BackendClass], BackendClass]:
        """Return a class decorator registering the class under ``name``.

        Raises
        ------
        ValueError
            If ``name`` is already taken.
        TypeError
            If the class is not a :class:`StubStorageBackend` subclass.
        """

        def decorator(cls: BackendClass) -> BackendClass:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: BackendClass) -> None:
        if name in self._backends:
            raise ValueError(f"Storage backend {name!r} is already registered.")
        if not (isinstance(cls, type) and issubclass(cls, StubStorageBackend)):
            raise TypeError(
                f"Cannot register {cls!r} as {name!r}: "
                "it must be a subclass of StubStorageBackend."
            )
        self._backends[name] = cls
        logger.debug("Registered storage backend %r -> %s", name, cls.__qualname__)

    def deregister(self, name: str) -> None:
        if name not in self._backends:
            raise BackendNotFoundError(name, self.names())
        del self._backends[name]

    def get(self, name: str) -> BackendClass:
        """Return the backend class registered under ``name``.

        Raises
        ------
        BackendNotFoundError
            If nothing is registered under ``name``, even after loading
            entry-points.
        """
        if name not in self._backends:
            self.load_entrypoints()
        try:
            return self._backends[name]
        except KeyError:
            raise BackendNotFoundError(name, self.names()) from None

    def create(self, name: str) -> StubStorageBackend:
        """Instantiate the backend registered under ``name``."""
        return self.get(name)()

    def names(self) -> list[str]:
        """Sorted names of the backends registered so far."""
        return sorted(self._backends)

    def list_backends(self) -> dict[str, BackendClass]:
        """All backends, including those declared through entry-points."""
        self.load_entrypoints()
        return {name: self._backends[name] for name in self.names()}

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def __len__(self) -> int:
        return len(self._backends)

    def load_entrypoints(self) -> None:
        """Import and register every backend declared in the entry-point group.

        Runs once per registry. Entry-points that fail to import, clash
        with an existing name, or do not point at a backend class are
        logged and skipped.
        """
        if self._entrypoints_loaded:
            return
        self._entrypoints_loaded = True
        for ep in importlib.metadata.entry_points(group=self._group):
            if ep.name in self._backends:
                logger.debug("Entry-point backend %r already registered; skipping.", ep.name)
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception("Failed to load storage backend entry-point %r; skipping.", ep.name)
                continue
            try:
                self.register_class(ep.name, cls)
            except (ValueError, TypeError) as exc:
                logger.warning("Entry-point backend %r could not be registered: %s", ep.name, exc)


backend_registry = BackendRegistry()


def get_backend(name: str) -> StubStorageBackend:
    """Instantiate a backend from the shared registry."""
    return backend_registry.create(name)
