"""Exception types for sdk-stubs.

Library code raises these; the CLI translates them into exit codes and
rich-formatted messages on stderr.
"""
from __future__ import annotations

from pathlib import Path


class SdkStubsError(Exception):
    """Base class for every error raised by sdk-stubs."""


class ConfigurationError(SdkStubsError):
    """A mandatory setting is missing or a configured value is invalid.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    setting:
        The name of the offending setting, e.g. ``"PREBUILT_INDICES_PATH"``.
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        self.setting = setting
        super().__init__(message)


class InterpreterNotFoundError(SdkStubsError):
    """No Python executable exists under an interpreter home directory."""

    def __init__(self, sdk_home: Path) -> None:
        self.sdk_home = sdk_home
        super().__init__(f"No python on {sdk_home}")


class StorageError(SdkStubsError):
    """A stub storage could not be read, written or merged."""


class StorageNotFoundError(StorageError):
    """A merge source does not contain the expected stub storage."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Stub storage not found: {path}")


class StubVersionMismatchError(StorageError):
    """A stub storage was written with an incompatible stub version.

    Parameters
    ----------
    path:
        The storage whose version does not match.
    expected:
        The stub version of the running backend.
    found:
        The version recorded next to the storage.
    """

    def __init__(self, path: Path, expected: str, found: str) -> None:
        self.path = path
        self.expected = expected
        self.found = found
        super().__init__(
            f"Stub storage {path} has version {found!r}, expected {expected!r}"
        )


class BackendNotFoundError(KeyError):
    """Raised when a requested storage backend name is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.backend_name = name
        self.available = available
        listing = ", ".join(available) if available else "none"
        super().__init__(
            f"Storage backend {name!r} is not registered. Available backends: {listing}. "
            "Check that the providing package is installed and declares an "
            "entry-point in the 'sdk_stubs.backends' group."
        )
