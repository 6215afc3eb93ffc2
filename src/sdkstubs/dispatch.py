"""Mode selection and dispatch.

sdk-stubs runs in exactly one of three modes, chosen from the
configuration the same way on every entry point:

MERGE
    ``merge_sources`` is set (``MERGE_STUBS_FROM_PATHS``). Wins over
    every other setting.
PACK
    ``pack_root`` is set (``PACK_STDLIB_FROM_PATH``).
GENERATE
    Neither is set; interpreters under ``pythons_root`` are indexed.

The base directory is resolved before anything else; when it is
missing no mode runs at all.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sdkstubs.config import PREBUILT_INDICES_PATH, PACK_STDLIB_FROM_PATH, StubsConfig
from sdkstubs.errors import ConfigurationError
from sdkstubs.generator.language_level import GenerationSummary
from sdkstubs.generator.python import PyProjectSdkStubsGenerator
from sdkstubs.pack.stdlib import PackReport, PackResult, pack_stdlib_from_path
from sdkstubs.storage.base import StubStorageBackend
from sdkstubs.storage.merge import merge_stubs
from sdkstubs.storage.registry import get_backend

logger = logging.getLogger(__name__)


class Mode(Enum):
    MERGE = "merge"
    PACK = "pack"
    GENERATE = "generate"


@dataclass(frozen=True)
class DispatchResult:
    """What a dispatched run produced; only the field for its mode is set."""

    mode: Mode
    base_dir: Path
    merged_storage: Path | None = None
    pack_report: PackReport | None = None
    summaries: tuple[GenerationSummary, ...] = ()

    def exit_code(self, strict_pack: bool = False) -> int:
        if self.pack_report is not None:
            return self.pack_report.exit_code(strict_pack)
        return 0


def resolve_base_dir(value: str | Path | None) -> Path:
    """Return the base directory, creating it if it does not exist yet.

    Raises
    ------
    ConfigurationError
        If ``value`` is unset or empty.
    """
    if value is None or not str(value).strip():
        raise ConfigurationError(f"{PREBUILT_INDICES_PATH} variable is not defined", PREBUILT_INDICES_PATH)
    path = Path(value)
    if not path.exists():
        logger.info("Creating base directory %s", path)
        path.mkdir(parents=True, exist_ok=True)
    return path


def select_mode(config: StubsConfig) -> Mode:
    if config.merge_sources is not None:
        return Mode.MERGE
    if config.pack_root is not None:
        return Mode.PACK
    return Mode.GENERATE


def stub_version(backend: StubStorageBackend) -> str:
    """Stub version of ``backend``; identical on every call for one backend."""
    return backend.stub_version


def run_merge(config: StubsConfig, base_dir: Path, backend: StubStorageBackend) -> Path:
    sources = list(config.merge_sources or ())
    return merge_stubs(
        sources,
        base_dir,
        config.storage_name,
        config.empty_test_data,
        stub_version(backend),
        backend=backend,
    )


def run_pack(
    config: StubsConfig,
    base_dir: Path,
    on_result: Callable[[PackResult], None] | None = None,
    on_start: Callable[[Path], None] | None = None,
) -> PackReport:
    if config.pack_root is None:
        raise ConfigurationError(f"{PACK_STDLIB_FROM_PATH} is not set", PACK_STDLIB_FROM_PATH)
    return pack_stdlib_from_path(
        base_dir,
        config.pack_root,
        config.generator_helper,
        timeout=config.pack_timeout,
        on_result=on_result,
        on_start=on_start,
    )


def run_generate(config: StubsConfig, base_dir: Path, backend: StubStorageBackend) -> list[GenerationSummary]:
    generator = PyProjectSdkStubsGenerator(backend, config.storage_name, root=config.pythons_root)
    return generator.build_stubs(base_dir)


def run(
    config: StubsConfig,
    on_pack_result: Callable[[PackResult], None] | None = None,
    on_pack_start: Callable[[Path], None] | None = None,
) -> DispatchResult:
    """Resolve the base directory, select the mode and run it.

    Errors from merge and generate modes propagate. Pack mode reports
    per-interpreter failures in the returned result instead; its exit code
    is 0 unless ``config.strict_pack`` is set.
    """
    base_dir = resolve_base_dir(config.base_dir)
    mode = select_mode(config)
    logger.info("Running in %s mode with base directory %s", mode.value, base_dir)

    if mode is Mode.MERGE:
        backend = get_backend(config.backend)
        return DispatchResult(mode, base_dir, merged_storage=run_merge(config, base_dir, backend))
    if mode is Mode.PACK:
        return DispatchResult(mode, base_dir, pack_report=run_pack(config, base_dir, on_pack_result, on_pack_start))
    backend = get_backend(config.backend)
    return DispatchResult(mode, base_dir, summaries=tuple(run_generate(config, base_dir, backend)))
