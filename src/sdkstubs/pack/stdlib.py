"""Pack mode: run the stub-generation helper inside every interpreter.

Interpreters are processed one at a time. Each run is awaited to
completion with its stdout and stderr captured before the next starts.
A failing interpreter never stops the loop; its outcome is recorded in
the returned :class:`PackReport` instead.
"""
from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from sdkstubs.config import GENERATOR3_HELPER, PACK_STDLIB_FROM_PATH
from sdkstubs.errors import ConfigurationError, InterpreterNotFoundError
from sdkstubs.sdk.discovery import iter_interpreter_homes, require_python_executable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackResult:
    """Outcome of packing one interpreter.

    Parameters
    ----------
    sdk_home:
        The interpreter home directory.
    ok:
        True when the helper exited with status 0.
    message:
        Short description of the outcome.
    command:
        The command line that was run; empty if nothing was spawned.
    output:
        Captured stdout followed by stderr.
    returncode:
        Exit status of the helper, or ``None`` if it never finished.
    """

    sdk_home: Path
    ok: bool
    message: str
    command: tuple[str, ...] = ()
    output: str = ""
    returncode: int | None = None


@dataclass
class PackReport:
    """Every :class:`PackResult` of one pack run, in processing order."""

    results: list[PackResult] = field(default_factory=list)

    @property
    def failures(self) -> list[PackResult]:
        return [result for result in self.results if not result.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def exit_code(self, strict: bool = False) -> int:
        """1 when ``strict`` and any interpreter failed, else 0."""
        if strict and not self.ok:
            return 1
        return 0

    def summary(self) -> str:
        total = len(self.results)
        failed = len(self.failures)
        return f"Packed {total - failed} of {total} interpreter(s), {failed} failed"


def build_command(executable: Path, helper: Path, base_dir: Path) -> list[str]:
    """``<executable> <helper> -u <base_dir>``"""
    return [str(executable.absolute()), str(helper), "-u", str(base_dir)]


def pack_interpreter(
    sdk_home: Path,
    helper: Path,
    base_dir: Path,
    timeout: float | None = None,
) -> PackResult:
    """Run the helper in the interpreter at ``sdk_home`` and capture its output."""
    try:
        executable = require_python_executable(sdk_home)
    except InterpreterNotFoundError as exc:
        logger.error("%s", exc)
        return PackResult(sdk_home=sdk_home, ok=False, message=str(exc))

    command = build_command(executable, helper, base_dir)
    logger.info("Packing stdlib of %s", sdk_home)
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        output = _decode(exc.stdout) + _decode(exc.stderr)
        message = f"Timed out after {timeout:g} seconds"
        logger.error("Packing %s: %s", sdk_home, message)
        return PackResult(sdk_home, False, message, tuple(command), output)
    except OSError as exc:
        message = f"Cannot run {executable}: {exc}"
        logger.error("Packing %s: %s", sdk_home, message)
        return PackResult(sdk_home, False, message, tuple(command))

    output = (completed.stdout or "") + (completed.stderr or "")
    if completed.returncode == 0:
        return PackResult(sdk_home, True, "OK", tuple(command), output, 0)
    message = f"Helper exited with status {completed.returncode}"
    logger.error("Packing %s: %s", sdk_home, message)
    return PackResult(sdk_home, False, message, tuple(command), output, completed.returncode)


def pack_stdlib_from_path(
    base_dir: Path,
    root: Path,
    helper: Path | None,
    timeout: float | None = None,
    on_result: Callable[[PackResult], None] | None = None,
    on_start: Callable[[Path], None] | None = None,
) -> PackReport:
    """Pack every interpreter home under ``root`` into ``base_dir``.

    Parameters
    ----------
    base_dir:
        Directory the helper writes its output to.
    root:
        Directory whose non-dot subdirectories are interpreter homes.
    helper:
        The generator helper script.
    timeout:
        Per-interpreter time limit in seconds; ``None`` for no limit.
    on_result:
        Called with each result as soon as it is available.
    on_start:
        Called with each interpreter home before its helper is spawned.

    Raises
    ------
    ConfigurationError
        If ``root`` or ``helper`` is missing. Nothing is spawned then.
    """
    if helper is None:
        raise ConfigurationError(
            f"{GENERATOR3_HELPER} is not set; pack mode needs the generator helper script",
            GENERATOR3_HELPER,
        )
    if not Path(helper).exists():
        raise ConfigurationError(f"Generator helper {helper} does not exist", GENERATOR3_HELPER)
    if not Path(root).is_dir():
        raise ConfigurationError(f"Interpreter root {root} is not a directory", PACK_STDLIB_FROM_PATH)

    report = PackReport()
    for sdk_home in iter_interpreter_homes(root):
        if on_start is not None:
            on_start(sdk_home)
        result = pack_interpreter(sdk_home, Path(helper), Path(base_dir), timeout)
        report.results.append(result)
        if on_result is not None:
            on_result(result)
    logger.info(report.summary())
    return report


def _decode(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
