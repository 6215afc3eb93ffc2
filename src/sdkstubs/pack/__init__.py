"""Pack mode: run the generator helper against each interpreter's stdlib."""
from __future__ import annotations

from sdkstubs.pack.stdlib import PackReport, PackResult, build_command, pack_interpreter, pack_stdlib_from_path

__all__ = ["PackReport", "PackResult", "build_command", "pack_interpreter", "pack_stdlib_from_path"]
