#!/usr/bin/env python3
"""Example: Generate and merge — sdk-stubs

Index the standard library of every interpreter under a root directory,
then merge the per-interpreter storages into one versioned index.

Usage:
    python examples/01_generate_and_merge.py /opt/pythons /tmp/indices

Requirements:
    pip install sdk-stubs
"""
from __future__ import annotations

import sys
from pathlib import Path

import sdkstubs
from sdkstubs.config import StubsConfig
from sdkstubs.storage import load_manifest


def main() -> None:
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(2)
    root, base_dir = Path(sys.argv[1]), Path(sys.argv[2])
    print(f"sdk-stubs version: {sdkstubs.__version__}, stub version: {sdkstubs.stub_version()}")

    # Step 1: one storage per interpreter
    generated = sdkstubs.run(StubsConfig(base_dir=base_dir, pythons_root=root))
    for summary in generated.summaries:
        print(f"  {summary.storage}: {summary.file_count} file(s) at {len(summary.levels)} level(s)")

    # Step 2: merge them into base_dir
    sources = tuple(str(summary.storage.parent) for summary in generated.summaries)
    if not sources:
        print("No interpreters found.")
        return
    merged = sdkstubs.run(StubsConfig(base_dir=base_dir, merge_sources=sources))
    entries = load_manifest(merged.merged_storage)["entries"]
    print(f"Merged {len(sources)} storage(s) into {merged.merged_storage} ({len(entries)} entries)")


if __name__ == "__main__":
    main()
