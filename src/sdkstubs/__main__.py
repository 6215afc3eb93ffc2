"""Entry point for ``python -m sdkstubs``."""
from __future__ import annotations

from sdkstubs.cli.main import cli

if __name__ == "__main__":
    cli()
