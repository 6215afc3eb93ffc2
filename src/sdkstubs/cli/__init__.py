"""CLI package.

The ``cli`` sub-package contains the Click application. Commands build a
:class:`sdkstubs.config.StubsConfig` and hand it to :mod:`sdkstubs.dispatch`.
"""
from __future__ import annotations
