"""Package utilities for quadfield.

The engine lives in the top-level packages `geometry/`, `runtime/`, `core/`
and `parameters/`. This package only carries the distribution version.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("quadfield")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
