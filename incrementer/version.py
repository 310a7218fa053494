"""incrementer.version — package version.

The installed distribution's metadata wins; a source checkout that was never
installed reports BASE_VERSION with a '+dev' local suffix.
"""

from __future__ import annotations

from importlib import metadata as importlib_metadata

# Bump when storage layout, event encoding or selectors change.
BASE_VERSION = "0.1.0"

DIST_NAME = "incrementer"


def compute_version(dist_name: str = DIST_NAME) -> str:
    try:
        return importlib_metadata.version(dist_name)
    except importlib_metadata.PackageNotFoundError:
        return f"{BASE_VERSION}+dev"


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "compute_version"]
