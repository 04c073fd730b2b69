# src/linsys/api.py
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("linsys")
except PackageNotFoundError:  # editable/local
    __version__ = "0.0.0"
