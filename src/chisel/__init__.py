# -*- coding: utf-8 -*-
"""chisel: parametric curves and patches for sandwich-panel 3D printing."""

from importlib.metadata import PackageNotFoundError, version


try:
    __version__ = version("chisel")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"
