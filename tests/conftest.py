"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys

import pytest


def _preload_numpy_without_macos_check() -> None:
    """Import NumPy before SciPy with the macOS BLAS sanity check bypassed.

    Some macOS Accelerate builds crash in NumPy's import-time polyfit check,
    which SciPy's linear algebra would otherwise trigger during collection.
    """
    if sys.platform != "darwin":
        return

    original_platform = sys.platform
    try:
        sys.platform = "linux"
        import numpy  # noqa: F401
    finally:
        sys.platform = original_platform


_preload_numpy_without_macos_check()


@pytest.fixture
def rng():
    """Seeded generator so simulated paths are reproducible."""
    import numpy as np

    return np.random.default_rng(20240611)
