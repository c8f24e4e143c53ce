"""Interval value type tests."""

from __future__ import annotations

import math

import numpy as np
import pytest

from dynprog.core.errors import InvariantViolation
from dynprog.core.interval import Interval


def test_interval_geometry() -> None:
    interval = Interval(1.0, 5.0)
    assert interval.is_finite
    assert interval.diameter == 4.0
    assert interval.midpoint == 3.0
    assert interval.contains(5.0)
    assert not interval.contains(5.5)


def test_clamp_scalar_and_array() -> None:
    interval = Interval(0.0, 1.0)
    assert interval.clamp(-2.0) == 0.0
    assert interval.clamp(0.25) == 0.25
    assert np.array_equal(interval.clamp(np.array([-1.0, 0.5, 3.0])), [0.0, 0.5, 1.0])


def test_reversed_or_nan_endpoints_fail() -> None:
    with pytest.raises(InvariantViolation):
        Interval(2.0, 1.0)
    with pytest.raises(InvariantViolation):
        Interval(math.nan, 1.0)


def test_linspace_requires_finite_interval() -> None:
    assert len(Interval(0.0, 1.0).linspace(5)) == 5
    with pytest.raises(InvariantViolation):
        Interval(-math.inf, math.inf).linspace(5)
