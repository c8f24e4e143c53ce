"""Function approximation bases and quadrature rules."""

from dynprog.approx.basis import Basis, InterpolatedFunction
from dynprog.approx.chebyshev import ChebyshevBasis
from dynprog.approx.linear import PiecewiseLinearBasis
from dynprog.approx.quadrature import Quadrature, quadrature, quadrature_normal
from dynprog.approx.wrappers import ExtrapolationWrapper, IntervalRemap

__all__ = [
    "Basis",
    "ChebyshevBasis",
    "ExtrapolationWrapper",
    "InterpolatedFunction",
    "IntervalRemap",
    "PiecewiseLinearBasis",
    "Quadrature",
    "quadrature",
    "quadrature_normal",
]
