"""Closed-form line fits and log-integrals of exponentiated lines."""
from __future__ import annotations

import math
from typing import Tuple

from dfars.inference.errors import DegenerateHullError


def line_through(x1: float, x2: float, fx1: float, fx2: float) -> Tuple[float, float]:
    """Slope and intercept of the line through ``(x1, fx1)`` and ``(x2, fx2)``."""
    if x1 == x2:
        raise DegenerateHullError(f"cannot fit a line through coincident abscissae x={x1!r}")
    slope = (fx2 - fx1) / (x2 - x1)
    intercept = fx1 - slope * x1
    return slope, intercept


def log_integral(slope: float, intercept: float, x1: float, x2: float) -> float:
    """``log`` of the integral of ``exp(slope * t + intercept)`` over ``[x1, x2]``.

    Computed as ``intercept + slope*x_hi - log|slope| + log(-expm1(-|slope|*(x2 - x1)))``
    where ``x_hi`` is the endpoint with the larger exponent, so a nearly flat
    line keeps its full mass instead of cancelling to zero.
    """
    if x1 == x2:
        return -math.inf
    if x2 < x1:
        raise DegenerateHullError(f"integration interval [{x1!r}, {x2!r}] is reversed")
    if slope == 0.0:
        return intercept + math.log(x2 - x1)
    gap = abs(slope) * (x2 - x1)
    if gap == 0.0:
        # slope * width underflows: the line is flat to machine precision
        return intercept + slope * x1 + math.log(x2 - x1)
    x_hi = x2 if slope > 0.0 else x1
    return intercept + slope * x_hi - math.log(abs(slope)) + math.log(-math.expm1(-gap))


def log_integral_from_boundary(slope: float, intercept: float, x: float) -> float:
    """``log`` of the integral of ``exp(slope * t + intercept)`` over ``(-inf, x]``."""
    if not slope > 0.0:
        raise ValueError(f"left tail diverges for non-positive slope {slope!r}")
    return intercept - math.log(slope) + slope * x


def log_integral_to_boundary(slope: float, intercept: float, x: float) -> float:
    """``log`` of the integral of ``exp(slope * t + intercept)`` over ``[x, +inf)``."""
    if not slope < 0.0:
        raise ValueError(f"right tail diverges for non-negative slope {slope!r}")
    return intercept - math.log(-slope) + slope * x


__all__ = [
    "line_through",
    "log_integral",
    "log_integral_from_boundary",
    "log_integral_to_boundary",
]
