"""Invariant checks for ARS hulls."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from dfars.inference.hulls import Hulls, UpperHull, evaluate_hulls
from dfars.utils.typing import LogDensity


@dataclass
class HullCheck:
    total_probability: float
    n_lower: int
    n_upper: int
    max_lower_excess: float   # max of lower(x) - f(x), should be <= 0
    max_upper_deficit: float  # max of f(x) - upper(x), should be <= 0
    n_points: int

    def ok(self, atol: float = 1e-9) -> bool:
        return (
            abs(self.total_probability - 1.0) <= atol
            and self.max_lower_excess <= atol
            and self.max_upper_deficit <= atol
        )


def total_probability(upper: UpperHull) -> float:
    return float(np.sum(np.exp(upper.log_prob)))


def check_hulls(
    hulls: Hulls,
    func: LogDensity,
    points: Optional[Sequence[float]] = None,
    n_points: int = 501,
) -> HullCheck:
    """Compare both hulls against ``func`` on a grid over the meshed region.

    ``points`` defaults to an even grid of ``n_points`` on
    ``[min(mesh), max(mesh)]``, which is where the squeezing bound exists.
    """
    lower = hulls.lower
    if points is None:
        xs = np.linspace(float(lower.left[0]), float(lower.right[-1]), n_points)
    else:
        xs = np.asarray(points, dtype=float)

    lower_excess = -np.inf
    upper_deficit = -np.inf
    for x in xs:
        lo, up = evaluate_hulls(float(x), hulls.lower, hulls.upper)
        fx = float(func(float(x)))
        lower_excess = max(lower_excess, lo - fx)
        upper_deficit = max(upper_deficit, fx - up)

    return HullCheck(
        total_probability=total_probability(hulls.upper),
        n_lower=len(hulls.lower),
        n_upper=len(hulls.upper),
        max_lower_excess=float(lower_excess),
        max_upper_deficit=float(upper_deficit),
        n_points=int(xs.size),
    )
