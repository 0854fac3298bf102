"""Piecewise-linear squeezing and envelope hulls for derivative-free ARS.

The lower hull (squeezing function) is made of secants between consecutive
mesh points. The upper hull (envelope) extends neighbouring secants past the
points they were fitted on, which bounds a concave log-density from above.
Each envelope segment carries the log of its normalized probability mass so
that the envelope can be sampled as a piecewise-exponential distribution.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from dfars.inference.errors import DegenerateHullError
from dfars.inference.geometry import (
    line_through,
    log_integral,
    log_integral_from_boundary,
    log_integral_to_boundary,
)
from dfars.inference.logspace import log_sum_exp


@dataclass(frozen=True)
class Domain:
    """Support of the target density; either bound may be infinite."""

    left: float = -math.inf
    right: float = math.inf

    def __post_init__(self) -> None:
        if math.isnan(self.left) or math.isnan(self.right):
            raise ValueError("domain bounds must not be NaN")
        if not self.left < self.right:
            raise ValueError(f"domain left bound {self.left!r} must be below right bound {self.right!r}")

    @classmethod
    def coerce(cls, domain) -> "Domain":
        if isinstance(domain, Domain):
            return domain
        left, right = domain
        return cls(float(left), float(right))

    @property
    def left_unbounded(self) -> bool:
        return math.isinf(self.left)

    @property
    def right_unbounded(self) -> bool:
        return math.isinf(self.right)

    def __iter__(self) -> Iterator[float]:
        yield self.left
        yield self.right


class HullSegment(NamedTuple):
    slope: float
    intercept: float
    left: float
    right: float
    log_prob: Optional[float] = None


def _frozen(values: Sequence[float]) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class LowerHull:
    """Secant segments ``slope * x + intercept`` on ``[left, right]``."""

    slope: np.ndarray
    intercept: np.ndarray
    left: np.ndarray
    right: np.ndarray

    def __len__(self) -> int:
        return int(self.slope.size)

    def value(self, index: int, x: float) -> float:
        return float(self.slope[index] * x + self.intercept[index])

    def segments(self) -> Iterator[HullSegment]:
        for i in range(len(self)):
            yield HullSegment(
                float(self.slope[i]), float(self.intercept[i]), float(self.left[i]), float(self.right[i])
            )


@dataclass(frozen=True, eq=False)
class UpperHull(LowerHull):
    """Envelope segments with normalized log-probabilities ``log_prob``."""

    log_prob: np.ndarray

    def segments(self) -> Iterator[HullSegment]:
        for seg, log_prob in zip(super().segments(), self.log_prob):
            yield seg._replace(log_prob=float(log_prob))


@dataclass(frozen=True, eq=False)
class Hulls:
    lower: LowerHull
    upper: UpperHull


class Position(Enum):
    OUTSIDE_LEFT = "outside_left"
    OUTSIDE_RIGHT = "outside_right"
    INSIDE = "inside"


@dataclass(frozen=True)
class Location:
    """Where a point falls relative to a hull; ``index`` is set only when inside."""

    position: Position
    index: Optional[int] = None


def _intersection(m1: float, b1: float, m2: float, b2: float, lo: float, hi: float) -> float:
    # parallel lines coincide on a concave target; any split point works
    if m1 == m2:
        return 0.5 * (lo + hi)
    ix = (b1 - b2) / (m2 - m1)
    if not math.isfinite(ix):
        return 0.5 * (lo + hi)
    return min(max(ix, lo), hi)


def _left_boundary_log_prob(domain: Domain, slope: float, intercept: float, x: float) -> float:
    if not domain.left_unbounded:
        return log_integral(slope, intercept, domain.left, x)
    if not slope > 0.0:
        raise DegenerateHullError(
            f"envelope slope {slope!r} left of x={x!r} does not decay towards -inf"
        )
    return log_integral_from_boundary(slope, intercept, x)


def _right_boundary_log_prob(domain: Domain, slope: float, intercept: float, x: float) -> float:
    if not domain.right_unbounded:
        return log_integral(slope, intercept, x, domain.right)
    if not slope < 0.0:
        raise DegenerateHullError(
            f"envelope slope {slope!r} right of x={x!r} does not decay towards +inf"
        )
    return log_integral_to_boundary(slope, intercept, x)


def compute_hulls(domain, mesh: Sequence[float], values: Sequence[float]) -> Hulls:
    """Build the lower and normalized upper hull for a sorted mesh.

    Parameters
    ----------
    domain : Domain or (left, right)
        Support of the target density.
    mesh : sequence of float
        Strictly increasing abscissae, at least three of them.
    values : sequence of float
        Log-density evaluated at ``mesh``.

    Returns
    -------
    Hulls
        ``lower`` has ``len(mesh) - 1`` segments, ``upper`` has
        ``2 * len(mesh) - 2`` segments spanning the whole domain.
    """
    domain = Domain.coerce(domain)
    S = np.asarray(mesh, dtype=float)
    fS = np.asarray(values, dtype=float)
    n = S.size
    if S.ndim != 1 or fS.shape != S.shape:
        raise ValueError(f"mesh and values must be 1D with equal length; got {S.shape} and {fS.shape}")
    if n < 3:
        raise ValueError(f"hull construction needs at least 3 mesh points, got {n}")
    if np.any(np.diff(S) <= 0.0):
        raise ValueError("mesh must be strictly increasing")
    if not np.all(np.isfinite(fS)):
        raise ValueError("log-density values on the mesh must be finite")
    if S[0] < domain.left or S[-1] > domain.right:
        raise ValueError(f"mesh [{S[0]!r}, {S[-1]!r}] is not contained in domain {tuple(domain)!r}")

    # secant through each consecutive pair; the envelope reuses these lines
    lines = [line_through(S[i], S[i + 1], fS[i], fS[i + 1]) for i in range(n - 1)]

    lower = LowerHull(
        slope=_frozen([m for m, _ in lines]),
        intercept=_frozen([b for _, b in lines]),
        left=_frozen(S[:-1]),
        right=_frozen(S[1:]),
    )

    segments: List[Tuple[float, float, float, float, float]] = []

    m, b = lines[0]
    segments.append((m, b, domain.left, S[0], _left_boundary_log_prob(domain, m, b, S[0])))

    m, b = lines[1]
    segments.append((m, b, S[0], S[1], log_integral(m, b, S[0], S[1])))

    for i in range(1, n - 2):
        m1, b1 = lines[i - 1]
        m2, b2 = lines[i + 1]
        ix = _intersection(m1, b1, m2, b2, S[i], S[i + 1])
        segments.append((m1, b1, S[i], ix, log_integral(m1, b1, S[i], ix)))
        segments.append((m2, b2, ix, S[i + 1], log_integral(m2, b2, ix, S[i + 1])))

    m, b = lines[n - 3]
    segments.append((m, b, S[n - 2], S[n - 1], log_integral(m, b, S[n - 2], S[n - 1])))

    m, b = lines[n - 2]
    segments.append((m, b, S[n - 1], domain.right, _right_boundary_log_prob(domain, m, b, S[n - 1])))

    seg_arr = np.asarray(segments, dtype=float)
    log_z = log_sum_exp(seg_arr[:, 4])
    if not math.isfinite(log_z):
        raise DegenerateHullError(f"envelope normalizing constant is not finite (log Z = {log_z!r})")

    upper = UpperHull(
        slope=_frozen(seg_arr[:, 0]),
        intercept=_frozen(seg_arr[:, 1]),
        left=_frozen(seg_arr[:, 2]),
        right=_frozen(seg_arr[:, 3]),
        log_prob=_frozen(seg_arr[:, 4] - log_z),
    )
    return Hulls(lower=lower, upper=upper)


def locate(hull: LowerHull, x: float) -> Location:
    """Classify ``x`` as left of, right of, or inside one segment of ``hull``."""
    if math.isnan(x):
        raise ValueError("cannot locate NaN on a hull")
    if x < hull.left.min():
        return Location(Position.OUTSIDE_LEFT)
    if x > hull.right.max():
        return Location(Position.OUTSIDE_RIGHT)
    # first segment whose right edge reaches x; its left edge is then <= x
    index = int(np.searchsorted(hull.right, x, side="left"))
    return Location(Position.INSIDE, index)


def evaluate_hulls(x: float, lower: LowerHull, upper: UpperHull) -> Tuple[float, float]:
    """Return ``(lower_value, upper_value)`` of both hulls at ``x``.

    The lower value is ``-inf`` outside the meshed region, where no squeezing
    bound exists.
    """
    loc = locate(lower, x)
    if loc.position is Position.INSIDE:
        lower_value = lower.value(loc.index, x)
    else:
        lower_value = -math.inf

    up_loc = locate(upper, x)
    if up_loc.position is not Position.INSIDE:
        raise ValueError(f"x={x!r} lies outside the envelope [{upper.left[0]!r}, {upper.right[-1]!r}]")
    upper_value = upper.value(up_loc.index, x)
    return lower_value, upper_value


__all__ = [
    "Domain",
    "HullSegment",
    "Hulls",
    "Location",
    "LowerHull",
    "Position",
    "UpperHull",
    "compute_hulls",
    "evaluate_hulls",
    "locate",
]
