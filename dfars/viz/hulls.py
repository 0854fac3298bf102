"""Plot ARS hulls against the target log-density."""
from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt

from dfars.inference.hulls import Domain, Hulls
from dfars.utils.typing import LogDensity

_TAIL_FRACTION = 0.15


def _get_fig_ax(ax: Optional[plt.Axes]) -> Tuple[plt.Figure, plt.Axes]:
    """Return a figure/axes pair, creating one if needed."""
    if ax is None:
        fig, new_ax = plt.subplots()
        return fig, new_ax
    return ax.figure, ax


def _line(ax: plt.Axes, slope: float, intercept: float, lo: float, hi: float, n: int, **kwargs) -> None:
    xs = np.linspace(lo, hi, max(n, 2))
    ax.plot(xs, slope * xs + intercept, **kwargs)


def plot_hulls(
    hulls: Hulls,
    domain,
    mesh: Sequence[float],
    mesh_values: Sequence[float],
    func: LogDensity,
    *,
    ax: Optional[plt.Axes] = None,
    n_points: int = 1000,
    title: Optional[str] = None,
) -> plt.Axes:
    """Draw the target log-density, the mesh, the squeezing (blue) and envelope (red) hulls.

    Infinite tails are drawn for 15% of the mesh width past the outermost
    mesh points.
    """
    fig, ax = _get_fig_ax(ax)
    domain = Domain.coerce(domain)
    S = np.asarray(mesh, dtype=float)
    width = S[-1] - S[0]
    ext = _TAIL_FRACTION * width
    left = S[0] - ext if domain.left_unbounded else domain.left
    right = S[-1] + ext if domain.right_unbounded else domain.right
    per_unit = n_points / max(right - left, np.finfo(float).eps)

    xs = np.linspace(left, right, n_points)
    ax.plot(xs, [func(float(x)) for x in xs], color="black", label="log-density")
    ax.scatter(S, np.asarray(mesh_values, dtype=float), color="black", zorder=3, label="mesh")

    for i, seg in enumerate(hulls.lower.segments()):
        n = int(per_unit * (seg.right - seg.left))
        _line(ax, seg.slope, seg.intercept, seg.left, seg.right, n,
              color="tab:blue", label="lower hull" if i == 0 else None)

    for i, seg in enumerate(hulls.upper.segments()):
        lo = left if np.isinf(seg.left) else seg.left
        hi = right if np.isinf(seg.right) else seg.right
        n = int(per_unit * (hi - lo))
        _line(ax, seg.slope, seg.intercept, lo, hi, n,
              color="tab:red", label="upper hull" if i == 0 else None)

    ax.set_xlabel("x")
    ax.set_ylabel("log density")
    ax.set_title(title or f"ARS hulls ({S.size} mesh points)")
    ax.legend()
    fig.tight_layout()
    return ax
