from __future__ import annotations

import math

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from dfars.inference.samplers import run_ars
from dfars.viz.hulls import plot_hulls


def _normal_logpdf(x: float) -> float:
    return -0.5 * x * x


def test_plot_hulls_draws_every_segment():
    result = run_ars(_normal_logpdf, -1.0, 1.0, (-math.inf, math.inf), 20, rng=np.random.default_rng(0))
    ax = plot_hulls(result.hulls, (-math.inf, math.inf), result.mesh, result.mesh_values, _normal_logpdf)
    try:
        # target curve + one line per lower and upper segment
        expected = 1 + len(result.hulls.lower) + len(result.hulls.upper)
        assert len(ax.lines) == expected
        labels = {line.get_label() for line in ax.lines}
        assert {"log-density", "lower hull", "upper hull"}.issubset(labels)
        lo, hi = ax.get_xlim()
        assert lo < result.mesh[0] and hi > result.mesh[-1]
    finally:
        plt.close(ax.figure)


def test_plot_hulls_on_existing_axes_with_finite_domain():
    fig, ax = plt.subplots()
    result = run_ars(lambda x: -x, 1.0, 2.0, (0.0, 4.0), 10, rng=3)
    out = plot_hulls(result.hulls, (0.0, 4.0), result.mesh, result.mesh_values, lambda x: -x, ax=ax, title="exp")
    try:
        assert out is ax
        assert ax.get_title() == "exp"
    finally:
        plt.close(fig)
