from __future__ import annotations

import math
from typing import Iterable

import numpy as np
import pytest

from dfars.inference.envelope import sample_upper_hull
from dfars.inference.errors import EnvelopeSamplingError
from dfars.inference.hulls import UpperHull, compute_hulls


class _FixedUniform:
    """Uniform source replaying a fixed sequence of draws."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)


def _single_segment(slope: float, left: float, right: float, log_prob: float = 0.0) -> UpperHull:
    return UpperHull(
        slope=np.array([slope]),
        intercept=np.array([0.0]),
        left=np.array([left]),
        right=np.array([right]),
        log_prob=np.array([log_prob]),
    )


def test_inverse_cdf_within_segment():
    m = 1.7
    upper = _single_segment(m, 0.0, 1.0)
    x = sample_upper_hull(upper, _FixedUniform([0.3, 0.5]))
    expected = math.log(0.5 * (math.exp(m) - 1.0) + 1.0) / m
    assert x == pytest.approx(expected, rel=1e-12)


def test_inverse_cdf_on_unbounded_tails():
    left_tail = _single_segment(2.0, -math.inf, 0.0)
    x = sample_upper_hull(left_tail, _FixedUniform([0.1, 0.25]))
    assert x == pytest.approx(math.log(0.25) / 2.0, rel=1e-12)

    right_tail = _single_segment(-0.5, 1.0, math.inf)
    x = sample_upper_hull(right_tail, _FixedUniform([0.1, 0.25]))
    assert x == pytest.approx(1.0 + math.log(0.75) / -0.5, rel=1e-12)


def test_flat_segment_is_uniform():
    upper = _single_segment(0.0, 2.0, 4.0)
    assert sample_upper_hull(upper, _FixedUniform([0.9, 0.25])) == pytest.approx(2.5)


def test_zero_second_draw_is_redrawn():
    upper = _single_segment(-1.0, 0.0, math.inf)
    x = sample_upper_hull(upper, _FixedUniform([0.4, 0.0, 0.5]))
    assert x == pytest.approx(-math.log(0.5))


def test_segment_selection_follows_cumulative_probabilities():
    upper = UpperHull(
        slope=np.array([1.0, -1.0]),
        intercept=np.array([0.0, 0.0]),
        left=np.array([-math.inf, 0.0]),
        right=np.array([0.0, math.inf]),
        log_prob=np.log([0.5, 0.5]),
    )
    assert sample_upper_hull(upper, _FixedUniform([0.2, 0.5])) < 0.0
    assert sample_upper_hull(upper, _FixedUniform([0.7, 0.5])) > 0.0


def test_cumulative_shortfall_raises_with_state():
    upper = _single_segment(1.0, 0.0, 1.0, log_prob=math.log(0.5))
    with pytest.raises(EnvelopeSamplingError) as excinfo:
        sample_upper_hull(upper, _FixedUniform([0.9, 0.5]))
    err = excinfo.value
    assert err.u == pytest.approx(0.9)
    np.testing.assert_allclose(err.cdf, [0.5])


def test_samples_follow_the_envelope_distribution():
    # for -x on [0, inf) the envelope is exact, so draws are Exp(1)
    mesh = np.array([0.5, 1.0, 2.0])
    hulls = compute_hulls((0.0, math.inf), mesh, -mesh)
    rng = np.random.default_rng(7)
    draws = np.array([sample_upper_hull(hulls.upper, rng) for _ in range(4000)])
    assert np.all(draws >= 0.0)
    assert abs(draws.mean() - 1.0) < 0.08


def test_sampling_failure_is_logged(caplog):
    upper = _single_segment(1.0, 0.0, 1.0, log_prob=math.log(0.25))
    with caplog.at_level("ERROR", logger="dfars"):
        with pytest.raises(EnvelopeSamplingError):
            sample_upper_hull(upper, _FixedUniform([0.5, 0.5]))
    assert "sampling failed" in caplog.text
