"""Draw candidates from the piecewise-exponential envelope."""
from __future__ import annotations

import logging
import math

import numpy as np

from dfars.inference.errors import EnvelopeSamplingError
from dfars.inference.hulls import UpperHull
from dfars.inference.logspace import Sign, general_log_sum_exp
from dfars.utils.typing import UniformSource

logger = logging.getLogger(__name__)


def sample_upper_hull(upper: UpperHull, rng: UniformSource) -> float:
    """Sample one point from the density proportional to ``exp(upper hull)``.

    A segment is picked from the cumulative segment probabilities, then the
    exponential CDF on that segment is inverted in log space:
    ``x = log(u * (exp(m*right) - exp(m*left)) + exp(m*left)) / m``.
    """
    cdf = np.cumsum(np.exp(upper.log_prob))
    u = float(rng.random())
    index = int(np.searchsorted(cdf, u, side="right"))
    if index >= cdf.size:
        logger.error("ARS: sampling failed. cdf=%s u=%r", cdf, u)
        raise EnvelopeSamplingError("no envelope segment covers the uniform draw", cdf=cdf, u=u)

    m = float(upper.slope[index])
    left = float(upper.left[index])
    right = float(upper.right[index])

    u_prime = float(rng.random())
    while u_prime == 0.0:
        u_prime = float(rng.random())

    if m == 0.0:
        x = left + u_prime * (right - left)
    else:
        log_u = math.log(u_prime)
        numerator = general_log_sum_exp(
            [
                (log_u + m * right, Sign.PLUS),
                (log_u + m * left, Sign.MINUS),
                (m * left, Sign.PLUS),
            ]
        )
        x = numerator / m

    if not math.isfinite(x):
        logger.error("ARS: sampled x=%r from segment %d [%r, %r] with slope %r", x, index, left, right, m)
        raise EnvelopeSamplingError("sampled an infinite or NaN x", value=x)
    # round-off can push the inverse CDF a hair past the segment edges
    return min(max(x, left), right)


__all__ = ["sample_upper_hull"]
