"""Numerically stable log-space summation."""
from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Sequence, Tuple

import numpy as np
from scipy.special import logsumexp

from dfars.inference.errors import DegenerateHullError


class Sign(IntEnum):
    """Sign attached to a term of a signed log-space sum."""

    PLUS = 1
    MINUS = -1


def log_sum_exp(values: Iterable[float]) -> float:
    """Return ``log(sum(exp(values)))`` shifted by the maximum to avoid overflow."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        raise ValueError("log_sum_exp requires at least one value")
    return float(logsumexp(arr))


def general_log_sum_exp(values: Sequence[Tuple[float, Sign]]) -> float:
    """Signed log-sum-exp of ``sum(sign_i * exp(value_i))``.

    Terms are shifted by the largest value before exponentiation. A positive
    net sum returns ``log(sum)``; a negative one returns ``-log(-sum)``, so
    callers can subtract exponentials and still recover the magnitude in log
    space. A net sum of exactly zero has no logarithm and raises
    :class:`DegenerateHullError`.
    """
    if len(values) == 0:
        raise ValueError("general_log_sum_exp requires at least one term")
    arr = np.array([float(v) for v, _ in values], dtype=float)
    signs = np.array([int(s) for _, s in values], dtype=float)

    with np.errstate(divide="ignore", invalid="ignore"):
        magnitude, sign = logsumexp(arr, b=signs, return_sign=True)

    if sign > 0:
        return float(magnitude)
    if sign < 0:
        return -float(magnitude)
    raise DegenerateHullError(
        f"signed log-sum-exp of {list(zip(arr.tolist(), signs.tolist()))} is zero or undefined"
    )


__all__ = ["Sign", "log_sum_exp", "general_log_sum_exp"]
