"""Exceptions raised by the adaptive rejection sampler."""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


class InvalidArgumentError(ValueError):
    """A precondition on the sampler inputs does not hold."""

    def __init__(self, argument: str, message: str) -> None:
        super().__init__(f"{argument}: {message}")
        self.argument = argument


class ARSError(RuntimeError):
    """Base class for numerical failures during sampling."""


class DegenerateHullError(ARSError):
    """Hull geometry received coincident points or a zero signed sum."""


class EnvelopeSamplingError(ARSError):
    """Drawing from the piecewise-exponential envelope failed."""

    def __init__(
        self,
        message: str,
        *,
        cdf: Optional[Sequence[float]] = None,
        u: Optional[float] = None,
        value: Optional[float] = None,
    ) -> None:
        details = []
        if cdf is not None:
            details.append(f"cdf={np.array2string(np.asarray(cdf), precision=6)}")
        if u is not None:
            details.append(f"u={u!r}")
        if value is not None:
            details.append(f"value={value!r}")
        full = message if not details else f"{message} ({', '.join(details)})"
        super().__init__(full)
        self.cdf = None if cdf is None else np.asarray(cdf, dtype=float)
        self.u = u
        self.value = value


class NonConvergenceError(ARSError):
    """The accept/reject loop hit its iteration cap."""

    def __init__(self, iterations: int, accepted: int, requested: int) -> None:
        super().__init__(
            f"ARS did not produce {requested} samples within {iterations} iterations "
            f"({accepted} accepted); is the log-density really log-concave?"
        )
        self.iterations = iterations
        self.accepted = accepted
        self.requested = requested


__all__ = [
    "ARSError",
    "DegenerateHullError",
    "EnvelopeSamplingError",
    "InvalidArgumentError",
    "NonConvergenceError",
]
