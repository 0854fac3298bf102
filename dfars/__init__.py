"""Derivative-free adaptive rejection sampling for log-concave densities."""
from __future__ import annotations

from dfars.inference.errors import (
    ARSError,
    DegenerateHullError,
    EnvelopeSamplingError,
    InvalidArgumentError,
    NonConvergenceError,
)
from dfars.inference.hulls import Domain, Hulls, compute_hulls, evaluate_hulls
from dfars.inference.samplers import (
    ARSConfig,
    ARSStats,
    AdaptiveRejectionSampler,
    adaptive_rejection_sampling,
    run_ars,
)

__version__ = "0.1.0"

__all__ = [
    "ARSConfig",
    "ARSError",
    "ARSStats",
    "AdaptiveRejectionSampler",
    "DegenerateHullError",
    "Domain",
    "EnvelopeSamplingError",
    "Hulls",
    "InvalidArgumentError",
    "NonConvergenceError",
    "adaptive_rejection_sampling",
    "compute_hulls",
    "evaluate_hulls",
    "run_ars",
]
