"""Derivative-free adaptive rejection sampling for log-concave 1-D targets."""
from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple

import numpy as np
from numpy.random import Generator, default_rng

from dfars.inference.envelope import sample_upper_hull
from dfars.inference.errors import InvalidArgumentError, NonConvergenceError
from dfars.inference.hulls import Domain, Hulls, compute_hulls, evaluate_hulls
from dfars.utils.logging_utils import Timer, progress_bar
from dfars.utils.seed import as_generator
from dfars.utils.typing import DomainLike, LogDensity, SeedLike, UniformSource

logger = logging.getLogger(__name__)


class Sampler(Protocol):
    """Protocol for samplers that advance a state."""

    def step(self, state, rng: Generator | None = None):  # pragma: no cover - protocol
        ...


@dataclass
class ARSConfig:
    """Tuning knobs for the adaptive rejection sampler."""

    n_initial_mesh_points: int = 3      # interior points between a and b
    derivative_step: float = 1e-3       # finite-difference step, also the mesh inset
    max_iterations: Optional[int] = None  # None -> max(10_000, 100 * n_samples)
    max_mesh_size: Optional[int] = None   # None -> unbounded
    show_progress: bool = False

    def __post_init__(self) -> None:
        if int(self.n_initial_mesh_points) < 1:
            raise ValueError("n_initial_mesh_points must be >= 1")
        if not self.derivative_step > 0:
            raise ValueError("derivative_step must be > 0")
        if self.max_iterations is not None and int(self.max_iterations) < 1:
            raise ValueError("max_iterations must be >= 1 when given")
        if self.max_mesh_size is not None and int(self.max_mesh_size) < self.n_initial_mesh_points + 2:
            raise ValueError("max_mesh_size cannot be smaller than the initial mesh")

    def iteration_cap(self, n_samples: int) -> int:
        if self.max_iterations is not None:
            return int(self.max_iterations)
        return max(10_000, 100 * int(n_samples))


@dataclass
class ARSStats:
    """Counters collected over one sampling run."""

    iterations: int = 0
    squeeze_accepts: int = 0
    function_accepts: int = 0
    rejections: int = 0
    function_evaluations: int = 0
    mesh_size: int = 0

    @property
    def accepted(self) -> int:
        return self.squeeze_accepts + self.function_accepts

    @property
    def acceptance_rate(self) -> float:
        return self.accepted / self.iterations if self.iterations else float("nan")

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["accepted"] = self.accepted
        out["acceptance_rate"] = self.acceptance_rate
        return out


@dataclass
class ARSResult:
    samples: np.ndarray
    stats: ARSStats
    mesh: np.ndarray
    mesh_values: np.ndarray
    hulls: Hulls


def _coerce_domain(domain) -> Domain:
    try:
        return Domain.coerce(domain)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError("domain", str(exc)) from exc


def _coerce_sample_count(n_samples) -> int:
    message = f"must be a positive integer, got {n_samples!r}."
    if isinstance(n_samples, bool):
        raise InvalidArgumentError("n_samples", message)
    try:
        count = int(n_samples)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidArgumentError("n_samples", message) from exc
    if count != n_samples or count < 1:
        raise InvalidArgumentError("n_samples", message)
    return count


def initial_mesh(
    func: LogDensity,
    a: float,
    b: float,
    domain,
    config: Optional[ARSConfig] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Validate the starting points and build the initial mesh with its log-density values.

    The mesh is ``a``, ``config.n_initial_mesh_points`` points evenly spaced on
    ``[a + step, b - step]``, and ``b``. When a domain bound is infinite the
    finite-difference slope at the matching starting point must point towards
    the interior, otherwise the unbounded envelope tail has infinite mass.
    """
    config = config or ARSConfig()
    domain = _coerce_domain(domain)
    step = float(config.derivative_step)
    a = float(a)
    b = float(b)

    if not a > domain.left:
        raise InvalidArgumentError("a", f"first initial point {a!r} is outside of the domain {tuple(domain)!r}.")
    if not b < domain.right:
        raise InvalidArgumentError("b", f"second initial point {b!r} is outside of the domain {tuple(domain)!r}.")
    if not a < b:
        raise InvalidArgumentError("a, b", "a >= b. First initial point must be smaller than second initial point.")

    a_inner, b_inner = a + step, b - step
    if not a_inner < b_inner:
        raise InvalidArgumentError(
            "a, b", f"initial points are closer than 2 * derivative_step ({2 * step!r}) apart."
        )

    interior = np.linspace(a_inner, b_inner, int(config.n_initial_mesh_points))
    mesh = np.concatenate([[a], interior, [b]])
    values = np.array([float(func(x)) for x in mesh], dtype=float)
    if not np.all(np.isfinite(values)):
        bad = mesh[~np.isfinite(values)]
        raise InvalidArgumentError("func", f"log-density is not finite on the initial mesh at {bad.tolist()}.")

    # linspace starts at a + step, and ends at b - step once it has two points
    fa_inner = values[1]
    fb_inner = values[-2] if interior.size > 1 else float(func(b_inner))

    if domain.left_unbounded and not (fa_inner - values[0]) / step > 0.0:
        raise InvalidArgumentError("a", "gradient is not positive at a (first initial point) on a left-unbounded domain.")
    if domain.right_unbounded and not (values[-1] - fb_inner) / step < 0.0:
        raise InvalidArgumentError("b", "gradient is not negative at b (second initial point) on a right-unbounded domain.")
    return mesh, values


def _insert_point(mesh: np.ndarray, values: np.ndarray, x: float, fx: float) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    pos = int(np.searchsorted(mesh, x))
    if pos < mesh.size and mesh[pos] == x:
        return None
    return np.insert(mesh, pos, x), np.insert(values, pos, fx)


def _log_uniform(u: float) -> float:
    return math.log(u) if u > 0.0 else -math.inf


def run_ars(
    func: LogDensity,
    a: float,
    b: float,
    domain: DomainLike,
    n_samples: int,
    *,
    rng: SeedLike = None,
    config: Optional[ARSConfig] = None,
) -> ARSResult:
    """Run the adaptive accept/reject loop and return samples with run diagnostics.

    Every iteration draws a candidate from the envelope and tries the squeeze
    test first; only when it fails is ``func`` evaluated. Each evaluated point,
    accepted or rejected, joins the mesh and both hulls are rebuilt from
    scratch. Samples are returned in the order they were accepted.
    """
    config = config or ARSConfig()
    domain = _coerce_domain(domain)
    n_samples = _coerce_sample_count(n_samples)

    mesh, values = initial_mesh(func, a, b, domain, config)
    source = as_generator(rng)
    hulls = compute_hulls(domain, mesh, values)
    logger.debug("ARS initialized on domain %s with mesh %s", tuple(domain), mesh)

    stats = ARSStats(function_evaluations=mesh.size, mesh_size=mesh.size)
    samples = np.empty(n_samples, dtype=float)
    accepted = 0
    cap = config.iteration_cap(n_samples)
    bar = progress_bar(n_samples, desc="ARS sampling", enabled=config.show_progress)

    try:
        with Timer("ARS sampling", logger=logger, level=logging.DEBUG):
            while accepted < n_samples:
                if stats.iterations >= cap:
                    logger.error("ARS: iteration cap %d reached with %d/%d samples", cap, accepted, n_samples)
                    raise NonConvergenceError(stats.iterations, accepted, n_samples)
                stats.iterations += 1

                x = sample_upper_hull(hulls.upper, source)
                lower_value, upper_value = evaluate_hulls(x, hulls.lower, hulls.upper)
                log_u = _log_uniform(float(source.random()))

                # squeeze test: accept without touching func
                if log_u <= lower_value - upper_value:
                    stats.squeeze_accepts += 1
                    samples[accepted] = x
                    accepted += 1
                    if bar is not None:
                        bar.update(1)
                    continue

                fx = float(func(x))
                stats.function_evaluations += 1
                if math.isnan(fx) or fx == math.inf:
                    raise InvalidArgumentError("func", f"log-density returned {fx!r} at x={x!r}.")

                if log_u <= fx - upper_value:
                    stats.function_accepts += 1
                    samples[accepted] = x
                    accepted += 1
                    if bar is not None:
                        bar.update(1)
                else:
                    stats.rejections += 1

                if not math.isfinite(fx):
                    continue
                if config.max_mesh_size is not None and mesh.size >= config.max_mesh_size:
                    continue
                inserted = _insert_point(mesh, values, x, fx)
                if inserted is None:
                    continue
                mesh, values = inserted
                hulls = compute_hulls(domain, mesh, values)
                stats.mesh_size = mesh.size
                logger.debug("ARS mesh grew to %d points after evaluating x=%.6g", mesh.size, x)
    finally:
        if bar is not None:
            bar.close()

    logger.debug("ARS finished: %s", stats.as_dict())
    return ARSResult(samples=samples, stats=stats, mesh=mesh, mesh_values=values, hulls=hulls)


def adaptive_rejection_sampling(
    func: LogDensity,
    a: float,
    b: float,
    domain: DomainLike,
    n_samples: int,
    *,
    rng: SeedLike = None,
    config: Optional[ARSConfig] = None,
) -> np.ndarray:
    """Draw ``n_samples`` independent samples from ``exp(func)`` restricted to ``domain``.

    Parameters
    ----------
    func : callable
        Unnormalized log-density; must be concave on ``domain``.
    a, b : float
        Starting points with ``domain[0] < a < b < domain[1]``. If the left
        bound is ``-inf`` the log-density must increase at ``a``; if the right
        bound is ``+inf`` it must decrease at ``b``.
    domain : (float, float) or Domain
        Support of the density; bounds may be infinite.
    n_samples : int
        Exact number of samples to return.
    rng : numpy.random.Generator, int, or object with ``random()``, optional
        Uniform random source.
    config : ARSConfig, optional
        Mesh, step size and safety caps.

    Returns
    -------
    np.ndarray
        Samples in acceptance order.
    """
    return run_ars(func, a, b, domain, n_samples, rng=rng, config=config).samples


@dataclass
class AdaptiveRejectionSampler:
    """Reusable ARS front-end that keeps the diagnostics of its last run."""

    log_density: LogDensity
    a: float
    b: float
    domain: DomainLike = (-math.inf, math.inf)
    config: ARSConfig = field(default_factory=ARSConfig)
    rng: UniformSource = field(default_factory=default_rng)

    # Runtime state (accessible after draw)
    stats_: Optional[ARSStats] = field(default=None, init=False)
    mesh_: Optional[np.ndarray] = field(default=None, init=False)
    mesh_values_: Optional[np.ndarray] = field(default=None, init=False)
    hulls_: Optional[Hulls] = field(default=None, init=False)

    def draw(self, n_samples: int, rng: SeedLike = None) -> np.ndarray:
        result = run_ars(
            self.log_density,
            self.a,
            self.b,
            self.domain,
            n_samples,
            rng=rng if rng is not None else self.rng,
            config=self.config,
        )
        self.stats_ = result.stats
        self.mesh_ = result.mesh
        self.mesh_values_ = result.mesh_values
        self.hulls_ = result.hulls
        return result.samples

    def step(self, state=None, rng: Generator | None = None) -> float:
        # ARS draws are independent; the current state is ignored
        return float(self.draw(1, rng=rng)[0])


__all__ = [
    "ARSConfig",
    "ARSResult",
    "ARSStats",
    "AdaptiveRejectionSampler",
    "Sampler",
    "adaptive_rejection_sampling",
    "initial_mesh",
    "run_ars",
]
