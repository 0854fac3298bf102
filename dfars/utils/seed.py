# dfars/utils/seed.py
from __future__ import annotations

import os
import random as _random

import numpy as np
from numpy.random import Generator, default_rng

from dfars.utils.typing import SeedLike, UniformSource


def seed_everything(seed: int = 42) -> None:
    """Set numpy/python random seeds in a unified way."""
    os.environ["PYTHONHASHSEED"] = str(seed)
    _random.seed(seed)
    np.random.seed(seed)


def as_generator(seed: SeedLike = None) -> UniformSource:
    """Turn a seed, generator or uniform source into something with ``random()``.

    ``None`` and integer seeds go through :func:`numpy.random.default_rng`;
    existing generators and any other object exposing ``random()`` are
    returned unchanged so callers can inject their own uniform source.
    """
    if seed is None or isinstance(seed, (int, np.integer, np.random.SeedSequence)):
        return default_rng(seed)
    if isinstance(seed, Generator) or callable(getattr(seed, "random", None)):
        return seed
    raise TypeError(f"cannot build a uniform random source from {type(seed).__name__}")
