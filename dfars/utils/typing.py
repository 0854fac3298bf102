# dfars/utils/typing.py
from __future__ import annotations

from typing import Callable, Protocol, Tuple, Union

import numpy as np

LogDensity = Callable[[float], float]
DomainLike = Tuple[float, float]


class UniformSource(Protocol):
    """Anything with ``random()`` returning a float in ``[0, 1)``.

    ``numpy.random.Generator`` and ``random.Random`` both qualify.
    """

    def random(self) -> float:
        ...


SeedLike = Union[None, int, np.random.SeedSequence, np.random.Generator, UniformSource]
