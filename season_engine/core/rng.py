"""Random number and id helpers shared by the turn pipelines.

Every stochastic step takes an optional ``numpy.random.Generator``.  When
none is supplied the process-wide generator below is used, so production
callers need not thread one through while tests can pin a seed.
"""

from __future__ import annotations

import uuid

import numpy as np
from numpy.random import Generator

_PROCESS_RNG: Generator = np.random.default_rng()


def resolve_rng(rng: Generator | None) -> Generator:
    """Return *rng*, or the process-wide generator when it is ``None``."""
    return rng if rng is not None else _PROCESS_RNG


def new_id() -> str:
    """Return a fresh unique identifier for events and log entries."""
    return str(uuid.uuid4())
