"""Bounded random drift for the integer metrics."""

from __future__ import annotations

import random
from typing import Optional

CO2_MAX_DELTA = 10
CO2_UPPER_BOUND = 2000
PM25_MAX_DELTA = 5
PM25_UPPER_BOUND = 300

_shared_rng = random.Random()


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def fluctuate(
    value: int,
    max_delta: int,
    upper_bound: int,
    rng: Optional[random.Random] = None,
) -> int:
    """Shift ``value`` by a delta drawn from ``[-max_delta, max_delta]`` and clamp to ``[0, upper_bound]``."""
    if max_delta < 0:
        raise ValueError("max_delta must be non-negative.")
    generator = rng or _shared_rng
    delta = generator.randint(-max_delta, max_delta)
    return clamp(value + delta, 0, upper_bound)
