"""Unit tests for the bounded fluctuation helper."""

from __future__ import annotations

import random

import pytest

from services.fluctuation import (
    CO2_MAX_DELTA,
    CO2_UPPER_BOUND,
    PM25_MAX_DELTA,
    PM25_UPPER_BOUND,
    fluctuate,
)


class FixedDeltaRandom(random.Random):
    """Random source whose ``randint`` always yields the same delta."""

    def __init__(self, delta: int) -> None:
        super().__init__(0)
        self.delta = delta
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return self.delta


def test_delta_is_drawn_from_closed_symmetric_interval() -> None:
    rng = FixedDeltaRandom(3)

    assert fluctuate(100, 10, 2000, rng) == 103
    assert rng.calls == [(-10, 10)]


def test_result_is_clamped_to_upper_bound() -> None:
    assert fluctuate(1995, 10, 2000, FixedDeltaRandom(10)) == 2000


def test_result_is_clamped_to_zero() -> None:
    assert fluctuate(3, 5, 300, FixedDeltaRandom(-5)) == 0


def test_out_of_range_start_is_pulled_back_into_bounds() -> None:
    rng = random.Random(7)

    assert fluctuate(5000, CO2_MAX_DELTA, CO2_UPPER_BOUND, rng) == CO2_UPPER_BOUND
    assert fluctuate(-40, PM25_MAX_DELTA, PM25_UPPER_BOUND, rng) == 0


def test_zero_delta_keeps_value() -> None:
    assert fluctuate(42, 0, 300, random.Random(1)) == 42


def test_negative_delta_is_rejected() -> None:
    with pytest.raises(ValueError):
        fluctuate(42, -1, 300)


@pytest.mark.parametrize(
    ("max_delta", "upper_bound"),
    [(CO2_MAX_DELTA, CO2_UPPER_BOUND), (PM25_MAX_DELTA, PM25_UPPER_BOUND)],
)
def test_repeated_fluctuation_respects_bound_and_step(max_delta: int, upper_bound: int) -> None:
    rng = random.Random(2024)
    for start in (0, 1, max_delta, upper_bound // 2, upper_bound - 1, upper_bound):
        value = start
        for _ in range(500):
            result = fluctuate(value, max_delta, upper_bound, rng)
            assert 0 <= result <= upper_bound
            assert abs(result - value) <= max_delta or result in (0, upper_bound)
            value = result


def test_co2_scenario_stays_near_start() -> None:
    rng = random.Random(99)
    for _ in range(200):
        result = fluctuate(1000, CO2_MAX_DELTA, CO2_UPPER_BOUND, rng)
        assert 990 <= result <= 1010


def test_seeded_sources_are_deterministic() -> None:
    first = random.Random(11)
    second = random.Random(11)

    values_one = [fluctuate(150, 5, 300, first) for _ in range(20)]
    values_two = [fluctuate(150, 5, 300, second) for _ in range(20)]

    assert values_one == values_two
