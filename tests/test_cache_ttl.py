"""Tests for TTL jitter."""

import random

import pytest

from app.cache.ttl import MIN_TTL_SECONDS, jittered


class FixedRandom:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class TestJittered:
    def test_stays_within_ratio_band(self) -> None:
        rng = random.Random(1)
        base = 60.0
        for _ in range(1000):
            ttl = jittered(base, 0.1, 1.0, rng=rng)
            assert 54.0 - 1e-9 <= ttl <= 66.0 + 1e-9

    def test_default_generator_stays_within_band(self) -> None:
        for _ in range(200):
            ttl = jittered(100.0, 0.25)
            assert 75.0 - 1e-9 <= ttl <= 125.0 + 1e-9

    def test_values_actually_vary(self) -> None:
        rng = random.Random(42)
        assert len({jittered(60.0, 0.1, rng=rng) for _ in range(50)}) > 1

    @pytest.mark.parametrize(("base", "ratio"), [(0, 0.1), (-5, 0.1), (60, 0), (60, -0.5)])
    def test_degenerate_inputs_returned_unchanged(self, base, ratio) -> None:
        assert jittered(base, ratio, rng=FixedRandom(0.0)) == base

    def test_extremes_of_random_source(self) -> None:
        assert jittered(60.0, 0.1, rng=FixedRandom(0.0)) == pytest.approx(54.0)
        assert jittered(60.0, 0.1, rng=FixedRandom(0.5)) == pytest.approx(60.0)
        assert jittered(60.0, 0.1, rng=FixedRandom(1.0)) == pytest.approx(66.0)

    def test_minimum_raises_result(self) -> None:
        assert jittered(60.0, 0.1, 58.0, rng=FixedRandom(0.0)) == 58.0

    def test_ratio_clamped_to_one(self) -> None:
        # ratio 5 behaves like ratio 1: upper bound is 2 * base
        assert jittered(10.0, 5.0, rng=FixedRandom(1.0)) == pytest.approx(20.0)

    def test_never_non_positive(self) -> None:
        assert jittered(10.0, 1.0, rng=FixedRandom(0.0)) == MIN_TTL_SECONDS
        assert jittered(10.0, 3.0, rng=FixedRandom(0.0)) == MIN_TTL_SECONDS
