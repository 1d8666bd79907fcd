"""Test suite for the Poisson arrival process."""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest

from algorithms.arrival import PoissonArrivals, split_requests, spawn_generators


class TestPoissonArrivals:
    """Test cases for intended send times."""

    def test_emits_exact_count(self):
        arrivals = PoissonArrivals(1000, 1000, np.random.default_rng(1))
        assert len(list(arrivals.schedule(0))) == 1000

    def test_strictly_increasing(self):
        times = list(PoissonArrivals(1_000_000, 5000, np.random.default_rng(2)).schedule(10))
        assert all(b > a for a, b in zip(times, times[1:]))
        assert times[0] > 10

    def test_mean_gap_matches_rate(self):
        gaps = list(PoissonArrivals(1000, 1000, np.random.default_rng(3)).gaps())
        mean_gap = sum(gaps) / len(gaps)
        assert 850_000 <= mean_gap <= 1_150_000

    def test_zero_rate_emits_nothing(self):
        arrivals = PoissonArrivals(0, 1000)
        assert len(arrivals) == 0
        assert list(arrivals.schedule(0)) == []

    def test_seeded_is_deterministic(self):
        a = list(PoissonArrivals(500, 100, np.random.default_rng(9)).gaps())
        b = list(PoissonArrivals(500, 100, np.random.default_rng(9)).gaps())
        assert a == b

    def test_lazy(self):
        schedule = PoissonArrivals(1000, 10 ** 9, np.random.default_rng(4)).schedule(0)
        assert next(schedule) > 0

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            PoissonArrivals(-1, 10)


class TestSplitRequests:
    """Test cases for fan-out across generator workers."""

    def test_even_split(self):
        assert split_requests(1000, 4) == [250, 250, 250, 250]

    def test_uneven_split(self):
        counts = split_requests(1001, 4)
        assert sum(counts) == 1001
        assert max(counts) - min(counts) <= 1

    def test_more_workers_than_requests(self):
        assert split_requests(2, 4) == [1, 1, 0, 0]

    def test_zero_workers_rejected(self):
        with pytest.raises(ValueError):
            split_requests(10, 0)


def test_spawned_generators_are_independent():
    first, second = spawn_generators(5, 2)
    assert list(first.integers(0, 1_000_000, 5)) != list(second.integers(0, 1_000_000, 5))


def test_spawned_generators_are_reproducible():
    a = [g.integers(0, 1_000_000) for g in spawn_generators(5, 3)]
    b = [g.integers(0, 1_000_000) for g in spawn_generators(5, 3)]
    assert a == b
