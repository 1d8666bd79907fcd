"""
Poisson arrival process for open-loop request pacing.
"""

import logging
from typing import Iterator, List, Optional

import numpy as np

from configuration import NANOSECONDS_PER_SECOND

logger = logging.getLogger(__name__)


class PoissonArrivals:
    """Strictly increasing intended send times drawn from a Poisson process.

    Inter-arrival gaps are independent exponential draws with mean
    ``1 / rate`` seconds, converted to whole nanoseconds (at least 1 ns so
    the sequence never repeats a timestamp).
    """

    def __init__(self, rate: float, count: int, rng: Optional[np.random.Generator] = None):
        if rate < 0:
            raise ValueError(f"rate must be non-negative, got {rate}")
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.rate = rate
        self.count = count if rate > 0 else 0
        self.rng = rng if rng is not None else np.random.default_rng()
        self.mean_gap_ns = NANOSECONDS_PER_SECOND / rate if rate > 0 else 0.0

    def gaps(self) -> Iterator[int]:
        """Lazily yield ``count`` inter-arrival gaps in nanoseconds."""
        for _ in range(self.count):
            yield max(1, int(self.rng.exponential(self.mean_gap_ns)))

    def schedule(self, start_ns: int) -> Iterator[int]:
        """Lazily yield intended send times, starting one gap after ``start_ns``."""
        t = start_ns
        for gap in self.gaps():
            t += gap
            yield t

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"PoissonArrivals(rate={self.rate}, count={self.count})"


def split_requests(total: int, workers: int) -> List[int]:
    """Split ``total`` requests across ``workers`` as evenly as possible.

    Counts differ by at most one and always sum to ``total``.
    """
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")
    base, remainder = divmod(total, workers)
    return [base + (1 if i < remainder else 0) for i in range(workers)]


def spawn_generators(seed: Optional[int], workers: int) -> List[np.random.Generator]:
    """Independent random streams, one per generator worker."""
    children = np.random.SeedSequence(seed).spawn(workers)
    return [np.random.default_rng(child) for child in children]
