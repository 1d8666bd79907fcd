"""
Shared utilities for benchmark metrics calculations: latency percentiles and request rates.
"""

import math
import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from configuration import NANOSECONDS_PER_MILLISECOND

logger = logging.getLogger(__name__)


def _sorted_samples(samples: Iterable[int]) -> List[int]:
    ordered = sorted(samples)
    if not ordered:
        raise ValueError("Cannot compute latency statistics over an empty sample set")
    return ordered


def median_of_sorted(ordered: Sequence[int]) -> int:
    """Median of an already sorted, non-empty sequence.

    For an even count the two central values are averaged with integer
    truncation, so the result is always a whole number of nanoseconds.
    """
    n = len(ordered)
    if n % 2 != 0:
        return ordered[n // 2]
    return (ordered[n // 2 - 1] + ordered[n // 2]) // 2


def p99_index(n: int) -> int:
    """0-based index of the 99th percentile in a sorted sequence of length ``n``.

    ``ceil(0.99 * n) - 1``; for small ``n`` this is the maximum.
    """
    if n < 1:
        raise ValueError("p99 index requires at least one sample")
    # 0.99 * 100 evaluates to 99.00000000000001, round() keeps ceil() at 99
    return max(0, math.ceil(round(0.99 * n, 9)) - 1)


def calculate_median(samples: Iterable[int]) -> int:
    """
    Calculate the median latency of a sample set.

    Args:
        samples: Latency samples in nanoseconds (any order)

    Returns:
        Median latency in nanoseconds

    Raises:
        ValueError: If the sample set is empty
    """
    return median_of_sorted(_sorted_samples(samples))


def calculate_p99(samples: Iterable[int]) -> int:
    """
    Calculate the 99th-percentile latency of a sample set.

    Args:
        samples: Latency samples in nanoseconds (any order)

    Returns:
        Sample at index ``ceil(0.99 n) - 1`` of the sorted set

    Raises:
        ValueError: If the sample set is empty
    """
    ordered = _sorted_samples(samples)
    return ordered[p99_index(len(ordered))]


def calculate_latency_stats(samples: Iterable[int]) -> Tuple[int, int]:
    """
    Calculate (median, p99) with a single sort.

    This is the reduction applied to every completed trial.

    Args:
        samples: Latency samples in nanoseconds (any order)

    Returns:
        Tuple of (median_ns, p99_ns)
    """
    ordered = _sorted_samples(samples)
    return median_of_sorted(ordered), ordered[p99_index(len(ordered))]


def summarize_latencies(samples: Iterable[int]) -> Dict[str, float]:
    """
    Descriptive statistics for logging and persistence.

    Returns:
        Dictionary with count, min, max, mean, p50 and p99 (nanoseconds)
    """
    ordered = sorted(samples)
    if not ordered:
        return {'count': 0, 'min': 0, 'max': 0, 'mean': 0.0, 'p50': 0, 'p99': 0}

    return {
        'count': len(ordered),
        'min': ordered[0],
        'max': ordered[-1],
        'mean': sum(ordered) / len(ordered),
        'p50': median_of_sorted(ordered),
        'p99': ordered[p99_index(len(ordered))],
    }


def calculate_requests_per_second(request_count: int, duration_seconds: float) -> float:
    """
    Calculate requests per second (RPS) from request count and duration.

    Args:
        request_count: Number of requests
        duration_seconds: Duration in seconds

    Returns:
        Requests per second (RPS)
    """
    if duration_seconds <= 0:
        return 0.0
    return request_count / duration_seconds


def ns_to_ms(value_ns: float) -> float:
    """Convert nanoseconds to milliseconds."""
    return value_ns / NANOSECONDS_PER_MILLISECOND
