"""
Basic data structures for the latency benchmark.
"""

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class TrialResult:
    """Summary of one completed trial, handed once to every result sink."""

    target_rate: int
    median_latency_ns: int
    p99_latency_ns: int
    received_count: int
    total_requests: int = 0
    duration_seconds: float = 0.0
    ts: float = field(default_factory=time.time)

    def as_row(self) -> tuple:
        """The ``(rate, median, p99)`` triple written to the latency file."""
        return (self.target_rate, self.median_latency_ns, self.p99_latency_ns)
