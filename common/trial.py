"""
Per-trial configuration and raw outcome.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from configuration import (
    DEFAULT_VALUE,
    KEYSPACE_SIZE,
    QUIESCENCE_TIMEOUT_SECONDS,
)
from common.wire import UINT32_MAX, UINT64_MAX


@dataclass(frozen=True)
class TrialConfig:
    """Immutable parameters of one trial.

    Built by the sweep controller before any thread of the trial starts and
    handed by reference to every generator and the collector.
    """

    target_rate: int
    duration_seconds: int
    write_ratio: int
    keyspace_size: int = KEYSPACE_SIZE
    num_generators: int = 1
    seed: Optional[int] = None
    quiescence_timeout_seconds: float = QUIESCENCE_TIMEOUT_SECONDS
    value: int = DEFAULT_VALUE

    def __post_init__(self):
        if self.target_rate < 0:
            raise ValueError(f"target_rate must be non-negative, got {self.target_rate}")
        if self.duration_seconds < 0:
            raise ValueError(f"duration_seconds must be non-negative, got {self.duration_seconds}")
        if not 0 <= self.write_ratio <= 100:
            raise ValueError(f"write_ratio must be within [0, 100], got {self.write_ratio}")
        if not 1 <= self.keyspace_size <= UINT32_MAX + 1:
            raise ValueError(f"keyspace_size must be within [1, 2**32], got {self.keyspace_size}")
        if self.num_generators < 1:
            raise ValueError(f"num_generators must be at least 1, got {self.num_generators}")
        if not 0 <= self.value <= UINT64_MAX:
            raise ValueError(f"value must fit in an unsigned 64-bit integer, got {self.value}")

    @property
    def total_requests(self) -> int:
        return self.target_rate * self.duration_seconds


@dataclass
class TrialOutcome:
    """What one trial's thread group produced, read by the controller after join."""

    config: TrialConfig
    latencies: List[int] = field(default_factory=list)
    received_count: int = 0
    sent_count: int = 0
    send_failures: int = 0
    timed_out: bool = False
    elapsed_seconds: float = 0.0

    @property
    def complete(self) -> bool:
        return self.received_count >= self.config.total_requests

    @property
    def missing_count(self) -> int:
        return max(0, self.config.total_requests - self.received_count)
