"""
Clock source and wait strategies used for request pacing.
"""

import time
import logging

from configuration import HYBRID_SPIN_THRESHOLD_NS, NANOSECONDS_PER_SECOND

logger = logging.getLogger(__name__)


def now_ns() -> int:
    """Current wall-clock time in nanoseconds.

    The timestamp travels inside the request record and is subtracted on
    receipt, so it must come from the same clock on both sides of the wait.
    Wall-clock adjustments during a trial are not guarded against.
    """
    return time.time_ns()


class WaitStrategy:
    """Blocks the calling thread until a target timestamp is reached."""

    name = "base"

    def __init__(self, clock=now_ns):
        self.clock = clock

    def wait_until(self, target_ns: int) -> None:
        raise NotImplementedError


class BusyWait(WaitStrategy):
    """Spin on the clock until the target time. Never sleeps."""

    name = "busy"

    def wait_until(self, target_ns: int) -> None:
        clock = self.clock
        while clock() < target_ns:
            pass


class HybridWait(WaitStrategy):
    """Coarse sleep until close to the target, then spin for the remainder."""

    name = "hybrid"

    def __init__(self, clock=now_ns, spin_threshold_ns: int = None):
        super().__init__(clock)
        self.spin_threshold_ns = HYBRID_SPIN_THRESHOLD_NS if spin_threshold_ns is None else spin_threshold_ns

    def wait_until(self, target_ns: int) -> None:
        clock = self.clock
        remaining = target_ns - clock()
        if remaining > self.spin_threshold_ns:
            time.sleep((remaining - self.spin_threshold_ns) / NANOSECONDS_PER_SECOND)
        while clock() < target_ns:
            pass


WAIT_STRATEGIES = {
    BusyWait.name: BusyWait,
    HybridWait.name: HybridWait,
}


def create_wait_strategy(name: str, clock=now_ns) -> WaitStrategy:
    """Create a wait strategy by name ('busy' or 'hybrid').

    Raises:
        ValueError: If the name is not a known strategy
    """
    name = name.lower()
    if name not in WAIT_STRATEGIES:
        raise ValueError(f"Unsupported wait strategy: {name}. Must be one of {sorted(WAIT_STRATEGIES)}.")
    logger.debug(f"Using {name} wait strategy")
    return WAIT_STRATEGIES[name](clock=clock)
