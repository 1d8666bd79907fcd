"""
Response collector: non-blocking receive loop that samples round-trip latency.
"""

import time
import threading
import logging
from typing import List, Optional

from common.clock import now_ns
from common.wire import RECORD_SIZE, read_send_timestamp
from configuration import (
    COLLECTOR_IDLE_SLEEP_SECONDS,
    NANOSECONDS_PER_SECOND,
    QUIESCENCE_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class Collector:
    """Receives responses for one trial and accumulates latency samples.

    The loop ends when ``expected`` responses were received, when nothing
    arrived for ``quiescence_timeout`` seconds, or when ``stop_event`` is set.
    Responses are counted, not matched to requests by sequence number.
    """

    def __init__(
        self,
        channel,
        expected: int,
        quiescence_timeout: float = None,
        clock=now_ns,
        stop_event: Optional[threading.Event] = None,
        idle_sleep: float = None,
    ):
        """Initialize the collector.

        Args:
            channel: Open DatagramChannel shared with the generators
            expected: Number of responses that completes the trial
            quiescence_timeout: Seconds of silence that end the trial early
            clock: Nanosecond clock, must match the one stamping requests
            stop_event: Optional external cancellation
            idle_sleep: Seconds to yield when no datagram is queued (0 = spin)
        """
        self.channel = channel
        self.expected = expected
        timeout = QUIESCENCE_TIMEOUT_SECONDS if quiescence_timeout is None else quiescence_timeout
        self.quiescence_timeout_ns = int(timeout * NANOSECONDS_PER_SECOND)
        self.clock = clock
        self.stop_event = stop_event
        self.idle_sleep = COLLECTOR_IDLE_SLEEP_SECONDS if idle_sleep is None else idle_sleep

        self.latencies: List[int] = []
        self.received = 0
        self.ignored = 0
        self.timed_out = False
        self.cancelled = False

    def _record(self, data: bytes, received_at: int) -> None:
        if len(data) != RECORD_SIZE:
            self.ignored += 1
            return
        self.latencies.append(received_at - read_send_timestamp(data))
        self.received += 1

    def run(self) -> List[int]:
        """Run the receive loop to completion and return the samples."""
        clock = self.clock
        channel = self.channel
        last_activity = clock()

        while self.received < self.expected:
            data = channel.try_recv()
            if data is not None:
                now = clock()
                last_activity = now
                self._record(data, now)
                continue

            if self.stop_event is not None and self.stop_event.is_set():
                self.cancelled = True
                logger.info("Collector cancelled by stop event")
                break

            if clock() - last_activity >= self.quiescence_timeout_ns:
                self.timed_out = True
                logger.warning(
                    f"No response for {self.quiescence_timeout_ns / NANOSECONDS_PER_SECOND:.1f}s, "
                    f"stopping collection at {self.received}/{self.expected}"
                )
                break

            if self.idle_sleep:
                time.sleep(self.idle_sleep)

        if self.received >= self.expected:
            logger.debug(f"All {self.expected} responses received")
        if self.ignored:
            logger.warning(f"Ignored {self.ignored} datagrams of unexpected size")

        return self.latencies

    @property
    def complete(self) -> bool:
        return self.received >= self.expected
