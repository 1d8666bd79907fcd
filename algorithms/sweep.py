"""
Rate sweep: repeat the open-loop trial at increasing target rates.
"""

import threading
import logging
from typing import Any, Dict, Iterator, List, Optional

from common.metrics_utils import calculate_latency_stats, ns_to_ms, summarize_latencies
from common.trial import TrialConfig, TrialOutcome
from persistence.base import ResultSink
from persistence.record import TrialResult
from configuration import (
    DEFAULT_RATE_STEP,
    MAX_TARGET_RATE,
    MAX_CONSECUTIVE_INCOMPLETE,
    PROGRESS_INTERVAL,
    QUIESCENCE_TIMEOUT_SECONDS,
    KEYSPACE_SIZE,
    DEFAULT_VALUE,
)

logger = logging.getLogger(__name__)


def build_result(outcome: TrialOutcome) -> Optional[TrialResult]:
    """Reduce a trial outcome to its result.

    Returns None for trials that did not receive every response, and for
    trials that had nothing to send.
    """
    config = outcome.config
    if not outcome.complete:
        return None
    if not outcome.latencies:
        return None

    median, p99 = calculate_latency_stats(outcome.latencies)
    return TrialResult(
        target_rate=config.target_rate,
        median_latency_ns=median,
        p99_latency_ns=p99,
        received_count=outcome.received_count,
        total_requests=config.total_requests,
        duration_seconds=config.duration_seconds,
    )


class RateSweep:
    """Steps the target rate from ``start_rate`` up to ``max_rate``.

    Each trial gets a fresh immutable TrialConfig and is fully joined by the
    runner before the next config is built.
    """

    def __init__(
        self,
        runner,
        sink: ResultSink,
        start_rate: int,
        duration_seconds: int,
        write_ratio: int,
        rate_step: int = None,
        max_rate: int = None,
        keyspace_size: int = None,
        num_generators: int = None,
        seed: Optional[int] = None,
        quiescence_timeout_seconds: float = None,
        max_consecutive_incomplete: int = None,
        stop_event: Optional[threading.Event] = None,
        metrics=None,
        value: int = None,
    ):
        """Initialize the sweep.

        Args:
            runner: Object with ``run_trial(config) -> TrialOutcome`` (a WorkerPool)
            sink: Receives every completed TrialResult and every discarded outcome
            start_rate: First target rate (req/s)
            duration_seconds: Duration of every trial
            write_ratio: Percent of PUT requests
            rate_step: Rate increment per trial (default: from configuration)
            max_rate: Last rate tried, inclusive (default: from configuration)
            keyspace_size: Keys drawn uniformly from ``[0, keyspace_size)``
            num_generators: Generator threads per trial (default: one per second of duration)
            seed: Base seed, trial N uses ``seed + N``
            quiescence_timeout_seconds: Collector silence threshold
            max_consecutive_incomplete: Stop after this many discarded trials in a row (0 = never)
            stop_event: Cancels the sweep between and within trials
            metrics: Optional exporter with ``record_trial``
            value: Value carried by PUT requests
        """
        if rate_step is not None and rate_step <= 0:
            raise ValueError(f"rate_step must be positive, got {rate_step}")

        self.runner = runner
        self.sink = sink
        self.start_rate = start_rate
        self.duration_seconds = duration_seconds
        self.write_ratio = write_ratio
        self.rate_step = rate_step or DEFAULT_RATE_STEP
        self.max_rate = MAX_TARGET_RATE if max_rate is None else max_rate
        self.keyspace_size = keyspace_size or KEYSPACE_SIZE
        self.num_generators = num_generators or max(1, duration_seconds)
        self.seed = seed
        self.quiescence_timeout_seconds = (
            QUIESCENCE_TIMEOUT_SECONDS if quiescence_timeout_seconds is None else quiescence_timeout_seconds
        )
        self.max_consecutive_incomplete = (
            MAX_CONSECUTIVE_INCOMPLETE if max_consecutive_incomplete is None else max_consecutive_incomplete
        )
        self.stop_event = stop_event or threading.Event()
        self.metrics = metrics
        self.value = DEFAULT_VALUE if value is None else value

        logger.info(
            f"Initialized rate sweep: {self.start_rate} -> {self.max_rate} req/s, step {self.rate_step}, "
            f"{self.duration_seconds}s per trial, {self.write_ratio}% writes, {self.num_generators} generators"
        )

    def rates(self) -> Iterator[int]:
        """Target rates of the sweep, inclusive of ``max_rate``."""
        rate = self.start_rate
        while rate <= self.max_rate:
            yield rate
            rate += self.rate_step

    def make_config(self, rate: int, trial_index: int) -> TrialConfig:
        return TrialConfig(
            target_rate=rate,
            duration_seconds=self.duration_seconds,
            write_ratio=self.write_ratio,
            keyspace_size=self.keyspace_size,
            num_generators=self.num_generators,
            seed=None if self.seed is None else self.seed + trial_index,
            quiescence_timeout_seconds=self.quiescence_timeout_seconds,
            value=self.value,
        )

    def execute_trial(self, rate: int, trial_index: int) -> Optional[TrialResult]:
        """Run one trial and forward its result to the sink if complete."""
        config = self.make_config(rate, trial_index)
        logger.info(f"Tx rate: {rate} req/s ({config.total_requests} requests)")

        outcome = self.runner.run_trial(config)
        result = build_result(outcome)

        if self.metrics is not None:
            self.metrics.record_trial(rate, outcome.received_count, result is not None)

        if result is None:
            if outcome.complete:
                logger.info(f"Trial at {rate} req/s had no requests to measure")
            else:
                logger.warning(
                    f"Trial at {rate} req/s discarded: received {outcome.received_count}/"
                    f"{config.total_requests} ({outcome.missing_count} missing)"
                )
                self.sink.record_discarded(outcome)
            return None

        logger.info(
            f"Trial at {rate} req/s: median {ns_to_ms(result.median_latency_ns):.3f} ms, "
            f"p99 {ns_to_ms(result.p99_latency_ns):.3f} ms"
        )
        logger.debug(f"Latency summary at {rate} req/s: {summarize_latencies(outcome.latencies)}")
        self.sink.write(result)
        return result

    def run(self) -> Dict[str, Any]:
        """Run the sweep until the ceiling, cancellation, or saturation cut-off."""
        results: List[TrialResult] = []
        trials_run = 0
        discarded = 0
        consecutive_incomplete = 0
        stop_reason = "Max rate reached"

        for rate in self.rates():
            if self.stop_event.is_set():
                break

            result = self.execute_trial(rate, trials_run)
            trials_run += 1

            if result is None:
                discarded += 1
                consecutive_incomplete += 1
            else:
                results.append(result)
                consecutive_incomplete = 0

            if trials_run % PROGRESS_INTERVAL == 0:
                logger.info(f"Sweep progress: {trials_run} trials, {len(results)} recorded, {discarded} discarded")

            if self.max_consecutive_incomplete and consecutive_incomplete >= self.max_consecutive_incomplete:
                stop_reason = f"{consecutive_incomplete} consecutive incomplete trials"
                logger.info(f"Stopping sweep at {rate} req/s: {stop_reason}")
                break

        if self.stop_event.is_set():
            stop_reason = "Stopped"

        logger.info(f"Sweep finished ({stop_reason}): {trials_run} trials, {len(results)} recorded")
        return {
            'results': results,
            'trials_run': trials_run,
            'trials_discarded': discarded,
            'stop_reason': stop_reason,
        }
