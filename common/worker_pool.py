"""
Thread group that runs one open-loop trial: K paced generators and one collector.
"""

import time
import threading
import logging
from typing import Callable, List, Optional

import numpy as np

from algorithms.arrival import PoissonArrivals, split_requests, spawn_generators
from common.clock import BusyWait, WaitStrategy, now_ns
from common.collector import Collector
from common.metrics_utils import calculate_requests_per_second
from common.transport import DatagramChannel
from common.trial import TrialConfig, TrialOutcome
from common.wire import Operation, RecordError, RequestRecord, encode_record
from configuration import SERVER_HOST, SERVER_PORT

logger = logging.getLogger(__name__)


class WorkerPool:
    """Runs trials against the router, one fresh channel per trial.

    Every thread of a trial is joined before ``run_trial`` returns, so the
    next trial can never share a channel or observe a half-built config.
    """

    def __init__(
        self,
        host: str = None,
        port: int = None,
        wait_strategy: Optional[WaitStrategy] = None,
        clock=now_ns,
        stop_event: Optional[threading.Event] = None,
        channel_factory: Optional[Callable[[], DatagramChannel]] = None,
    ):
        """Initialize the worker pool.

        Args:
            host: Router host (default: from configuration)
            port: Router port (default: from configuration)
            wait_strategy: Pacing strategy for generators (default: busy wait)
            clock: Nanosecond clock used for pacing and timestamps
            stop_event: Cancels generators and collector when set
            channel_factory: Builds an unopened channel per trial
        """
        self.host = host or SERVER_HOST
        self.port = port or SERVER_PORT
        self.clock = clock
        self.wait_strategy = wait_strategy or BusyWait(clock=clock)
        self.stop_event = stop_event or threading.Event()
        self.channel_factory = channel_factory or (lambda: DatagramChannel(self.host, self.port))

        logger.info(
            f"Initialized WorkerPool targeting {self.host}:{self.port} "
            f"with {self.wait_strategy.name} wait"
        )

    def run_trial(self, config: TrialConfig) -> TrialOutcome:
        """Run one trial to completion.

        Raises:
            TransportError: If the channel for this trial cannot be opened
        """
        total = config.total_requests
        workers = config.num_generators
        counts = split_requests(total, workers)
        rngs = spawn_generators(config.seed, workers)
        sent = [0] * workers
        failures = [0] * workers

        start = time.perf_counter()
        with self.channel_factory() as channel:
            collector = Collector(
                channel,
                expected=total,
                quiescence_timeout=config.quiescence_timeout_seconds,
                clock=self.clock,
                stop_event=self.stop_event,
            )
            collector_thread = threading.Thread(
                target=self._collector_task, args=(collector,), name="collector", daemon=True
            )
            generator_threads = [
                threading.Thread(
                    target=self._generator_task,
                    args=(config, channel, worker_id, counts[worker_id], rngs[worker_id], sent, failures),
                    name=f"generator-{worker_id}",
                    daemon=True,
                )
                for worker_id in range(workers)
            ]

            collector_thread.start()
            for thread in generator_threads:
                thread.start()

            for thread in generator_threads:
                thread.join()
            collector_thread.join()

        outcome = TrialOutcome(
            config=config,
            latencies=collector.latencies,
            received_count=collector.received,
            sent_count=sum(sent),
            send_failures=sum(failures),
            timed_out=collector.timed_out,
            elapsed_seconds=time.perf_counter() - start,
        )
        achieved = calculate_requests_per_second(outcome.sent_count, outcome.elapsed_seconds)
        logger.info(
            f"Trial at {config.target_rate} req/s finished: sent {outcome.sent_count} "
            f"({achieved:.0f} req/s achieved), received {outcome.received_count}/{total} "
            f"in {outcome.elapsed_seconds:.2f}s"
        )
        return outcome

    def _collector_task(self, collector: Collector) -> None:
        try:
            collector.run()
        except OSError as e:
            logger.error(f"Collector stopped on socket error: {e}")

    def _generator_task(
        self,
        config: TrialConfig,
        channel: DatagramChannel,
        worker_id: int,
        count: int,
        rng: np.random.Generator,
        sent: List[int],
        failures: List[int],
    ) -> None:
        """Emit ``count`` paced requests at ``target_rate / num_generators``."""
        workers = config.num_generators
        arrivals = PoissonArrivals(config.target_rate / workers, count, rng)
        wait_until = self.wait_strategy.wait_until
        clock = self.clock
        stop_event = self.stop_event

        try:
            for j, intended_ns in enumerate(arrivals.schedule(clock())):
                if stop_event.is_set():
                    logger.info(f"Generator {worker_id} cancelled after {sent[worker_id]} requests")
                    break

                wait_until(intended_ns)

                is_put = rng.integers(0, 100) < config.write_ratio
                record = RequestRecord(
                    op=Operation.PUT if is_put else Operation.GET,
                    key=int(rng.integers(0, config.keyspace_size)),
                    value=config.value,
                    send_timestamp=clock(),
                    latency=0,
                    sequence_number=worker_id + 1 + j * workers,
                )
                if channel.send(encode_record(record)):
                    sent[worker_id] += 1
                else:
                    failures[worker_id] += 1
        except OSError as e:
            logger.error(f"Generator {worker_id} stopped on socket error: {e}")
        except RecordError as e:
            logger.error(f"Generator {worker_id} stopped on unencodable request: {e}")

        if failures[worker_id]:
            logger.warning(f"Generator {worker_id}: {failures[worker_id]} datagrams refused by the kernel")
        logger.debug(f"Generator {worker_id} sent {sent[worker_id]}/{count} requests")
