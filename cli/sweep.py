"""
Client side: open-loop rate sweep against the request router.
"""

import os
import sys
import time
import threading
import logging
from typing import Any, Dict, Optional

import psutil

from algorithms.sweep import RateSweep
from common.clock import create_wait_strategy
from common.worker_pool import WorkerPool
from persistence.base import CompositeSink, MemorySink
from persistence.latency_file import LatencyFileSink
from persistence.parquet import ParquetPersistence
from persistence.prom import SimplePrometheusExporter
from configuration import (
    DEFAULT_OUTPUT_DIR,
    DEFAULT_WAIT_STRATEGY,
    RESULTS_FILENAME,
    THREAD_SWITCH_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)


class CpuUsageTracker:
    """Wraps a trial runner and logs the process CPU time each trial consumed."""

    def __init__(self, runner):
        self.runner = runner
        self.process = psutil.Process(os.getpid())

    def run_trial(self, config):
        before = self.process.cpu_times()
        wall_start = time.perf_counter()
        outcome = self.runner.run_trial(config)
        after = self.process.cpu_times()
        wall = time.perf_counter() - wall_start

        cpu = (after.user - before.user) + (after.system - before.system)
        if wall > 0:
            logger.info(f"Trial CPU: {cpu:.2f}s over {wall:.2f}s wall ({cpu / wall:.0%} of one core)")
        return outcome


class SweepRunner:
    """Builds the worker pool, sinks and sweep from CLI arguments and runs it."""

    def __init__(
        self,
        host: str,
        port: int,
        start_rate: int,
        duration_seconds: int,
        write_ratio: int,
        rate_step: int = None,
        max_rate: int = None,
        keyspace_size: int = None,
        num_generators: int = None,
        seed: Optional[int] = None,
        results_file: str = None,
        output_dir: str = None,
        prometheus_port: int = 0,
        max_consecutive_incomplete: int = None,
        wait_strategy: str = None,
    ):
        self.stop_event = threading.Event()

        self.latency_file = LatencyFileSink(results_file or RESULTS_FILENAME)
        self.parquet = ParquetPersistence(output_dir or DEFAULT_OUTPUT_DIR)
        self.memory = MemorySink()
        sinks = [self.latency_file, self.parquet, self.memory]

        self.exporter = None
        if prometheus_port:
            self.exporter = SimplePrometheusExporter(prometheus_port)
            sinks.append(self.exporter)

        self.worker_pool = WorkerPool(
            host=host,
            port=port,
            wait_strategy=create_wait_strategy(wait_strategy or DEFAULT_WAIT_STRATEGY),
            stop_event=self.stop_event,
        )

        self.sweep = RateSweep(
            runner=CpuUsageTracker(self.worker_pool),
            sink=CompositeSink(sinks),
            start_rate=start_rate,
            duration_seconds=duration_seconds,
            write_ratio=write_ratio,
            rate_step=rate_step,
            max_rate=max_rate,
            keyspace_size=keyspace_size,
            num_generators=num_generators,
            seed=seed,
            max_consecutive_incomplete=max_consecutive_incomplete,
            stop_event=self.stop_event,
            metrics=self.exporter,
        )

        logger.info(
            f"Initialized sweep runner against {host}:{port} on {psutil.cpu_count(logical=True)} logical CPUs"
        )

    def run(self) -> Dict[str, Any]:
        """Run the sweep in a worker thread so the main thread can take Ctrl+C."""
        if self.exporter is not None:
            self.exporter.start_server()

        previous_interval = sys.getswitchinterval()
        sys.setswitchinterval(THREAD_SWITCH_INTERVAL_SECONDS)

        summary: Dict[str, Any] = {}
        errors = []

        def _target():
            try:
                summary.update(self.sweep.run())
            except Exception as e:
                errors.append(e)
                self.stop_event.set()

        thread = threading.Thread(target=_target, name="sweep")
        thread.start()
        try:
            while thread.is_alive():
                thread.join(timeout=0.5)
        except KeyboardInterrupt:
            logger.info("Interrupt received, stopping after the current trial")
            self.stop_event.set()
            thread.join()
        finally:
            sys.setswitchinterval(previous_interval)
            self.sweep.sink.close()

        if errors:
            raise errors[0]

        return summary

    def stop(self) -> None:
        self.stop_event.set()
