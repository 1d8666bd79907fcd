"""
Simple Prometheus metrics exporter for the latency benchmark.
"""

import logging
from prometheus_client import CollectorRegistry, start_http_server, Counter, Gauge

from persistence.base import ResultSink
from persistence.record import TrialResult
from configuration import NANOSECONDS_PER_SECOND

logger = logging.getLogger(__name__)


class SimplePrometheusExporter(ResultSink):
    """Publishes sweep progress and router counters.

    Each exporter owns its registry so several can coexist in one process.
    """

    def __init__(self, port: int = 9100, registry: CollectorRegistry = None):
        self.port = port
        self.server_started = False
        self.registry = registry or CollectorRegistry()

        # Sweep metrics
        self.trials_total = Counter(
            'udpkv_bench_trials_total', 'Trials run', ['status'], registry=self.registry
        )
        self.target_rate = Gauge(
            'udpkv_bench_target_rate', 'Target rate of the latest trial (req/s)', registry=self.registry
        )
        self.median_latency = Gauge(
            'udpkv_bench_median_latency_seconds', 'Median latency of the latest completed trial',
            registry=self.registry,
        )
        self.p99_latency = Gauge(
            'udpkv_bench_p99_latency_seconds', '99th percentile latency of the latest completed trial',
            registry=self.registry,
        )
        self.received = Gauge(
            'udpkv_bench_received_responses', 'Responses received in the latest trial', registry=self.registry
        )

        # Router metrics
        self.router_requests_total = Counter(
            'udpkv_router_requests_total', 'Requests handled by the router', ['op', 'outcome'],
            registry=self.registry,
        )

    def start_server(self):
        """Start the Prometheus HTTP server."""
        if not self.server_started:
            try:
                start_http_server(self.port, registry=self.registry)
                self.server_started = True
                logger.info(f"Prometheus server started on port {self.port}")
            except Exception as e:
                logger.error(f"Failed to start Prometheus server: {e}")

    def record_trial(self, target_rate: int, received: int, complete: bool):
        """Record a finished trial, complete or discarded."""
        try:
            self.trials_total.labels(status='complete' if complete else 'discarded').inc()
            self.target_rate.set(target_rate)
            self.received.set(received)
        except Exception as e:
            logger.error(f"Failed to record trial metric: {e}")

    def write(self, result: TrialResult) -> None:
        try:
            self.median_latency.set(result.median_latency_ns / NANOSECONDS_PER_SECOND)
            self.p99_latency.set(result.p99_latency_ns / NANOSECONDS_PER_SECOND)
        except Exception as e:
            logger.error(f"Failed to update latency metrics: {e}")

    def record_request(self, op: str, outcome: str):
        """Record one router request."""
        try:
            self.router_requests_total.labels(op=op, outcome=outcome).inc()
        except Exception as e:
            logger.error(f"Failed to record request metric: {e}")
