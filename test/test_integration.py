"""
End-to-end tests: router over loopback UDP with the in-memory backend.
"""

import os
import socket
import sys
import threading

import pytest
import uvloop

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cli.server import RouterServer
from cli.sweep import SweepRunner
from common.clock import HybridWait
from common.transport import DatagramChannel
from common.trial import TrialConfig
from common.wire import RECORD_SIZE, Operation, RequestRecord, decode_record, encode_record
from common.worker_pool import WorkerPool
from systems.memory import InMemoryBackend
from main import LatencyBenchCLI


class ServerThread:
    """Runs a RouterServer on its own uvloop event loop."""

    def __init__(self, backend):
        self.server = RouterServer(backend, host="127.0.0.1", port=0)
        self.loop = uvloop.new_event_loop()
        self.ready = threading.Event()
        self.thread = threading.Thread(target=self._run, name="router", daemon=True)

    def _run(self):
        self.loop.run_until_complete(self.server.start())
        self.ready.set()
        self.loop.run_forever()
        self.loop.run_until_complete(self.server.stop())
        self.loop.close()

    def start(self):
        self.thread.start()
        assert self.ready.wait(5), "router did not start"
        return self.server.port

    def stop(self):
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.thread.join(5)


@pytest.fixture
def router():
    backend = InMemoryBackend()
    server = ServerThread(backend)
    port = server.start()
    yield backend, port
    server.stop()


def exchange(port, record):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.settimeout(2)
        sock.sendto(encode_record(record), ("127.0.0.1", port))
        data, _ = sock.recvfrom(2048)
    assert len(data) == RECORD_SIZE
    return decode_record(data)


class TestRouterOverUdp:
    def test_get_unset_key(self, router):
        _, port = router
        response = exchange(port, RequestRecord(op=Operation.GET, key=12345, value=0, send_timestamp=77, sequence_number=9))
        assert response.value == 0
        assert response.send_timestamp == 77
        assert response.sequence_number == 9

    def test_put_then_get(self, router):
        backend, port = router
        exchange(port, RequestRecord(op=Operation.PUT, key=42, value=1111, send_timestamp=1))
        assert backend.get("42") == "1111"
        response = exchange(port, RequestRecord(op=Operation.GET, key=42, value=0, send_timestamp=2))
        assert response.value == 1111

    def test_invalid_op_gets_no_reply(self, router):
        _, port = router
        with pytest.raises(socket.timeout):
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.settimeout(0.5)
                sock.sendto(encode_record(RequestRecord(op=5, key=1, value=0, send_timestamp=1)), ("127.0.0.1", port))
                sock.recvfrom(2048)


class TestDatagramChannel:
    def test_context_manager_scopes_socket(self, router):
        _, port = router
        record = RequestRecord(op=Operation.GET, key=1, value=0, send_timestamp=5, sequence_number=1)

        with DatagramChannel("127.0.0.1", port) as channel:
            assert channel.is_open
            assert channel.send(encode_record(record))

        assert not channel.is_open


class TestTrialOverUdp:
    def test_low_rate_trial_completes(self, router):
        _, port = router
        pool = WorkerPool(host="127.0.0.1", port=port, wait_strategy=HybridWait())
        config = TrialConfig(
            target_rate=200, duration_seconds=1, write_ratio=50, seed=4, quiescence_timeout_seconds=2.0
        )

        outcome = pool.run_trial(config)

        assert outcome.complete
        assert outcome.received_count == 200
        assert all(latency > 0 for latency in outcome.latencies)

    def test_sweep_runner_writes_results(self, router, tmp_path):
        _, port = router
        results_file = tmp_path / "latency.txt"
        runner = SweepRunner(
            host="127.0.0.1",
            port=port,
            start_rate=100,
            duration_seconds=1,
            write_ratio=0,
            rate_step=100,
            max_rate=200,
            seed=1,
            results_file=str(results_file),
            output_dir=str(tmp_path / "results"),
            wait_strategy="hybrid",
        )

        summary = runner.run()

        assert len(summary['results']) == 2
        lines = results_file.read_text().splitlines()
        assert [line.split()[0] for line in lines] == ["100", "200"]
        assert runner.parquet.saved_path is not None


class TestCli:
    def test_no_command_prints_help(self):
        assert LatencyBenchCLI().run([]) == 1

    def test_visualize(self, tmp_path):
        path = tmp_path / "latency.txt"
        path.write_text("1000    52000.00    180000.00\n2000    61000.00    250000.00\n")
        args = ['visualize', '--results-file', str(path), '--output-dir', str(tmp_path / "plots")]
        assert LatencyBenchCLI().run(args) == 0
        assert (tmp_path / "plots" / "latency_curve.png").exists()

    def test_visualize_missing_file(self, tmp_path):
        args = ['visualize', '--results-file', str(tmp_path / "absent.txt")]
        assert LatencyBenchCLI().run(args) == 1

    def test_invalid_sweep_configuration(self, tmp_path):
        args = ['sweep', '--rate-step', '0', '--results-file', str(tmp_path / "l.txt"),
                '--output-dir', str(tmp_path / "results")]
        assert LatencyBenchCLI().run(args) == 1
