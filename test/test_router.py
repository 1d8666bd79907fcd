"""
Unit tests for the request router.
"""

import unittest
import sys
import os
from unittest.mock import Mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.wire import Operation, RequestRecord, decode_record, encode_record
from systems.base import BackendError
from systems.memory import InMemoryBackend
from systems.router import RequestRouter, parse_stored_value
from configuration import ABSENT_VALUE


def request(op, key, value=0, send_timestamp=123456789, seq=42):
    return RequestRecord(op=op, key=key, value=value, send_timestamp=send_timestamp, latency=0, sequence_number=seq)


class TestRequestRouter(unittest.TestCase):
    """Test GET/PUT handling against the in-memory backend."""

    def setUp(self):
        self.backend = InMemoryBackend()
        self.router = RequestRouter(self.backend)

    def test_get_absent_key_returns_zero(self):
        response = self.router.process(request(Operation.GET, 12345))
        self.assertEqual(response.value, ABSENT_VALUE)
        self.assertEqual(response.op, Operation.GET)

    def test_put_then_get(self):
        put = self.router.process(request(Operation.PUT, 42, value=1111))
        self.assertEqual(put.op, Operation.PUT)
        self.assertEqual(put.value, 1111)
        self.assertEqual(self.backend.get("42"), "1111")

        get = self.router.process(request(Operation.GET, 42))
        self.assertEqual(get.value, 1111)

    def test_put_is_idempotent(self):
        first = self.router.process(request(Operation.PUT, 7, value=99))
        second = self.router.process(request(Operation.PUT, 7, value=99))
        self.assertEqual(first, second)
        self.assertEqual(self.router.process(request(Operation.GET, 7)).value, 99)

    def test_echoes_timestamp_latency_and_sequence(self):
        original = RequestRecord(op=0, key=3, value=0, send_timestamp=987654321, latency=17, sequence_number=555)
        response = self.router.process(original)
        self.assertEqual(response.send_timestamp, 987654321)
        self.assertEqual(response.latency, 17)
        self.assertEqual(response.sequence_number, 555)
        self.assertEqual(response.key, 3)

    def test_preloaded_non_numeric_value_reads_as_zero(self):
        self.backend.preload(10, "value")
        self.assertEqual(self.router.process(request(Operation.GET, 5)).value, 0)

    def test_invalid_op_is_dropped(self):
        self.assertIsNone(self.router.process(request(7, 1)))
        self.assertEqual(self.router.dropped, 1)
        self.assertIsNone(self.backend.get("1"))

    def test_handle_round_trips_bytes(self):
        self.backend.set("9", "31337")
        reply = self.router.handle(encode_record(request(Operation.GET, 9, seq=3)))
        decoded = decode_record(reply)
        self.assertEqual(decoded.value, 31337)
        self.assertEqual(decoded.sequence_number, 3)

    def test_handle_drops_malformed_datagram(self):
        self.assertIsNone(self.router.handle(b'\x00' * 12))
        self.assertEqual(self.router.dropped, 1)

    def test_stats(self):
        self.router.process(request(Operation.GET, 1))
        self.router.process(request(Operation.PUT, 1, value=5))
        self.router.process(request(9, 1))
        self.assertEqual(self.router.stats(), {'gets': 1, 'puts': 1, 'dropped': 1})

    def test_metrics_receive_outcomes(self):
        metrics = Mock()
        router = RequestRouter(self.backend, metrics=metrics)
        router.process(request(Operation.GET, 1))
        router.process(request(Operation.PUT, 1, value=5))
        router.process(request(Operation.GET, 1))
        metrics.record_request.assert_any_call("get", "absent")
        metrics.record_request.assert_any_call("put", "ok")
        metrics.record_request.assert_any_call("get", "ok")


class TestBackendFailures(unittest.TestCase):
    """A failing backend results in no response."""

    def test_get_failure_is_dropped(self):
        backend = Mock()
        backend.get.side_effect = BackendError("connection refused")
        router = RequestRouter(backend)
        self.assertIsNone(router.process(request(Operation.GET, 1)))
        self.assertEqual(router.dropped, 1)

    def test_set_failure_is_dropped(self):
        backend = Mock()
        backend.set.side_effect = BackendError("not acknowledged")
        router = RequestRouter(backend)
        self.assertIsNone(router.handle(encode_record(request(Operation.PUT, 1, value=2))))
        backend.set.assert_called_once_with("1", "2")


class TestParseStoredValue(unittest.TestCase):

    def test_values(self):
        self.assertEqual(parse_stored_value(None), ABSENT_VALUE)
        self.assertEqual(parse_stored_value("1111"), 1111)
        self.assertEqual(parse_stored_value("value"), ABSENT_VALUE)
        self.assertEqual(parse_stored_value("-1"), ABSENT_VALUE)
        self.assertEqual(parse_stored_value(str(2 ** 64)), ABSENT_VALUE)
        self.assertEqual(parse_stored_value(str(2 ** 64 - 1)), 2 ** 64 - 1)


if __name__ == '__main__':
    unittest.main()
