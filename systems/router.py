"""
Stateless request router: one datagram in, at most one datagram out.
"""

import logging
from typing import Optional

from common.wire import (
    UINT64_MAX,
    Operation,
    RecordError,
    RequestRecord,
    decode_record,
    encode_record,
)
from systems.base import BackendError, KeyValueBackend
from configuration import ABSENT_VALUE

logger = logging.getLogger(__name__)


def parse_stored_value(stored: Optional[str]) -> int:
    """Convert a stored string to the wire value.

    Absent keys and values that are not a uint64 decimal map to ABSENT_VALUE.
    """
    if stored is None:
        return ABSENT_VALUE
    try:
        value = int(stored)
    except (TypeError, ValueError):
        return ABSENT_VALUE
    if not 0 <= value <= UINT64_MAX:
        return ABSENT_VALUE
    return value


class RequestRouter:
    """Serves GET/PUT records against a key-value backend.

    Only ``value`` and ``op`` of the response are set by the router; the
    send timestamp, latency and sequence number are echoed unchanged.
    Anything that cannot be served yields no response.
    """

    def __init__(self, backend: KeyValueBackend, metrics=None):
        """Initialize the router.

        Args:
            backend: Key-value backend to serve from
            metrics: Optional exporter with ``record_request(op, outcome)``
        """
        self.backend = backend
        self.metrics = metrics
        self.gets = 0
        self.puts = 0
        self.dropped = 0

    def handle(self, datagram: bytes) -> Optional[bytes]:
        """Serve one encoded request and return the encoded response, or None to drop it."""
        try:
            request = decode_record(datagram)
        except RecordError as e:
            logger.debug(f"Dropping malformed datagram: {e}")
            return self._drop("unknown", "malformed")

        response = self.process(request)
        if response is None:
            return None
        return encode_record(response)

    def process(self, request: RequestRecord) -> Optional[RequestRecord]:
        """Serve one decoded request."""
        operation = request.operation

        if operation is Operation.GET:
            try:
                stored = self.backend.get(str(request.key))
            except BackendError as e:
                logger.warning(f"Backend GET failed for key {request.key}: {e}")
                return self._drop("get", "backend_error")
            self.gets += 1
            self._count("get", "ok" if stored is not None else "absent")
            return request.with_op(Operation.GET).with_value(parse_stored_value(stored))

        if operation is Operation.PUT:
            try:
                self.backend.set(str(request.key), str(request.value))
            except BackendError as e:
                logger.warning(f"Backend SET failed for key {request.key}: {e}")
                return self._drop("put", "backend_error")
            self.puts += 1
            self._count("put", "ok")
            return request.with_op(Operation.PUT)

        logger.debug(f"Invalid operation {request.op} (seq {request.sequence_number})")
        return self._drop("unknown", "invalid_op")

    def _count(self, op: str, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_request(op, outcome)

    def _drop(self, op: str, outcome: str) -> None:
        self.dropped += 1
        self._count(op, outcome)
        return None

    def stats(self) -> dict:
        return {'gets': self.gets, 'puts': self.puts, 'dropped': self.dropped}
