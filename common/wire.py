"""
Fixed-width request/response record shared by the client and the router.

Layout (network byte order, 40 bytes):
    op:uint32  key:uint32  value:uint64  send_ts:uint64  latency:uint64  seq:uint64
"""

import struct
from dataclasses import dataclass, replace
from enum import IntEnum

RECORD_FORMAT = "!IIQQQQ"
RECORD_STRUCT = struct.Struct(RECORD_FORMAT)
RECORD_SIZE = RECORD_STRUCT.size

UINT32_MAX = 0xFFFFFFFF
UINT64_MAX = 0xFFFFFFFFFFFFFFFF


class Operation(IntEnum):
    GET = 0
    PUT = 1


class RecordError(ValueError):
    """Raised when a datagram cannot be decoded into a record."""


@dataclass(frozen=True)
class RequestRecord:
    """One request or response on the wire.

    ``op`` is kept as a plain integer so that records carrying an unknown
    operation code can still be decoded and rejected by the router.
    """

    op: int
    key: int
    value: int
    send_timestamp: int
    latency: int = 0
    sequence_number: int = 0

    @property
    def operation(self):
        """The decoded Operation, or None for an unknown code."""
        try:
            return Operation(self.op)
        except ValueError:
            return None

    def with_value(self, value: int) -> "RequestRecord":
        return replace(self, value=value)

    def with_op(self, op: int) -> "RequestRecord":
        return replace(self, op=int(op))


def encode_record(record: RequestRecord) -> bytes:
    """Pack a record into its 40-byte wire form.

    Raises:
        RecordError: If a field does not fit its wire width
    """
    try:
        return RECORD_STRUCT.pack(
            record.op,
            record.key,
            record.value,
            record.send_timestamp,
            record.latency,
            record.sequence_number,
        )
    except struct.error as e:
        raise RecordError(f"Cannot encode record {record}: {e}") from e


def decode_record(data: bytes) -> RequestRecord:
    """Unpack a datagram into a record.

    Raises:
        RecordError: If the datagram is not exactly one record long
    """
    if len(data) != RECORD_SIZE:
        raise RecordError(f"Expected {RECORD_SIZE} bytes, got {len(data)}")
    op, key, value, send_ts, latency, seq = RECORD_STRUCT.unpack(data)
    return RequestRecord(
        op=op,
        key=key,
        value=value,
        send_timestamp=send_ts,
        latency=latency,
        sequence_number=seq,
    )


def read_send_timestamp(data: bytes) -> int:
    """Extract only the send timestamp from an encoded record."""
    return struct.unpack_from("!Q", data, 16)[0]
