"""
Connectionless datagram channel shared by one trial's thread group.
"""

import socket
import logging
from typing import Optional, Tuple

from configuration import SOCKET_BUFFER_BYTES, RECV_BUFFER_BYTES

logger = logging.getLogger(__name__)


class TransportError(OSError):
    """Raised when the channel cannot be created or connected."""


class DatagramChannel:
    """UDP socket connected to the router.

    ``send`` may be called from several generator threads at once and
    ``try_recv`` from a single collector thread; datagram send/receive are
    independent system calls so no locking is needed.
    """

    def __init__(self, host: str, port: int, buffer_bytes: int = None):
        self.address: Tuple[str, int] = (host, port)
        self.buffer_bytes = buffer_bytes or SOCKET_BUFFER_BYTES
        self.sock: Optional[socket.socket] = None

    def open(self) -> "DatagramChannel":
        """Create the socket and bind the remote address.

        Raises:
            TransportError: If the socket cannot be created or connected
        """
        try:
            infos = socket.getaddrinfo(self.address[0], self.address[1], 0, socket.SOCK_DGRAM)
            family, socktype, proto, _, sockaddr = infos[0]
            sock = socket.socket(family, socktype, proto)
        except OSError as e:
            raise TransportError(f"Could not create socket for {self.address}: {e}") from e

        try:
            # Buffer sizes are best effort, the kernel may clamp them
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, self.buffer_bytes)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, self.buffer_bytes)
            sock.connect(sockaddr)
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            raise TransportError(f"Could not connect to {self.address}: {e}") from e

        self.sock = sock
        logger.debug(f"Opened datagram channel to {self.address[0]}:{self.address[1]}")
        return self

    def send(self, payload: bytes) -> bool:
        """Send one datagram. Returns False if the kernel refused it."""
        try:
            self.sock.send(payload)
            return True
        except BlockingIOError:
            return False
        except ConnectionRefusedError:
            # ICMP port unreachable from an earlier datagram
            return False

    def try_recv(self) -> Optional[bytes]:
        """Non-blocking receive. Returns None when no datagram is queued."""
        try:
            return self.sock.recv(RECV_BUFFER_BYTES)
        except (BlockingIOError, InterruptedError):
            return None
        except ConnectionRefusedError:
            return None

    def close(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None
            logger.debug(f"Closed datagram channel to {self.address[0]}:{self.address[1]}")

    @property
    def is_open(self) -> bool:
        return self.sock is not None

    def __enter__(self):
        if self.sock is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"DatagramChannel(address={self.address}, open={self.is_open})"
