"""
Server side: UDP request router in front of a key-value backend.
"""

import asyncio
import logging
from typing import Optional, Tuple

from systems.base import KeyValueBackend
from systems.router import RequestRouter
from configuration import LISTEN_HOST, PRELOAD_VALUE, SERVER_PORT

logger = logging.getLogger(__name__)


class RouterProtocol(asyncio.DatagramProtocol):
    """Feeds each datagram to the router and replies to its sender."""

    def __init__(self, router: RequestRouter):
        self.router = router
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr):
        reply = self.router.handle(data)
        if reply is not None:
            self.transport.sendto(reply, addr)

    def error_received(self, exc):
        logger.warning(f"Datagram error: {exc}")


class RouterServer:
    """Asyncio UDP server hosting one RequestRouter."""

    def __init__(self, backend: KeyValueBackend, host: str = None, port: int = None, metrics=None):
        self.backend = backend
        self.host = host or LISTEN_HOST
        self.port = SERVER_PORT if port is None else port
        self.router = RequestRouter(backend, metrics=metrics)
        self.transport: Optional[asyncio.DatagramTransport] = None

    async def start(self) -> Tuple[str, int]:
        """Bind the listen socket.

        Returns:
            The bound (host, port); port is resolved when 0 was requested

        Raises:
            OSError: If the socket cannot be bound
        """
        loop = asyncio.get_running_loop()
        self.transport, _ = await loop.create_datagram_endpoint(
            lambda: RouterProtocol(self.router),
            local_addr=(self.host, self.port),
        )
        self.host, self.port = self.transport.get_extra_info('sockname')[:2]
        logger.info(f"Request router listening on {self.host}:{self.port} ({self.backend.name} backend)")
        return self.host, self.port

    async def stop(self) -> None:
        if self.transport is not None:
            self.transport.close()
            self.transport = None
            logger.info(f"Request router stopped: {self.router.stats()}")

    async def serve_forever(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Serve until ``stop_event`` is set or the task is cancelled."""
        stop_event = stop_event or asyncio.Event()
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()


def preload_backend(backend: KeyValueBackend, num_keys: int, value: str = None) -> None:
    """Populate keys ``0 .. num_keys - 1`` so GETs hit existing entries."""
    value = PRELOAD_VALUE if value is None else value
    logger.info(f"Preloading {num_keys} keys into {backend.name} backend...")
    written = backend.preload(num_keys, value)
    logger.info(f"Preloaded {written} keys")


def prepare_backend(backend: KeyValueBackend, preload_keys: int) -> None:
    """Check connectivity and preload.

    Raises:
        BackendError: If the backend cannot be reached
    """
    backend.ping()
    if preload_keys > 0:
        preload_backend(backend, preload_keys)
