"""
Redis key-value backend.
"""

import logging
from typing import Optional

# Suppress redis client logging before importing it
logging.getLogger('redis').setLevel(logging.WARNING)

import redis

from systems.base import BackendError, KeyValueBackend
from configuration import (
    REDIS_HOST,
    REDIS_PORT,
    REDIS_DB,
    REDIS_SOCKET_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

PRELOAD_BATCH_SIZE = 1000


class RedisBackend(KeyValueBackend):
    """Redis server accessed synchronously, one command per request."""

    name = "redis"

    def __init__(self, host: str = None, port: int = None, db: int = None, client: redis.Redis = None):
        self.host = host or REDIS_HOST
        self.port = port or REDIS_PORT
        self.db = REDIS_DB if db is None else db
        self.client = client or redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            socket_timeout=REDIS_SOCKET_TIMEOUT_SECONDS,
            decode_responses=True,
        )
        logger.info(f"Initialized Redis backend at {self.host}:{self.port}/{self.db}")

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise BackendError(f"GET {key} failed: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            ok = self.client.set(key, value)
        except redis.RedisError as e:
            raise BackendError(f"SET {key} failed: {e}") from e
        if not ok:
            raise BackendError(f"SET {key} was not acknowledged")

    def preload(self, num_keys: int, value: str) -> int:
        """Pipelined preload, PRELOAD_BATCH_SIZE keys per round trip."""
        try:
            pipe = self.client.pipeline(transaction=False)
            for i in range(num_keys):
                pipe.set(str(i), value)
                if (i + 1) % PRELOAD_BATCH_SIZE == 0:
                    pipe.execute()
            pipe.execute()
        except redis.RedisError as e:
            raise BackendError(f"Preload failed: {e}") from e
        return num_keys

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            raise BackendError(f"Cannot reach Redis at {self.host}:{self.port}: {e}") from e

    def close(self) -> None:
        self.client.close()
