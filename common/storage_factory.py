"""
Factory module for creating key-value backend instances.
"""

import logging

from systems.base import KeyValueBackend

logger = logging.getLogger(__name__)

BACKEND_TYPES = ("redis", "memory")


def create_backend(backend_type: str, **kwargs) -> KeyValueBackend:
    """Create and return the appropriate backend based on type.

    Args:
        backend_type: Backend type ('redis' or 'memory')
        **kwargs: Connection options passed to the Redis backend (host, port, db)

    Returns:
        Backend instance (RedisBackend or InMemoryBackend)

    Raises:
        ValueError: If backend_type is not supported
    """
    backend_type = backend_type.lower()

    if backend_type == "redis":
        from systems.redis_backend import RedisBackend
        return RedisBackend(**kwargs)

    elif backend_type == "memory":
        from systems.memory import InMemoryBackend
        return InMemoryBackend()

    else:
        raise ValueError(f"Unsupported backend type: {backend_type}. Must be one of {', '.join(BACKEND_TYPES)}.")
