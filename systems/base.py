"""
Base class for key-value backends served by the request router.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when the backend fails a GET or SET."""


class KeyValueBackend:
    """Synchronous GET/SET service with string keys and values."""

    name = "base"

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent.

        Raises:
            BackendError: If the backend cannot be reached or replies with an error
        """
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting any previous value.

        Raises:
            BackendError: If the backend does not acknowledge the write
        """
        raise NotImplementedError

    def preload(self, num_keys: int, value: str) -> int:
        """Store ``value`` for keys ``0 .. num_keys - 1``. Returns keys written."""
        for i in range(num_keys):
            self.set(str(i), value)
        return num_keys

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
