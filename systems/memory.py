"""
In-process key-value backend.
"""

import threading
import logging
from typing import Dict, Optional

from systems.base import KeyValueBackend

logger = logging.getLogger(__name__)


class InMemoryBackend(KeyValueBackend):
    """Dictionary-backed store for local runs and tests."""

    name = "memory"

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()
        logger.info("Initialized in-memory backend")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def preload(self, num_keys: int, value: str) -> int:
        with self._lock:
            self._data.update((str(i), value) for i in range(num_keys))
        return num_keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
