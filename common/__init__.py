"""
Common utilities for the latency benchmark.
"""

from .collector import Collector
from .worker_pool import WorkerPool

__all__ = ['Collector', 'WorkerPool']
