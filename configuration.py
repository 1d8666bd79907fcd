"""
Configuration constants for the UDP key-value latency benchmark.

This module contains all configuration parameters including:
- Server and backend endpoints
- Workload parameters (keyspace, write ratio, record values)
- Sweep parameters (rate step, ceiling, quiescence timeout)
- Pacing parameters for the wait strategies
- Time conversion factors
"""

import os

# =============================================================================
# SERVER CONFIGURATION
# =============================================================================

# Address of the request router the client sends to
SERVER_HOST: str = os.getenv("BENCH_SERVER_HOST", "127.0.0.1")
SERVER_PORT: int = int(os.getenv("BENCH_SERVER_PORT", "5001"))

# Address the router listens on
LISTEN_HOST: str = os.getenv("BENCH_LISTEN_HOST", "0.0.0.0")

# =============================================================================
# BACKEND CONFIGURATION
# =============================================================================

REDIS_HOST: str = os.getenv("REDIS_HOST", "127.0.0.1")
REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
REDIS_SOCKET_TIMEOUT_SECONDS: float = 5.0

DEFAULT_BACKEND: str = "redis"

# =============================================================================
# WORKLOAD PARAMETERS
# =============================================================================

KEYSPACE_SIZE: int = 100000
DEFAULT_VALUE: int = 1111  # Value carried by every PUT
PRELOAD_VALUE: str = "value"  # Stored for every key when the router starts
ABSENT_VALUE: int = 0  # Returned by GET when the key is not set
DEFAULT_WRITE_RATIO: int = 0  # Percent of requests that are PUT

# =============================================================================
# SWEEP CONFIGURATION
# =============================================================================

DEFAULT_START_RATE: int = 1000
DEFAULT_RATE_STEP: int = 1000
MAX_TARGET_RATE: int = 10_000_000
DEFAULT_DURATION_SECONDS: int = 1
QUIESCENCE_TIMEOUT_SECONDS: float = 3.0  # Collector gives up after this much silence
MAX_CONSECUTIVE_INCOMPLETE: int = 0  # 0 disables the saturation cut-off
PROGRESS_INTERVAL: int = 10  # Log sweep progress every N trials

# =============================================================================
# PACING
# =============================================================================

DEFAULT_WAIT_STRATEGY: str = "busy"
HYBRID_SPIN_THRESHOLD_NS: int = 200_000  # Hybrid wait spins for the final 200us
COLLECTOR_IDLE_SLEEP_SECONDS: float = 0.0  # Collector poll loop never sleeps by default

# =============================================================================
# TRANSPORT
# =============================================================================

SOCKET_BUFFER_BYTES: int = 4 * 1024 * 1024
RECV_BUFFER_BYTES: int = 2048

# =============================================================================
# OUTPUT
# =============================================================================

RESULTS_FILENAME: str = "latency.txt"
DEFAULT_OUTPUT_DIR: str = "results"
DEFAULT_PLOTS_DIR: str = "plots"
PROMETHEUS_PORT: int = 0  # 0 disables the exporter

# =============================================================================
# TIME CONSTANTS
# =============================================================================

NANOSECONDS_PER_SECOND: int = 1_000_000_000
NANOSECONDS_PER_MILLISECOND: int = 1_000_000

# =============================================================================
# THREADING
# =============================================================================

# Interpreter thread switch interval while a trial runs; spinning generator
# threads hand the GIL over this often
THREAD_SWITCH_INTERVAL_SECONDS: float = 0.0001
