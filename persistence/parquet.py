"""
Parquet persistence for sweep results.
"""

import os
import time
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime

import pandas as pd

from common.trial import TrialOutcome
from persistence.base import ResultSink
from persistence.record import TrialResult

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    'target_rate',
    'median_latency_ns',
    'p99_latency_ns',
    'received_count',
    'total_requests',
    'duration_seconds',
    'ts',
    'complete',
]


class ParquetPersistence(ResultSink):
    """Parquet file persistence for trial results.

    This class stores trial results in memory and provides functionality
    to save them to Parquet files for later analysis.

    Attributes:
        output_dir: Directory where Parquet files will be saved
        records: One row per trial, completed or discarded, accumulated during the sweep
    """

    def __init__(self, output_dir: str = "results", filename_prefix: str = "sweep"):
        """Initialize Parquet persistence.

        Args:
            output_dir: Directory for saving Parquet files (default: 'results')
            filename_prefix: Prefix used by ``close`` when saving
        """
        self.output_dir: str = output_dir
        self.filename_prefix = filename_prefix
        self.records: List[Dict[str, Any]] = []
        self.saved_path: Optional[str] = None

        # Ensure output directory exists
        os.makedirs(output_dir, exist_ok=True)

    def write(self, result: TrialResult) -> None:
        """Store a completed trial in memory."""
        row = {column: getattr(result, column) for column in RESULT_COLUMNS if column != 'complete'}
        row['complete'] = True
        self.records.append(row)

    def record_discarded(self, outcome: TrialOutcome) -> None:
        """Store a discarded trial without latency statistics."""
        config = outcome.config
        self.records.append({
            'target_rate': config.target_rate,
            'median_latency_ns': None,
            'p99_latency_ns': None,
            'received_count': outcome.received_count,
            'total_requests': config.total_requests,
            'duration_seconds': config.duration_seconds,
            'ts': time.time(),
            'complete': False,
        })

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(self.records, columns=RESULT_COLUMNS)
        df['received_ratio'] = df['received_count'] / df['total_requests'].where(df['total_requests'] > 0)
        return df

    def save_to_file(self, filename_prefix: str = None) -> Optional[str]:
        """Save all results to a Parquet file.

        Args:
            filename_prefix: Prefix for the generated filename (default: the instance prefix)

        Returns:
            Path to the saved file, or None if no results to save
        """
        if not self.records:
            return None

        logger.info(f"Saving {len(self.records)} trial results to file")
        df = self.to_dataframe()

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{filename_prefix or self.filename_prefix}_{timestamp}.parquet"
        filepath = os.path.join(self.output_dir, filename)

        df.to_parquet(filepath, index=False)
        self.saved_path = filepath

        return filepath

    def close(self) -> None:
        path = self.save_to_file()
        if path:
            logger.info(f"Sweep results saved to {path}")
