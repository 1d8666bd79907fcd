"""
Whitespace-delimited latency file: one ``rate median p99`` line per trial.
"""

import os
import logging

from persistence.base import ResultSink
from persistence.record import TrialResult
from configuration import RESULTS_FILENAME

logger = logging.getLogger(__name__)


def format_result_line(result: TrialResult) -> str:
    rate, median, p99 = result.as_row()
    return f"{rate}    {float(median):.2f}    {float(p99):.2f}\n"


class LatencyFileSink(ResultSink):
    """Appends each completed trial to a text file, opened per write."""

    def __init__(self, path: str = None):
        self.path = path or RESULTS_FILENAME
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def write(self, result: TrialResult) -> None:
        try:
            with open(self.path, "a") as f:
                f.write(format_result_line(result))
        except OSError as e:
            logger.error(f"Error opening {self.path}: {e}")
