"""
Base classes for plot visualization.
"""

import pandas as pd
import logging

logger = logging.getLogger(__name__)


class BasePlotter:
    """Base class for all plotters with common functionality."""
    
    def __init__(self, data: pd.DataFrame, output_dir: str):
        self.data = data
        self.output_dir = output_dir
    
    def sorted_by_rate(self):
        """Return data ordered by target rate, or None if there is nothing to plot."""
        if self.data is None or len(self.data) == 0:
            return None
        return self.data.sort_values('target_rate')
    
    def has_columns(self, *columns) -> bool:
        """Check that the loaded data carries every requested column."""
        if self.data is None:
            return False
        missing = [c for c in columns if c not in self.data.columns]
        if missing:
            logger.warning(f"Data is missing columns: {missing}")
            return False
        return True
