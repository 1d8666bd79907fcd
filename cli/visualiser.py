"""
Visualization orchestrator for sweep results.

Loads either a Parquet file written by the sweep or the whitespace-delimited
latency file, and renders the latency/throughput plots.
"""

import pandas as pd
import os
import logging

from visualizations.latency_plots import LatencyPlotter

logger = logging.getLogger(__name__)

LATENCY_FILE_COLUMNS = ['target_rate', 'median_latency_ns', 'p99_latency_ns']


def load_results(path: str) -> pd.DataFrame:
    """Load sweep results from a Parquet file or a latency text file."""
    if path.endswith('.parquet'):
        return pd.read_parquet(path)
    return pd.read_csv(path, sep=r'\s+', header=None, names=LATENCY_FILE_COLUMNS)


class BenchmarkVisualizer:
    """Simple visualizer for sweep results."""
    
    def __init__(self, results_file: str, output_dir: str = "plots"):
        self.results_file = results_file
        self.output_dir = output_dir
        self.data = None
        
        # Ensure output directory exists
        os.makedirs(output_dir, exist_ok=True)
        
        self._load_data()
        
        if self.data is not None:
            self.latency_plotter = LatencyPlotter(self.data, self.output_dir)
        else:
            self.latency_plotter = None
        
        logger.info(f"Initialized visualizer for {results_file}")
    
    def _load_data(self):
        """Load sweep results from disk."""
        try:
            self.data = load_results(self.results_file)
            logger.info(f"Loaded {len(self.data)} trial results from {self.results_file}")
        except Exception as e:
            logger.error(f"Failed to load data: {e}")
            self.data = None
    
    def create_all_plots(self):
        """Create every plot the loaded data supports and return their paths."""
        if self.latency_plotter is None:
            logger.warning("Latency plotter not available")
            return []
        
        plots = [
            self.latency_plotter.create_latency_curve(),
        ]
        if 'received_count' in self.data.columns:
            plots.append(self.latency_plotter.create_received_ratio_plot())
        
        return [p for p in plots if p]
