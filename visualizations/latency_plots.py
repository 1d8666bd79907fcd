"""
Latency visualization plots.
"""

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import logging
import os

from .base import BasePlotter
from configuration import NANOSECONDS_PER_MILLISECOND

logger = logging.getLogger(__name__)


class LatencyPlotter(BasePlotter):
    """Plotter for latency/throughput curves of a rate sweep."""
    
    def create_latency_curve(self):
        """Plot median and p99 latency against target rate."""
        data = self.sorted_by_rate()
        if data is None or not self.has_columns('target_rate', 'median_latency_ns', 'p99_latency_ns'):
            logger.warning("No data available for latency curve")
            return None
        
        # Discarded trials carry no latency statistics
        data = data.dropna(subset=['median_latency_ns', 'p99_latency_ns'])
        if data.empty:
            logger.warning("No completed trials available for latency curve")
            return None
        
        try:
            rates = data['target_rate'].to_numpy()
            median_ms = data['median_latency_ns'].to_numpy() / NANOSECONDS_PER_MILLISECOND
            p99_ms = data['p99_latency_ns'].to_numpy() / NANOSECONDS_PER_MILLISECOND
            
            fig, ax = plt.subplots(figsize=(12, 8))
            ax.plot(rates, median_ms, marker='o', linewidth=2, label='Median', color='steelblue')
            ax.plot(rates, p99_ms, marker='s', linewidth=2, label='P99', color='firebrick')
            ax.fill_between(rates, median_ms, p99_ms, alpha=0.15, color='firebrick')
            
            ax.set_title('Latency vs Target Rate', fontsize=14, fontweight='bold')
            ax.set_xlabel('Target rate (req/s)')
            ax.set_ylabel('Latency (ms)')
            if np.all(p99_ms > 0) and p99_ms.max() / max(median_ms.min(), 1e-9) > 100:
                ax.set_yscale('log')
            ax.grid(True, alpha=0.3)
            ax.legend()
            
            # Mark the knee: the last rate before p99 more than doubles
            knee = self._find_knee(rates, p99_ms)
            if knee is not None:
                ax.axvline(knee, linestyle='--', color='gray', alpha=0.7)
                ax.annotate(f'knee ~{knee:,} req/s', xy=(knee, p99_ms.max()),
                            xytext=(5, -15), textcoords='offset points', fontsize=9, color='gray')
            
            plt.tight_layout()
            
            output_file = os.path.join(self.output_dir, 'latency_curve.png')
            plt.savefig(output_file, dpi=300, bbox_inches='tight')
            plt.close(fig)
            
            logger.info(f"Created latency curve: {output_file}")
            return output_file
            
        except Exception as e:
            logger.error(f"Failed to create latency curve: {e}")
            return None
    
    def create_received_ratio_plot(self):
        """Plot the share of responses received per trial."""
        data = self.sorted_by_rate()
        if data is None or not self.has_columns('target_rate', 'received_count', 'total_requests'):
            logger.warning("No data available for received ratio plot")
            return None
        
        try:
            totals = data['total_requests'].replace(0, np.nan)
            ratio = (data['received_count'] / totals).fillna(0) * 100
            
            if 'complete' in data.columns:
                colors = ['seagreen' if complete else 'firebrick' for complete in data['complete']]
            else:
                colors = 'seagreen'
            
            fig, ax = plt.subplots(figsize=(12, 6))
            ax.bar(data['target_rate'].astype(str), ratio, color=colors, alpha=0.7, edgecolor='black')
            ax.set_title('Responses Received per Trial', fontsize=14, fontweight='bold')
            ax.set_xlabel('Target rate (req/s)')
            ax.set_ylabel('Received (%)')
            ax.set_ylim(0, 105)
            ax.grid(True, alpha=0.3, axis='y')
            plt.setp(ax.get_xticklabels(), rotation=45, ha='right')
            
            plt.tight_layout()
            
            output_file = os.path.join(self.output_dir, 'received_ratio.png')
            plt.savefig(output_file, dpi=300, bbox_inches='tight')
            plt.close(fig)
            
            logger.info(f"Created received ratio plot: {output_file}")
            return output_file
            
        except Exception as e:
            logger.error(f"Failed to create received ratio plot: {e}")
            return None
    
    @staticmethod
    def _find_knee(rates, p99_ms, factor: float = 2.0):
        """Last rate whose successor has a p99 more than ``factor`` times higher."""
        for i in range(1, len(rates)):
            if p99_ms[i - 1] > 0 and p99_ms[i] > factor * p99_ms[i - 1]:
                return int(rates[i - 1])
        return None
