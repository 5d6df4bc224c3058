"""
Data Analysis Utility Module
Provides tools for analyzing exported drowsiness check sessions
"""

import json
import os
import logging
import pandas as pd
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from typing import Dict, Any

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {'frame_index', 'timestamp', 'vote', 'drowsy_count'}


class SessionDataAnalyzer:
    """Analyzes per-frame records from an exported session file"""

    def __init__(self, session_path: str):
        """
        Initialize data analyzer

        Args:
            session_path: Path to a JSON file written by export_session_data
        """
        self.session_path = session_path
        self.summary = {}
        self.data = None

    def load_session(self) -> pd.DataFrame:
        """
        Load per-frame records

        Returns:
            DataFrame with one row per analyzed frame
        """
        if not os.path.exists(self.session_path):
            logger.error(f"Session file not found: {self.session_path}")
            self.data = pd.DataFrame()
            return self.data

        try:
            with open(self.session_path, 'r') as f:
                session = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading session file: {e}")
            self.data = pd.DataFrame()
            return self.data

        if not isinstance(session, dict):
            logger.error(f"Session file {self.session_path} does not contain a JSON object")
            self.data = pd.DataFrame()
            return self.data

        frames = session.get('frames', [])
        if not isinstance(frames, list) or not all(
                isinstance(record, dict) and REQUIRED_COLUMNS.issubset(record) for record in frames):
            logger.error(f"Session file {self.session_path} has malformed frame records")
            self.data = pd.DataFrame()
            return self.data

        self.summary = session.get('summary', {})
        self.data = pd.DataFrame(frames)

        if not self.data.empty:
            self.data = self.data.sort_values('frame_index').reset_index(drop=True)
            self.data['timestamp'] = pd.to_datetime(self.data['timestamp'], unit='s')

        return self.data

    def generate_summary_report(self) -> Dict[str, Any]:
        """
        Generate summary statistics report

        Returns:
            Dictionary containing summary statistics
        """
        if self.data is None:
            self.load_session()
        if self.data.empty:
            return {}

        votes = self.data['vote']
        final_count = int(votes.sum())
        significant = votes == -1

        return {
            'frames_analyzed': len(self.data),
            'still_frames': int((votes == 1).sum()),
            'significant_change_frames': int(significant.sum()),
            'significant_change_ratio': float(significant.mean()),
            'final_count': final_count,
            'verdict': 'Not Drowsy' if final_count >= 0 else 'Drowsy',
            'longest_significant_run': self._longest_run(significant),
            'average_peak_difference': self._column_mean('peak_difference'),
            'average_processing_time': self._column_mean('processing_time'),
            'session_duration': self._calculate_session_duration()
        }

    def _column_mean(self, column: str) -> float:
        """Mean of an optional column, 0.0 when absent"""
        if column not in self.data:
            return 0.0
        return float(self.data[column].mean())

    @staticmethod
    def _longest_run(flags: pd.Series) -> int:
        """Length of the longest run of True values"""
        if not flags.any():
            return 0
        # Consecutive equal values share a group id
        groups = (flags != flags.shift()).cumsum()
        return int(flags.groupby(groups).sum().max())

    def _calculate_session_duration(self) -> float:
        """Seconds between first and last analyzed frame"""
        if self.data is None or len(self.data) < 2:
            return 0.0
        return (self.data['timestamp'].max() - self.data['timestamp'].min()).total_seconds()

    def plot_session(self, output_path: str) -> bool:
        """
        Plot the running counter and per-frame votes

        Args:
            output_path: Image file to write

        Returns:
            True if the plot was written
        """
        if self.data is None:
            self.load_session()
        if self.data.empty:
            logger.warning("No data to plot")
            return False

        fig, (ax_count, ax_vote) = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

        ax_count.plot(self.data['frame_index'], self.data['drowsy_count'], color='tab:blue')
        ax_count.axhline(0, color='gray', linestyle='--', linewidth=1)
        ax_count.set_ylabel('Count')
        ax_count.set_title('Drowsiness check')

        colors = np.where(self.data['vote'] < 0, 'tab:red', 'tab:green')
        ax_vote.bar(self.data['frame_index'], self.data['vote'], color=colors)
        ax_vote.set_ylabel('Vote')
        ax_vote.set_xlabel('Frame')

        try:
            fig.tight_layout()
            fig.savefig(output_path)
            logger.info(f"Session plot saved to {output_path}")
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save plot: {e}")
            return False
        finally:
            plt.close(fig)
