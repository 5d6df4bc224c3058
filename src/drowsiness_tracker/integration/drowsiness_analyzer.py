"""
Drowsiness analyzer that turns per-frame votes into a session verdict.
"""

import json
import time
import logging
import numpy as np
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional, List

from ..modules.frame_difference import FrameSegmenter, FrameVote

logger = logging.getLogger(__name__)


class DrowsinessVerdict(Enum):
    """Outcome of a drowsiness check."""
    NOT_DROWSY = "Not Drowsy"
    DROWSY = "Drowsy"


@dataclass
class FrameAnalysis:
    """Per-frame result of the drowsiness analyzer."""
    frame_index: int
    timestamp: float
    vote: FrameVote
    drowsy_count: int  # Running counter after this frame
    blob_count: int
    significant_blobs: int
    peak_difference: int
    processing_time: float
    highlighted: np.ndarray

    def to_record(self) -> Dict[str, Any]:
        """Serializable view without image data."""
        return {
            'frame_index': self.frame_index,
            'timestamp': self.timestamp,
            'vote': self.vote.value,
            'drowsy_count': self.drowsy_count,
            'blob_count': self.blob_count,
            'significant_blobs': self.significant_blobs,
            'peak_difference': self.peak_difference,
            'processing_time': self.processing_time
        }


class DrowsinessAnalyzer:
    """
    Counts frame votes against a fixed reference frame.

    Each frame without significant change adds one to the counter, each frame
    with significant change subtracts one. A negative counter at the end of
    the session means the subject is drowsy.
    """

    def __init__(self, segmenter: Optional[FrameSegmenter] = None, frames: int = 100):
        """
        Initialize drowsiness analyzer.

        Args:
            segmenter: FrameSegmenter instance (defaults are used if None)
            frames: Number of frames making up one session
        """
        if not isinstance(frames, int) or isinstance(frames, bool) or frames <= 0:
            raise ValueError(f"frames must be a positive integer, got {frames!r}")

        self.segmenter = segmenter or FrameSegmenter()
        self.frames = frames

        self.reference_frame = None
        self.reference_timestamp = None
        self.drowsy_count = 0
        self.frames_analyzed = 0

        self.history: List[Dict[str, Any]] = []
        self.processing_times = deque(maxlen=frames)
        self.start_time = None

        logger.info(f"DrowsinessAnalyzer initialized for {frames} frames")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'DrowsinessAnalyzer':
        """Build an analyzer from a full configuration dictionary."""
        segmenter = FrameSegmenter.from_config(config.get('segmentation', {}))
        return cls(segmenter=segmenter, frames=config.get('analysis', {}).get('frames', 100))

    @property
    def has_reference(self) -> bool:
        return self.reference_frame is not None

    @property
    def is_complete(self) -> bool:
        return self.frames_analyzed >= self.frames

    def set_reference(self, frame: np.ndarray, timestamp: Optional[float] = None):
        """
        Store the reference frame and start a new session.

        Args:
            frame: Reference frame
            timestamp: Acquisition time (current time if None)
        """
        if not isinstance(frame, np.ndarray) or frame.size == 0:
            raise ValueError("Reference frame must be a non-empty numpy array")

        self.reset()
        self.reference_frame = frame.copy()
        self.reference_timestamp = time.time() if timestamp is None else timestamp
        self.start_time = time.time()

        logger.info(f"Reference frame set ({frame.shape[1]}x{frame.shape[0]})")

    def analyze_frame(self, frame: np.ndarray, timestamp: Optional[float] = None) -> FrameAnalysis:
        """
        Compare a frame with the reference and update the counter.

        Args:
            frame: Live frame
            timestamp: Acquisition time (current time if None)

        Returns:
            FrameAnalysis for this frame
        """
        if not self.has_reference:
            raise RuntimeError("No reference frame set; call set_reference() first")

        if timestamp is None:
            timestamp = time.time()

        process_start = time.time()
        result = self.segmenter.segment(self.reference_frame, frame)
        processing_time = time.time() - process_start

        self.drowsy_count += result.vote.value
        self.frames_analyzed += 1
        self.processing_times.append(processing_time)

        analysis = FrameAnalysis(
            frame_index=self.frames_analyzed,
            timestamp=timestamp,
            vote=result.vote,
            drowsy_count=self.drowsy_count,
            blob_count=result.blob_count,
            significant_blobs=len(result.significant_blobs),
            peak_difference=result.peak_difference,
            processing_time=processing_time,
            highlighted=result.highlighted
        )
        self.history.append(analysis.to_record())

        if result.significant_change:
            logger.debug(f"Frame {self.frames_analyzed}: significant change "
                         f"({len(result.significant_blobs)} blob(s))")

        return analysis

    def get_verdict(self) -> DrowsinessVerdict:
        """Verdict for the frames analyzed so far."""
        if self.drowsy_count >= 0:
            return DrowsinessVerdict.NOT_DROWSY
        return DrowsinessVerdict.DROWSY

    def get_session_summary(self) -> Dict[str, Any]:
        """Summary statistics for the current session."""
        still = sum(1 for record in self.history if record['vote'] == FrameVote.STILL.value)
        significant = len(self.history) - still
        duration = time.time() - self.start_time if self.start_time is not None else 0.0

        return {
            'session_duration': duration,
            'frames_requested': self.frames,
            'frames_analyzed': self.frames_analyzed,
            'still_frames': still,
            'significant_change_frames': significant,
            'drowsy_count': self.drowsy_count,
            'verdict': self.get_verdict().value,
            'complete': self.is_complete,
            'avg_processing_time': float(np.mean(self.processing_times)) if self.processing_times else 0.0,
            'segmentation': {
                'intensity_threshold': self.segmenter.intensity_threshold,
                'min_blob_area': self.segmenter.min_blob_area,
                'major_axis_threshold': self.segmenter.major_axis_threshold,
                'diff_mode': self.segmenter.diff_mode
            }
        }

    def export_session_data(self, filepath: str) -> bool:
        """
        Write the session summary and per-frame history to a JSON file.

        Returns:
            True if successful
        """
        data = {
            'summary': self.get_session_summary(),
            'reference_timestamp': self.reference_timestamp,
            'frames': self.history
        }

        try:
            with open(filepath, 'w') as f:
                json.dump(data, f, indent=2)
            logger.info(f"Session data exported to {filepath}")
            return True
        except OSError as e:
            logger.error(f"Failed to export session data: {e}")
            return False

    def reset(self):
        """Clear the counter and history; the reference frame is dropped too."""
        self.reference_frame = None
        self.reference_timestamp = None
        self.drowsy_count = 0
        self.frames_analyzed = 0
        self.history = []
        self.processing_times.clear()
        self.start_time = None
