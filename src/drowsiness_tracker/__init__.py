"""
Drowsiness Tracker

Reference-frame drowsiness check for webcam input:
- Grayscale frame differencing and blob filtering
- Per-frame voting and session verdict
- Webcam capture and OpenCV display
- Offline session reports
"""

__version__ = "1.0.0"

from .modules.frame_difference import FrameSegmenter, FrameVote, SegmentationResult, segment_frames
from .integration import DrowsinessAnalyzer, DrowsinessVerdict, FrameAnalysis

__all__ = [
    'FrameSegmenter',
    'FrameVote',
    'SegmentationResult',
    'segment_frames',
    'DrowsinessAnalyzer',
    'DrowsinessVerdict',
    'FrameAnalysis'
]
