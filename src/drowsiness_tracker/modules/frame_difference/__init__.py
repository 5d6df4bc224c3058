"""
Frame Difference Module

Reference-frame differencing, blob filtering and per-frame voting.
"""

from .segmenter import FrameSegmenter, FrameVote, SegmentationResult, segment_frames
from .utils import (
    to_grayscale,
    difference_image,
    threshold_difference,
    find_peak_difference,
    area_open,
    major_axis_lengths,
    overlay_mask
)

__all__ = [
    'FrameSegmenter',
    'FrameVote',
    'SegmentationResult',
    'segment_frames',
    'to_grayscale',
    'difference_image',
    'threshold_difference',
    'find_peak_difference',
    'area_open',
    'major_axis_lengths',
    'overlay_mask'
]
