"""
Reference-frame segmentation.

Compares a live frame with a reference frame and decides whether the scene
changed significantly. Changed regions are highlighted on the live frame.
"""

import numpy as np
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple

from .utils import (
    DIFF_MODES,
    to_grayscale,
    difference_image,
    threshold_difference,
    find_peak_difference,
    area_open,
    major_axis_lengths,
    overlay_mask
)

logger = logging.getLogger(__name__)


class FrameVote(Enum):
    """Per-frame vote cast into the drowsiness counter."""
    STILL = 1
    SIGNIFICANT_CHANGE = -1


@dataclass
class SegmentationResult:
    """Output of a single reference/current comparison."""
    highlighted: np.ndarray  # Current frame with changed blobs burnt in
    vote: FrameVote
    mask: np.ndarray  # Area-opened change mask
    blob_count: int  # Blobs surviving the area opening
    significant_blobs: List[float] = field(default_factory=list)  # Major axis lengths over threshold
    peak_difference: int = 0
    peak_locations: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def significant_change(self) -> bool:
        return self.vote is FrameVote.SIGNIFICANT_CHANGE


class FrameSegmenter:
    """
    Grayscale differencing segmenter.

    A frame counts as a significant change when at least one blob of changed
    pixels survives both the area opening and the major-axis filter.
    """

    def __init__(
        self,
        intensity_threshold: int = 8,
        min_blob_area: int = 50,
        major_axis_threshold: float = 700.0,
        diff_mode: str = 'absolute',
        connectivity: int = 8,
        overlay_color: Tuple[int, int, int] = (0, 0, 255)
    ):
        """
        Initialize frame segmenter.

        Args:
            intensity_threshold: Gray-level difference a pixel must exceed
            min_blob_area: Smallest blob (in pixels) kept by the area opening
            major_axis_threshold: Major axis length a blob must exceed to count
            diff_mode: 'absolute' or 'saturated' differencing
            connectivity: Pixel connectivity for blob labelling (4 or 8)
            overlay_color: BGR color used to highlight changed blobs
        """
        if diff_mode not in DIFF_MODES:
            raise ValueError(f"Unknown difference mode: {diff_mode}")
        if connectivity not in (4, 8):
            raise ValueError(f"Connectivity must be 4 or 8, got {connectivity}")
        if min_blob_area < 0:
            raise ValueError("min_blob_area must be non-negative")

        self.intensity_threshold = intensity_threshold
        self.min_blob_area = min_blob_area
        self.major_axis_threshold = major_axis_threshold
        self.diff_mode = diff_mode
        self.connectivity = connectivity
        self.overlay_color = tuple(int(c) for c in overlay_color)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'FrameSegmenter':
        """Build a segmenter from the 'segmentation' config section."""
        config = config or {}
        return cls(
            intensity_threshold=config.get('intensity_threshold', 8),
            min_blob_area=config.get('min_blob_area', 50),
            major_axis_threshold=config.get('major_axis_threshold', 700.0),
            diff_mode=config.get('diff_mode', 'absolute'),
            connectivity=config.get('connectivity', 8),
            overlay_color=tuple(config.get('overlay_color', (0, 0, 255)))
        )

    def segment(self, reference: np.ndarray, current: np.ndarray) -> SegmentationResult:
        """
        Compare the current frame with the reference frame.

        Args:
            reference: Reference frame captured at session start
            current: Live frame

        Returns:
            SegmentationResult with the highlighted frame and the vote
        """
        reference_gray = to_grayscale(reference)
        current_gray = to_grayscale(current)

        diff = difference_image(reference_gray, current_gray, self.diff_mode)
        peak, peak_locations = find_peak_difference(diff)

        changed = threshold_difference(diff, self.intensity_threshold)
        blobs = area_open(changed, self.min_blob_area, self.connectivity)

        highlighted = overlay_mask(current, blobs, self.overlay_color)

        lengths = major_axis_lengths(blobs, self.connectivity)
        significant = [float(length) for length in lengths if length > self.major_axis_threshold]

        vote = FrameVote.SIGNIFICANT_CHANGE if significant else FrameVote.STILL

        logger.debug(
            f"Segmented frame: peak={peak}, blobs={len(lengths)}, "
            f"significant={len(significant)}, vote={vote.name}"
        )

        return SegmentationResult(
            highlighted=highlighted,
            vote=vote,
            mask=blobs,
            blob_count=len(lengths),
            significant_blobs=significant,
            peak_difference=peak,
            peak_locations=peak_locations
        )


def segment_frames(reference: np.ndarray, current: np.ndarray, **kwargs) -> Tuple[np.ndarray, int]:
    """
    One-off comparison returning the highlighted frame and the raw vote.

    Returns:
        Tuple of (highlighted frame, +1 for no significant change or -1)
    """
    result = FrameSegmenter(**kwargs).segment(reference, current)
    return result.highlighted, result.vote.value
