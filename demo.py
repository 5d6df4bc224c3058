#!/usr/bin/env python3
"""
Simple demo script to run the drowsiness check without a camera
"""

import sys
import os

import numpy as np

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from drowsiness_tracker.integration import DrowsinessAnalyzer
from drowsiness_tracker.modules.frame_difference import FrameSegmenter


def synthetic_frame(moved: bool) -> np.ndarray:
    """Gray scene; a bright bar appears when the subject moves"""
    frame = np.full((480, 640, 3), 60, dtype=np.uint8)
    if moved:
        frame[200:230, 40:600] = 220
    return frame


def main():
    print("Drowsiness Tracker Demo")
    print("=" * 30)

    # Axis threshold scaled down for 640x480 frames
    analyzer = DrowsinessAnalyzer(FrameSegmenter(major_axis_threshold=300), frames=20)
    analyzer.set_reference(synthetic_frame(moved=False))

    rng = np.random.default_rng(0)
    while not analyzer.is_complete:
        moved = rng.random() < 0.6
        analysis = analyzer.analyze_frame(synthetic_frame(moved))
        print(f"Frame {analysis.frame_index:3d}: vote {analysis.vote.value:+d}, count {analysis.drowsy_count:+d}")

    print("=" * 30)
    print(f"Verdict: {analyzer.get_verdict().value}")
    print("\nTo run against the webcam:")
    print("  drowsiness-tracker                       # 100 frames with display")
    print("  drowsiness-tracker --no-display -n 50    # 50 frames, console only")
    print("  drowsiness-tracker -m batch -i clip.mp4  # Video file")
    return 0


if __name__ == "__main__":
    sys.exit(main())
