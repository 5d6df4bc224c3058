"""
GUI Interface for the drowsiness check

Simple display built on OpenCV's highgui functions: the highlighted live
frame while the check runs, then a blank cover with the verdict.
"""

import cv2
import numpy as np
from typing import Optional, Callable, Tuple
import logging

from ..integration.drowsiness_analyzer import FrameAnalysis, DrowsinessVerdict


class GUIInterface:
    """
    OpenCV window showing segmentation results and the final verdict.
    """

    def __init__(self, window_name: str = "Camera", show_status: bool = True,
                 total_frames: Optional[int] = None):
        """
        Initialize GUI interface.

        Args:
            window_name: Main window name
            show_status: Draw frame index and counter on the live view
            total_frames: Session length shown in the status line
        """
        self.window_name = window_name
        self.show_status = show_status
        self.total_frames = total_frames

        self.colors = {
            DrowsinessVerdict.NOT_DROWSY: (0, 255, 0),
            DrowsinessVerdict.DROWSY: (0, 0, 255)
        }

        self.is_initialized = False
        self.key_callbacks = {}
        self.last_shape = None

        self.logger = logging.getLogger(__name__)

    def initialize(self) -> bool:
        """Create the display window."""
        try:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            self.is_initialized = True
            return True
        except cv2.error as e:
            self.logger.error(f"GUI initialization failed: {e}")
            return False

    def display_frame(self, frame: np.ndarray,
                      analysis: Optional[FrameAnalysis] = None) -> int:
        """
        Display a frame with an optional status line.

        Args:
            frame: Frame to show (normally the highlighted frame)
            analysis: Per-frame analysis for the status line

        Returns:
            Key code pressed (255 if none)
        """
        if not self.is_initialized:
            if not self.initialize():
                return -1

        display = frame
        if analysis is not None and self.show_status:
            display = self.render_status(frame, analysis)

        self.last_shape = frame.shape
        cv2.imshow(self.window_name, display)
        return self._poll_key()

    def render_status(self, frame: np.ndarray, analysis: FrameAnalysis) -> np.ndarray:
        """Return a copy of the frame with the status line drawn on it."""
        display = frame.copy()
        if display.ndim == 2:
            display = cv2.cvtColor(display, cv2.COLOR_GRAY2BGR)

        total = f"/{self.total_frames}" if self.total_frames else ""
        text = f"Frame {analysis.frame_index}{total}  Count: {analysis.drowsy_count:+d}"
        cv2.putText(display, text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
        return display

    def show_cover(self, shape: Optional[Tuple[int, ...]] = None) -> np.ndarray:
        """Replace the live view with a blank frame."""
        shape = shape or self.last_shape or (720, 1280, 3)
        height, width = shape[:2]
        cover = np.zeros((height, width, 3), dtype=np.uint8)

        if self.is_initialized:
            cv2.imshow(self.window_name, cover)
            self._poll_key()
        return cover

    def render_verdict(self, verdict: DrowsinessVerdict,
                       shape: Optional[Tuple[int, ...]] = None) -> np.ndarray:
        """Blank cover frame with the verdict text field."""
        shape = shape or self.last_shape or (720, 1280, 3)
        height, width = shape[:2]
        cover = np.zeros((height, width, 3), dtype=np.uint8)

        color = self.colors.get(verdict, (255, 255, 255))
        cv2.putText(cover, verdict.value, (20, height // 2),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.5, color, 3)
        return cover

    def show_verdict(self, verdict: DrowsinessVerdict, wait_ms: int = 0) -> int:
        """
        Show the verdict on the cover frame.

        Args:
            verdict: Session verdict
            wait_ms: Milliseconds to wait for a key (0 waits indefinitely)

        Returns:
            Key code pressed
        """
        print(verdict.value)
        self.logger.info(f"Verdict: {verdict.value}")

        if not self.is_initialized:
            return -1

        cv2.imshow(self.window_name, self.render_verdict(verdict))
        return cv2.waitKey(wait_ms) & 0xFF

    def _poll_key(self) -> int:
        key = cv2.waitKey(1) & 0xFF
        if key != 255 and key in self.key_callbacks:
            self.key_callbacks[key]()
        return key

    def add_key_callback(self, key: int, callback: Callable[[], None]):
        """
        Add keyboard callback.

        Args:
            key: Key code (e.g., ord('q'))
            callback: Function to call when key is pressed
        """
        self.key_callbacks[key] = callback

    def cleanup(self):
        """Clean up GUI resources."""
        if self.is_initialized:
            cv2.destroyWindow(self.window_name)
        self.is_initialized = False

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
