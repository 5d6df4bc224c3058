"""
Camera utilities for webcam and video file capture.
"""

import cv2
import numpy as np
import time
from typing import Optional, Tuple, Dict, Any, List, Union
import logging

logger = logging.getLogger(__name__)


class CameraManager:
    """
    Camera manager that hands out single snapshots from a webcam or video file.
    """

    def __init__(
        self,
        camera_id: Union[int, str] = 0,
        resolution: Tuple[int, int] = (1280, 720),
        fps: float = 30.0,
        warmup_frames: int = 10
    ):
        """
        Initialize camera manager.

        Args:
            camera_id: Camera device ID or path to a video file
            resolution: Requested resolution (width, height), devices only
            fps: Requested frames per second, devices only
            warmup_frames: Maximum reads attempted before giving up on a device
        """
        self.camera_id = camera_id
        self.requested_resolution = resolution
        self.fps = fps
        self.warmup_frames = warmup_frames

        self.cap = None
        self.is_running = False

        # Statistics
        self.frames_captured = 0
        self.read_failures = 0
        self.start_time = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], camera_id: Optional[Union[int, str]] = None) -> 'CameraManager':
        """Build a camera manager from the 'camera' config section."""
        return cls(
            camera_id=config.get('device_id', 0) if camera_id is None else camera_id,
            resolution=(config.get('width', 1280), config.get('height', 720)),
            fps=config.get('fps', 30.0),
            warmup_frames=config.get('warmup_frames', 10)
        )

    @property
    def is_file(self) -> bool:
        return isinstance(self.camera_id, str)

    def start(self) -> bool:
        """Open the capture source."""
        try:
            self.cap = cv2.VideoCapture(self.camera_id)

            if not self.cap.isOpened():
                logger.error(f"Failed to open camera {self.camera_id}")
                self.cap.release()
                self.cap = None
                return False

            if not self.is_file:
                # Some drivers ignore these
                self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.requested_resolution[0])
                self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.requested_resolution[1])
                self.cap.set(cv2.CAP_PROP_FPS, self.fps)

                if not self._warm_up():
                    logger.error(f"Camera {self.camera_id} opened but returned no frames")
                    self.cap.release()
                    self.cap = None
                    return False

            self.is_running = True
            self.start_time = time.time()
            self.frames_captured = 0
            self.read_failures = 0

            width, height = self.resolution
            logger.info(f"Camera {self.camera_id} started: {width}x{height}")
            return True

        except cv2.error as e:
            logger.error(f"Error starting camera: {e}")
            return False

    def _warm_up(self) -> bool:
        """Read until the device delivers a frame."""
        for _ in range(max(1, self.warmup_frames)):
            ret, _frame = self.cap.read()
            if ret:
                return True
            time.sleep(0.05)
        return False

    def stop(self):
        """Release the capture source."""
        self.is_running = False

        if self.cap:
            self.cap.release()
            self.cap = None

        logger.info("Camera stopped")

    def snapshot(self) -> Tuple[np.ndarray, float]:
        """
        Acquire a single frame.

        Returns:
            Tuple of (BGR frame, acquisition timestamp)

        Raises:
            RuntimeError: If the camera is not started or the read fails
        """
        if not self.is_running or self.cap is None:
            raise RuntimeError("Camera is not started")

        ret, frame = self.cap.read()
        timestamp = time.time()

        if not ret or frame is None or frame.size == 0:
            self.read_failures += 1
            raise RuntimeError(f"Failed to read frame from camera {self.camera_id}")

        self.frames_captured += 1
        return frame, timestamp

    @property
    def resolution(self) -> Tuple[int, int]:
        """Resolution reported by the capture source (width, height)."""
        if self.cap is None:
            return self.requested_resolution
        return (
            int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        )

    def get_camera_info(self) -> Dict[str, Any]:
        """Get camera information."""
        info = {
            'camera_id': self.camera_id,
            'resolution': self.resolution,
            'is_running': self.is_running
        }
        if self.cap is not None:
            info['fps'] = float(self.cap.get(cv2.CAP_PROP_FPS))
            if self.is_file:
                info['frame_count'] = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))
        return info

    def get_statistics(self) -> Dict[str, Any]:
        """Get camera statistics."""
        if self.start_time is None:
            return {}

        elapsed_time = time.time() - self.start_time
        actual_fps = self.frames_captured / elapsed_time if elapsed_time > 0 else 0

        return {
            'frames_captured': self.frames_captured,
            'read_failures': self.read_failures,
            'elapsed_time': elapsed_time,
            'actual_fps': actual_fps,
            'target_fps': self.fps
        }

    def __enter__(self):
        if not self.start():
            raise RuntimeError(f"Could not open camera {self.camera_id}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


def list_cameras(probe_count: int = 4) -> List[int]:
    """
    Probe device indices and return those that can be opened.

    Args:
        probe_count: Number of indices to try, starting at 0
    """
    available = []
    for index in range(probe_count):
        cap = cv2.VideoCapture(index)
        try:
            if cap.isOpened():
                available.append(index)
        finally:
            cap.release()

    logger.info(f"Found {len(available)} camera(s): {available}")
    return available
