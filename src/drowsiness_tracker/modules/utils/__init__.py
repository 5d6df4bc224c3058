"""
Shared capture utilities.
"""

from .camera_utils import CameraManager, list_cameras

__all__ = [
    'CameraManager',
    'list_cameras'
]
