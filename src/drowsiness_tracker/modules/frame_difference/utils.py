"""
Image primitives for reference-frame differencing.

Grayscale conversion, difference images, intensity thresholding,
connected-component filtering and overlay compositing used by the
frame segmenter.
"""

import cv2
import numpy as np
from typing import List, Tuple, Dict, Any


DIFF_MODES = ('absolute', 'saturated')


def _validate_frame(frame: np.ndarray, name: str = 'frame') -> np.ndarray:
    """Check that a frame is a non-empty 2-D or 3-D pixel array."""
    if not isinstance(frame, np.ndarray):
        raise ValueError(f"{name} must be a numpy array, got {type(frame).__name__}")
    if frame.ndim not in (2, 3) or frame.size == 0:
        raise ValueError(f"{name} must be a non-empty 2-D or 3-D array, got shape {frame.shape}")
    return frame


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    """
    Convert a BGR frame to an 8-bit grayscale image.

    Args:
        frame: BGR (HxWx3), BGRA (HxWx4) or grayscale (HxW) image

    Returns:
        Grayscale image (HxW, uint8)
    """
    frame = _validate_frame(frame)

    if frame.dtype != np.uint8:
        raise ValueError(f"Expected an 8-bit frame, got dtype {frame.dtype}")

    if frame.ndim == 2:
        return frame

    channels = frame.shape[2]
    if channels == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)

    raise ValueError(f"Unsupported number of channels: {channels}")


def difference_image(reference_gray: np.ndarray, current_gray: np.ndarray,
                     mode: str = 'absolute') -> np.ndarray:
    """
    Compute the difference between two grayscale images.

    Args:
        reference_gray: Reference grayscale image
        current_gray: Current grayscale image
        mode: 'absolute' for |ref - cur|, 'saturated' for max(ref - cur, 0)

    Returns:
        Difference image (uint8)
    """
    if reference_gray.shape != current_gray.shape:
        raise ValueError(
            f"Frame size mismatch: reference {reference_gray.shape} vs current {current_gray.shape}"
        )

    if mode == 'absolute':
        return cv2.absdiff(reference_gray, current_gray)
    elif mode == 'saturated':
        # uint8 subtraction clips negative values at zero
        return cv2.subtract(reference_gray, current_gray)

    raise ValueError(f"Unknown difference mode: {mode}")


def threshold_difference(diff: np.ndarray, threshold: int = 8) -> np.ndarray:
    """Return a boolean mask of pixels whose difference exceeds the threshold."""
    return diff > threshold


def find_peak_difference(diff: np.ndarray) -> Tuple[int, List[Tuple[int, int]]]:
    """
    Locate the strongest difference.

    Returns:
        Tuple of (peak value, list of (row, col) locations holding it)
    """
    peak = int(diff.max())
    rows, cols = np.nonzero(diff == peak)
    return peak, list(zip(rows.tolist(), cols.tolist()))


def label_regions(mask: np.ndarray, connectivity: int = 8) -> Dict[str, Any]:
    """
    Label connected components of a binary mask.

    Args:
        mask: Boolean or 0/1 mask
        connectivity: 4 or 8 pixel connectivity

    Returns:
        Dictionary with 'count' (background excluded), 'labels' image,
        'areas' and 'boxes' (x, y, w, h) per component
    """
    if connectivity not in (4, 8):
        raise ValueError(f"Connectivity must be 4 or 8, got {connectivity}")

    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(
        mask.astype(np.uint8), connectivity=connectivity
    )

    return {
        'count': num_labels - 1,
        'labels': labels,
        'areas': stats[1:, cv2.CC_STAT_AREA].astype(int),
        'boxes': stats[1:, :4].astype(int)
    }


def area_open(mask: np.ndarray, min_area: int = 50, connectivity: int = 8) -> np.ndarray:
    """
    Remove connected components smaller than min_area pixels.

    Returns:
        Boolean mask containing only components with at least min_area pixels
    """
    regions = label_regions(mask, connectivity)
    if regions['count'] == 0:
        return np.zeros(mask.shape, dtype=bool)

    keep = np.zeros(regions['count'] + 1, dtype=bool)
    keep[1:] = regions['areas'] >= min_area
    return keep[regions['labels']]


def major_axis_lengths(mask: np.ndarray, connectivity: int = 8) -> np.ndarray:
    """
    Major axis length of every connected component.

    The length is that of the ellipse sharing the component's normalized
    second central moments, with 1/12 added to the variances for unit pixels.

    Returns:
        Array of lengths, one per component in label order
    """
    regions = label_regions(mask, connectivity)
    labels = regions['labels']
    lengths = np.zeros(regions['count'], dtype=float)

    for i, (x, y, w, h) in enumerate(regions['boxes']):
        component = (labels[y:y + h, x:x + w] == i + 1).astype(np.uint8)
        moments = cv2.moments(component, binaryImage=True)
        area = moments['m00']

        uxx = moments['mu20'] / area + 1.0 / 12.0
        uyy = moments['mu02'] / area + 1.0 / 12.0
        uxy = moments['mu11'] / area

        common = np.sqrt((uxx - uyy) ** 2 + 4.0 * uxy ** 2)
        lengths[i] = 2.0 * np.sqrt(2.0) * np.sqrt(uxx + uyy + common)

    return lengths


def overlay_mask(frame: np.ndarray, mask: np.ndarray,
                 color: Tuple[int, int, int] = (0, 0, 255)) -> np.ndarray:
    """
    Burn a mask into a copy of the frame.

    Args:
        frame: BGR or grayscale frame
        mask: Boolean mask with the frame's height and width
        color: BGR color for masked pixels

    Returns:
        BGR image with masked pixels replaced by color
    """
    frame = _validate_frame(frame)
    if mask.shape != frame.shape[:2]:
        raise ValueError(f"Mask shape {mask.shape} does not match frame {frame.shape[:2]}")

    if frame.ndim == 2:
        result = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    elif frame.shape[2] == 4:
        result = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    else:
        result = frame.copy()

    result[mask.astype(bool)] = color
    return result
