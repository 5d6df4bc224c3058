"""
Tests for frame differencing primitives and the frame segmenter.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

from drowsiness_tracker.modules.frame_difference import (
    FrameSegmenter,
    FrameVote,
    segment_frames,
    to_grayscale,
    difference_image,
    threshold_difference,
    find_peak_difference,
    area_open,
    major_axis_lengths,
    overlay_mask
)


def blank(height=100, width=200, value=0):
    return np.full((height, width, 3), value, dtype=np.uint8)


def test_grayscale_of_gray_bgr_keeps_level():
    frame = blank(value=8)
    gray = to_grayscale(frame)
    assert gray.shape == (100, 200)
    assert gray.dtype == np.uint8
    assert np.all(gray == 8)


def test_grayscale_passes_2d_through():
    gray = np.arange(12, dtype=np.uint8).reshape(3, 4)
    assert to_grayscale(gray) is gray


def test_grayscale_rejects_bad_input():
    with pytest.raises(ValueError):
        to_grayscale(np.zeros((2, 2, 2, 2), dtype=np.uint8))
    with pytest.raises(ValueError):
        to_grayscale(np.zeros((4, 4, 2), dtype=np.uint8))
    with pytest.raises(ValueError):
        to_grayscale([[0, 1], [2, 3]])


def test_absolute_and_saturated_difference():
    reference = np.array([[200, 10]], dtype=np.uint8)
    current = np.array([[50, 60]], dtype=np.uint8)

    assert difference_image(reference, current, 'absolute').tolist() == [[150, 50]]
    # Brightening pixels clip to zero
    assert difference_image(reference, current, 'saturated').tolist() == [[150, 0]]


def test_difference_rejects_mismatched_frames():
    with pytest.raises(ValueError):
        difference_image(np.zeros((4, 4), np.uint8), np.zeros((4, 5), np.uint8))
    with pytest.raises(ValueError):
        difference_image(np.zeros((4, 4), np.uint8), np.zeros((4, 4), np.uint8), 'signed')


def test_threshold_is_strict():
    diff = np.array([[7, 8, 9]], dtype=np.uint8)
    assert threshold_difference(diff, 8).tolist() == [[False, False, True]]


def test_peak_difference_reports_all_locations():
    diff = np.zeros((5, 5), dtype=np.uint8)
    diff[1, 2] = 40
    diff[3, 4] = 40
    peak, locations = find_peak_difference(diff)
    assert peak == 40
    assert locations == [(1, 2), (3, 4)]


def test_area_open_keeps_components_at_min_area():
    mask = np.zeros((40, 40), dtype=bool)
    mask[0:7, 0:7] = True      # 49 pixels
    mask[20:25, 0:10] = True   # exactly 50 pixels
    mask[30:38, 30:38] = True  # 64 pixels

    opened = area_open(mask, min_area=50)

    assert not opened[0:7, 0:7].any()
    assert opened[20:25, 0:10].all()
    assert opened[30:38, 30:38].all()
    assert opened.sum() == 50 + 64


def test_area_open_connectivity():
    mask = np.zeros((20, 20), dtype=bool)
    mask[0:5, 0:5] = True
    mask[5:10, 5:10] = True  # touches the first block only at a corner

    assert area_open(mask, 50, connectivity=8).sum() == 50
    assert area_open(mask, 50, connectivity=4).sum() == 0


def test_area_open_empty_mask():
    mask = np.zeros((10, 10), dtype=bool)
    assert not area_open(mask, 50).any()


def test_major_axis_of_square_and_line():
    mask = np.zeros((150, 150), dtype=bool)
    mask[10:30, 10:30] = True
    mask[100, 20:120] = True

    lengths = sorted(major_axis_lengths(mask))

    assert lengths[0] == pytest.approx(40.0 / np.sqrt(3.0), rel=1e-6)
    assert lengths[1] == pytest.approx(200.0 / np.sqrt(3.0), rel=1e-3)


def test_overlay_mask_does_not_mutate_frame():
    frame = blank(10, 10, value=30)
    mask = np.zeros((10, 10), dtype=bool)
    mask[2:4, 2:4] = True

    result = overlay_mask(frame, mask, (0, 0, 255))

    assert np.all(frame == 30)
    assert result[2, 2].tolist() == [0, 0, 255]
    assert result[0, 0].tolist() == [30, 30, 30]


def test_overlay_mask_promotes_gray_frames():
    gray = np.full((6, 6), 100, dtype=np.uint8)
    mask = np.zeros((6, 6), dtype=bool)
    mask[0, 0] = True

    result = overlay_mask(gray, mask)

    assert result.shape == (6, 6, 3)
    assert result[0, 0].tolist() == [0, 0, 255]
    assert result[5, 5].tolist() == [100, 100, 100]


def test_identical_frames_vote_still():
    frame = blank(value=90)
    result = FrameSegmenter().segment(frame, frame.copy())

    assert result.vote is FrameVote.STILL
    assert result.blob_count == 0
    assert result.peak_difference == 0
    assert np.array_equal(result.highlighted, frame)


def test_long_bar_is_significant_change():
    reference = blank()
    current = blank()
    current[40:50, 20:170] = 255

    segmenter = FrameSegmenter(major_axis_threshold=100)
    result = segmenter.segment(reference, current)

    assert result.vote is FrameVote.SIGNIFICANT_CHANGE
    assert result.significant_change
    assert result.blob_count == 1
    assert result.significant_blobs[0] == pytest.approx(300.0 / np.sqrt(3.0), rel=1e-3)
    assert result.highlighted[45, 100].tolist() == [0, 0, 255]
    assert result.highlighted[0, 0].tolist() == [0, 0, 0]


def test_default_threshold_ignores_blobs_shorter_than_700_pixels():
    reference = blank()
    current = blank()
    current[40:50, 20:170] = 255

    result = FrameSegmenter().segment(reference, current)

    assert result.vote is FrameVote.STILL
    assert result.blob_count == 1
    # Blob is still highlighted even though it does not count
    assert result.highlighted[45, 100].tolist() == [0, 0, 255]


def test_small_blobs_and_faint_changes_are_ignored():
    reference = blank()
    current = blank()
    current[10:15, 10:15] = 255   # 25 pixel blob, removed by area opening
    current[60:90, 60:190] = 8    # large but not above the intensity cutoff

    result = FrameSegmenter(major_axis_threshold=1).segment(reference, current)

    assert result.vote is FrameVote.STILL
    assert result.blob_count == 0
    assert not result.mask.any()


def test_saturated_mode_only_sees_darkening():
    reference = blank()
    current = blank()
    current[40:50, 20:170] = 255  # brighter than the reference

    absolute = FrameSegmenter(major_axis_threshold=100, diff_mode='absolute')
    saturated = FrameSegmenter(major_axis_threshold=100, diff_mode='saturated')

    assert absolute.segment(reference, current).vote is FrameVote.SIGNIFICANT_CHANGE
    assert saturated.segment(reference, current).vote is FrameVote.STILL
    assert saturated.segment(current, reference).vote is FrameVote.SIGNIFICANT_CHANGE


def test_segmenter_rejects_mismatched_sizes():
    with pytest.raises(ValueError):
        FrameSegmenter().segment(blank(100, 200), blank(100, 201))


def test_segmenter_validates_configuration():
    with pytest.raises(ValueError):
        FrameSegmenter(diff_mode='relative')
    with pytest.raises(ValueError):
        FrameSegmenter(connectivity=6)


def test_from_config_reads_section():
    segmenter = FrameSegmenter.from_config({
        'intensity_threshold': 20,
        'min_blob_area': 10,
        'major_axis_threshold': 50,
        'diff_mode': 'saturated',
        'overlay_color': [255, 0, 0]
    })

    assert segmenter.intensity_threshold == 20
    assert segmenter.min_blob_area == 10
    assert segmenter.major_axis_threshold == 50
    assert segmenter.diff_mode == 'saturated'
    assert segmenter.overlay_color == (255, 0, 0)


def test_segment_frames_returns_raw_vote():
    reference = blank()
    current = blank()
    current[40:50, 20:170] = 255

    highlighted, vote = segment_frames(reference, current, major_axis_threshold=100)
    assert vote == -1
    assert highlighted.shape == current.shape

    _, vote = segment_frames(reference, reference)
    assert vote == 1


def test_grayscale_rejects_non_uint8_frames():
    with pytest.raises(ValueError):
        to_grayscale(np.full((4, 4, 3), 0.5, dtype=np.float32))
    with pytest.raises(ValueError):
        to_grayscale(np.zeros((4, 4), dtype=np.uint16))


def test_grayscale_rejects_single_channel_stack():
    with pytest.raises(ValueError):
        to_grayscale(np.zeros((4, 4, 1), dtype=np.uint8))


def test_segmenter_rejects_float_frames():
    reference = np.zeros((20, 20, 3), dtype=np.float64)
    with pytest.raises(ValueError):
        FrameSegmenter().segment(reference, reference)
