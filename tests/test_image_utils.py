import numpy as np

from trunkvision.config import HSV_PRESETS
from trunkvision.utils.image_utils import (
    bounding_box,
    draw_measurement_overlay,
    find_external_contours,
    refine_mask,
    segment_wood_color,
    select_trunk_contour,
)

from conftest import WOOD_RGB, make_frame, paint_rect


def test_segment_marks_wood_pixels_only(trunk_frame):
    mask = segment_wood_color(trunk_frame, HSV_PRESETS['two_band'])

    assert mask.shape == trunk_frame.shape[:2]
    assert mask.dtype == np.uint8
    assert mask[150, 200] == 255
    assert mask[10, 10] == 0
    assert np.count_nonzero(mask) == 200 * 100


def test_segment_all_background_is_empty(background_frame):
    mask = segment_wood_color(background_frame, HSV_PRESETS['two_band'])

    assert np.count_nonzero(mask) == 0


def test_second_band_catches_hue_wraparound():
    # Reddish brown, hue just below 180
    frame = paint_rect(make_frame(64, 64), 10, 10, 20, 20, color=(120, 40, 60))

    wide = segment_wood_color(frame, HSV_PRESETS['two_band'])
    narrow = segment_wood_color(frame, HSV_PRESETS['single_band'])

    assert wide[20, 20] == 255
    assert narrow[20, 20] == 0


def test_segment_accepts_rgba(trunk_frame):
    alpha = np.full(trunk_frame.shape[:2] + (1,), 255, dtype=np.uint8)
    rgba = np.concatenate([trunk_frame, alpha], axis=2)

    mask = segment_wood_color(rgba, HSV_PRESETS['two_band'])

    assert np.count_nonzero(mask) == 200 * 100


def test_segment_empty_frame_returns_empty_mask():
    frame = np.zeros((0, 0, 3), dtype=np.uint8)

    mask = segment_wood_color(frame, HSV_PRESETS['two_band'])

    assert mask.shape == (0, 0)


def test_refine_removes_specks_and_fills_holes():
    mask = np.zeros((200, 200), dtype=np.uint8)
    mask[50:150, 50:150] = 255
    mask[99:102, 99:102] = 0       # small hole inside the region
    mask[10:12, 10:12] = 255       # isolated speck

    refined = refine_mask(mask, 5, 9)

    assert refined[100, 100] == 255
    assert refined[10, 10] == 0
    assert refined[60, 60] == 255


def test_refine_passes_empty_mask_through():
    mask = np.zeros((50, 50), dtype=np.uint8)

    refined = refine_mask(mask, 5, 9)

    assert np.count_nonzero(refined) == 0


def test_select_single_region_returns_its_contour():
    mask = np.zeros((200, 200), dtype=np.uint8)
    mask[40:120, 30:90] = 255

    contour = select_trunk_contour(mask, min_area=1000)

    assert contour is not None
    assert bounding_box(contour) == (30, 40, 60, 80)


def test_select_prefers_largest_region():
    mask = np.zeros((300, 300), dtype=np.uint8)
    mask[10:60, 10:60] = 255        # 50x50
    mask[100:250, 100:200] = 255    # 100x150

    contour = select_trunk_contour(mask, min_area=1000)

    assert bounding_box(contour) == (100, 100, 100, 150)


def test_select_drops_regions_below_threshold():
    mask = np.zeros((200, 200), dtype=np.uint8)
    mask[10:30, 10:30] = 255

    assert select_trunk_contour(mask, min_area=1000) is None


def test_select_empty_mask_returns_none():
    mask = np.zeros((100, 100), dtype=np.uint8)

    assert select_trunk_contour(mask, min_area=0) is None


def test_select_ignores_holes_inside_region():
    mask = np.zeros((200, 200), dtype=np.uint8)
    mask[20:180, 20:180] = 255
    mask[60:140, 60:140] = 0

    contour = select_trunk_contour(mask, min_area=1000)

    assert bounding_box(contour) == (20, 20, 160, 160)


def test_overlay_draws_on_a_copy(trunk_frame):
    original = trunk_frame.copy()
    outline = ((100, 100), (299, 100), (299, 199), (100, 199))

    overlay = draw_measurement_overlay(trunk_frame, outline, (100, 100, 200, 100), "20.0 cm")

    assert np.array_equal(trunk_frame, original)
    assert overlay.shape == trunk_frame.shape
    assert not np.array_equal(overlay, original)
    assert tuple(overlay[150, 200]) == WOOD_RGB


def test_area_equal_to_threshold_is_kept():
    mask = np.zeros((100, 100), dtype=np.uint8)
    mask[20:46, 10:51] = 255    # 41x26 pixels, polygon area 40x25

    assert bounding_box(select_trunk_contour(mask, min_area=1000)) == (10, 20, 41, 26)
    assert select_trunk_contour(mask, min_area=1001) is None


def test_equal_areas_keep_first_contour_found():
    mask = np.zeros((200, 300), dtype=np.uint8)
    mask[20:70, 20:70] = 255
    mask[120:170, 200:250] = 255
    contours = find_external_contours(mask)
    assert len(contours) == 2

    selected = select_trunk_contour(mask, min_area=100)

    assert bounding_box(selected) == bounding_box(contours[0])
