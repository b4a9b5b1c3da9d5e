import logging

import cv2
import numpy as np

log = logging.getLogger(__name__)


def simplify_contour(contour, tolerance=0.1):
    """
    Simplify contour while preserving detail
    tolerance: lower value keeps more points
    """
    epsilon = tolerance * cv2.arcLength(contour, True) / 200.0
    return cv2.approxPolyDP(contour, epsilon, True)


def to_rgb(frame):
    """Drop the alpha channel of an RGBA frame; RGB frames pass through"""
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Expected an RGB or RGBA frame, got shape {frame.shape}")
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_RGBA2RGB)
    return frame


def segment_wood_color(frame, hsv_ranges):
    """
    Mask pixels whose HSV color falls inside any of the given ranges.

    frame: RGB or RGBA uint8 image
    hsv_ranges: iterable of (h_low, h_high, s_low, s_high, v_low, v_high),
        hue in OpenCV's 0-180 scale, bounds inclusive
    Returns a uint8 mask, 255 for wood-colored pixels.
    """
    height, width = frame.shape[:2]
    if height == 0 or width == 0:
        return np.zeros((height, width), dtype=np.uint8)

    hsv_image = cv2.cvtColor(to_rgb(frame), cv2.COLOR_RGB2HSV)

    mask = np.zeros((height, width), dtype=np.uint8)
    for h_low, h_high, s_low, s_high, v_low, v_high in hsv_ranges:
        lower_bound = np.array([h_low, s_low, v_low], dtype=np.uint8)
        upper_bound = np.array([h_high, s_high, v_high], dtype=np.uint8)
        mask = cv2.bitwise_or(mask, cv2.inRange(hsv_image, lower_bound, upper_bound))

    log.debug("Segmented %d wood-colored pixels out of %d", cv2.countNonZero(mask), height * width)
    return mask


def refine_mask(mask, open_kernel_size=5, close_kernel_size=9):
    """
    Opening removes specks smaller than the open kernel, then closing fills
    holes and bridges nearby fragments of the same trunk.
    """
    if mask.size == 0:
        return mask

    open_kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (open_kernel_size, open_kernel_size))
    close_kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (close_kernel_size, close_kernel_size))

    refined = cv2.morphologyEx(mask, cv2.MORPH_OPEN, open_kernel)
    refined = cv2.morphologyEx(refined, cv2.MORPH_CLOSE, close_kernel)
    return refined


def find_external_contours(mask):
    """Outer boundaries only; holes inside a region are ignored"""
    if mask.size == 0 or cv2.countNonZero(mask) == 0:
        return []
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return list(contours)


def select_trunk_contour(mask, min_area=1000):
    """
    Pick the largest external contour whose area reaches min_area.

    Ties keep the first contour found. Returns None when nothing qualifies.
    This assumes the trunk is the dominant wood-colored object in frame; a
    second trunk or a brown background object of similar size is not told apart.
    """
    best_contour = None
    best_area = 0.0

    contours = find_external_contours(mask)
    for contour in contours:
        area = abs(cv2.contourArea(contour))
        if area < min_area:
            continue
        if best_contour is None or area > best_area:
            best_contour = contour
            best_area = area

    log.debug("Found %d contours, selected area %.1f", len(contours), best_area)
    return best_contour


def bounding_box(contour):
    """Axis-aligned (x, y, width, height) of a contour"""
    x, y, w, h = cv2.boundingRect(contour)
    return int(x), int(y), int(w), int(h)


def draw_measurement_overlay(frame, outline, box, label, color=(0, 255, 0)):
    """Draw the trunk outline, its bounding box and a text label on a copy of frame"""
    overlay = to_rgb(frame).copy()
    if outline:
        points = np.array(outline, dtype=np.int32).reshape(-1, 1, 2)
        cv2.drawContours(overlay, [points], -1, color, 2)
    if box is not None:
        x, y, w, h = box
        cv2.rectangle(overlay, (x, y), (x + w, y + h), (255, 0, 0), 1)
        cv2.putText(overlay, label, (x, max(15, y - 8)),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1)
    return overlay
