import numpy as np
import pytest

# RGB(139, 90, 43) is HSV (15, 176, 139) in OpenCV units, inside the default wood band
WOOD_RGB = (139, 90, 43)
BACKGROUND_RGB = (255, 255, 255)


def make_frame(width=640, height=480, color=BACKGROUND_RGB):
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :] = color
    return frame


def paint_rect(frame, x, y, w, h, color=WOOD_RGB):
    frame[y:y + h, x:x + w] = color
    return frame


@pytest.fixture
def background_frame():
    return make_frame()


@pytest.fixture
def trunk_frame():
    """A 200x100 wood-brown rectangle with its top-left corner at (100, 100)"""
    return paint_rect(make_frame(), 100, 100, 200, 100)
