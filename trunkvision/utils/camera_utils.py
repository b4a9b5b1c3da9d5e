import logging

import cv2

log = logging.getLogger(__name__)

# Common resolutions to try
TEST_RESOLUTIONS = [
    (640, 480),    # VGA
    (800, 600),    # SVGA
    (1280, 720),   # HD
    (1920, 1080),  # Full HD
]


def build_camera_index_map(max_index=10):
    """Build a map of working camera indices to names"""
    camera_map = {}
    for index in range(max_index):
        cap = cv2.VideoCapture(index)
        try:
            if cap.isOpened():
                ret, _ = cap.read()
                if ret:
                    camera_map[index] = f"Camera {index}"
        finally:
            cap.release()
    log.debug("Found cameras: %s", camera_map)
    return camera_map


def get_camera_resolutions(camera_index):
    """Check which of the common resolutions the camera accepts"""
    supported_resolutions = []
    cap = cv2.VideoCapture(camera_index)
    try:
        if not cap.isOpened():
            log.warning("Failed to open camera %s", camera_index)
            return []

        for width, height in TEST_RESOLUTIONS:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

            # Read actual values
            actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

            if actual_width > 0 and actual_height > 0:
                resolution = (actual_width, actual_height)
                if resolution not in supported_resolutions:
                    supported_resolutions.append(resolution)
                    log.debug("Supported resolution: %dx%d", actual_width, actual_height)
    finally:
        cap.release()
    return supported_resolutions


class FrameSource:
    """
    A camera delivering RGB frames.

    Use as a context manager so the device is released on exit:

        with FrameSource(0, (640, 480)) as source:
            frame = source.get_frame()
    """

    def __init__(self, camera_index=0, resolution=None, capture_factory=cv2.VideoCapture):
        self.camera_index = camera_index
        self.resolution = resolution
        self._capture_factory = capture_factory
        self.cap = None

    @property
    def is_open(self):
        return self.cap is not None and self.cap.isOpened()

    def open(self):
        if self.is_open:
            return self
        cap = self._capture_factory(self.camera_index)
        if not cap.isOpened():
            cap.release()
            raise RuntimeError(f"Failed to open camera {self.camera_index}")

        if self.resolution:
            width, height = self.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        log.info("Opened camera %s at %dx%d", self.camera_index,
                 int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
        self.cap = cap
        return self

    def get_frame(self):
        """Snapshot the current frame as RGB, or None if the read failed"""
        if not self.is_open:
            return None
        ret, frame = self.cap.read()
        if not ret or frame is None:
            log.debug("Camera %s returned no frame", self.camera_index)
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            log.info("Released camera %s", self.camera_index)

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
