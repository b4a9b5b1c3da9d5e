"""Single-frame trunk measurement: segment, refine, select, measure."""

import logging
import threading

from .calibration import Calibration, CalibrationManager
from .config import PipelineConfig
from .measurement import NO_DETECTION, calculate_measurement
from .utils.image_utils import bounding_box, refine_mask, segment_wood_color, select_trunk_contour

log = logging.getLogger(__name__)


def detect_trunk(frame, config):
    """Return the selected trunk contour of a frame, or None"""
    mask = segment_wood_color(frame, config.hsv_ranges)
    mask = refine_mask(mask, config.open_kernel_size, config.close_kernel_size)
    return select_trunk_contour(mask, config.min_contour_area)


def run_pipeline(frame, calibration=None, config=None):
    """
    Measure the dominant trunk in one RGB/RGBA frame.

    Returns a Measurement, or NO_DETECTION when no region is large enough.
    Failures while processing the frame are logged and reported as
    NO_DETECTION so one bad frame does not stop a polling loop.
    """
    calibration = calibration or Calibration()
    config = config or PipelineConfig()

    try:
        contour = detect_trunk(frame, config)
        if contour is None:
            log.debug("No trunk detected")
            return NO_DETECTION

        outline = tuple((int(x), int(y)) for x, y in contour.reshape(-1, 2))
        measurement = calculate_measurement(
            bounding_box(contour),
            calibration.cm_per_pixel,
            lumber_piece_volume_cm3=config.lumber_piece_volume_cm3,
            wood_density_g_per_cm3=config.wood_density_g_per_cm3,
            calibrated=calibration.calibrated,
            outline=outline,
        )
    except Exception:
        log.exception("Error processing frame, reporting no detection")
        return NO_DETECTION

    log.debug("Detected: %s", measurement.summary())
    return measurement


class MeasurementSession:
    """
    Calibration and configuration for one camera session.

    measure() skips a run instead of queueing it when the previous one is
    still in progress.
    """

    def __init__(self, config=None, calibration_manager=None):
        self.config = config or PipelineConfig()
        self.calibration_manager = calibration_manager or CalibrationManager()
        self._busy = threading.Lock()

    @property
    def calibration(self):
        return self.calibration_manager.calibration

    def run_pipeline(self, frame):
        return run_pipeline(frame, self.calibration, self.config)

    def measure(self, frame):
        """Like run_pipeline, but returns None when a run is already in flight"""
        if not self._busy.acquire(blocking=False):
            log.debug("Previous measurement still running, skipping frame")
            return None
        try:
            return self.run_pipeline(frame)
        finally:
            self._busy.release()

    def begin_calibration(self, reference_length_cm):
        self.calibration_manager.begin_calibration(reference_length_cm)

    def report_point(self, x, y):
        return self.calibration_manager.report_point(x, y)

    def get_calibration_state(self):
        return self.calibration_manager.calibration_state()

    def update_config(self, **changes):
        """Replace settings; the new config is validated before it is used"""
        settings = self.config.to_dict()
        settings.update(changes)
        self.config = PipelineConfig.from_dict(settings)
        return self.config
