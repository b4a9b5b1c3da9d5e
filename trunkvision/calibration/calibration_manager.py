"""Two-point pixel-to-centimeter calibration.

The user starts a cycle with the physical length of a reference object, then
clicks its two ends on the frame. The scale is the reference length divided by
the pixel distance between the clicks.
"""

import enum
import logging
import math
from dataclasses import dataclass

from ..config import DEFAULT_CM_PER_PIXEL

log = logging.getLogger(__name__)


class CalibrationError(ValueError):
    """Base class for calibration problems"""


class InvalidCalibrationInput(CalibrationError):
    """Reference length is not positive or the two points coincide"""


class CalibrationState(enum.Enum):
    IDLE = "idle"
    AWAITING_FIRST_POINT = "awaiting_first_point"
    AWAITING_SECOND_POINT = "awaiting_second_point"


@dataclass(frozen=True)
class Calibration:
    """Scale factor handed to each pipeline run.

    Until ``calibrated`` is True the scale is a placeholder and the resulting
    numbers are not physical measurements.
    """

    cm_per_pixel: float = DEFAULT_CM_PER_PIXEL
    calibrated: bool = False

    def __post_init__(self):
        if not self.cm_per_pixel > 0:
            raise InvalidCalibrationInput(f"cm_per_pixel must be positive, got {self.cm_per_pixel}")

    @property
    def pixels_per_cm(self):
        return 1.0 / self.cm_per_pixel

    def to_dict(self):
        return {'calibrated': self.calibrated, 'cm_per_pixel': self.cm_per_pixel}


class CalibrationManager:
    def __init__(self, calibration=None):
        self.calibration = calibration or Calibration()
        self.state = CalibrationState.IDLE
        self.reference_length_cm = None
        self.points = []

    @property
    def in_progress(self):
        return self.state is not CalibrationState.IDLE

    def begin_calibration(self, reference_length_cm):
        """Start a new cycle; any pending points are discarded"""
        if self.in_progress:
            log.info("Restarting calibration, discarding %d pending point(s)", len(self.points))
        self.reference_length_cm = reference_length_cm
        self.points = []
        self.state = CalibrationState.AWAITING_FIRST_POINT
        log.info("Calibration started with reference length %s cm", reference_length_cm)

    def report_point(self, x, y):
        """
        Record a clicked point in frame pixel coordinates.

        Returns the new Calibration once the second point completes the cycle,
        None otherwise. Raises InvalidCalibrationInput when the cycle cannot
        produce a scale; the previous calibration is then kept.
        """
        if self.state is CalibrationState.IDLE:
            log.debug("Ignoring point (%s, %s): no calibration in progress", x, y)
            return None

        self.points.append((float(x), float(y)))
        if self.state is CalibrationState.AWAITING_FIRST_POINT:
            self.state = CalibrationState.AWAITING_SECOND_POINT
            return None

        (x1, y1), (x2, y2) = self.points
        pixel_distance = math.hypot(x2 - x1, y2 - y1)
        reference_length_cm = self.reference_length_cm
        self._finish()

        try:
            valid = reference_length_cm > 0 and pixel_distance > 0
        except TypeError:
            valid = False
        if not valid:
            log.warning("Invalid calibration: reference %s cm over %.2f pixels",
                        reference_length_cm, pixel_distance)
            raise InvalidCalibrationInput(
                f"Cannot calibrate {reference_length_cm} cm over {pixel_distance:.2f} pixels")

        self.calibration = Calibration(cm_per_pixel=reference_length_cm / pixel_distance, calibrated=True)
        log.info("Calibrated: %.2f pixels = %.2f cm, 1 pixel = %.4f cm",
                 pixel_distance, reference_length_cm, self.calibration.cm_per_pixel)
        return self.calibration

    def cancel(self):
        if self.in_progress:
            log.info("Calibration cancelled")
        self._finish()

    def reset(self):
        """Back to the default placeholder scale"""
        self._finish()
        self.calibration = Calibration()
        log.info("Calibration reset to default %.4f cm/pixel", self.calibration.cm_per_pixel)

    def restore(self, cm_per_pixel, calibrated=True):
        """Reinstate a previously saved scale"""
        self.calibration = Calibration(cm_per_pixel=float(cm_per_pixel), calibrated=bool(calibrated))
        return self.calibration

    def calibration_state(self):
        return self.calibration.to_dict()

    def _finish(self):
        self.state = CalibrationState.IDLE
        self.reference_length_cm = None
        self.points = []
