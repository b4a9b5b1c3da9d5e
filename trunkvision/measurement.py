"""Pixel-to-physical conversion and lumber estimation for a detected trunk.

The trunk is approximated as a right circular cylinder whose diameter is the
bounding-box width and whose height is the bounding-box height. Trunks that
are not round in cross-section, or lean in the frame, come out high.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import DEFAULT_PIPELINE_SETTINGS


class NoDetection:
    """Result of a run in which no trunk-sized region was found"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "NO_DETECTION"

    def to_dict(self):
        return {'detected': False}


NO_DETECTION = NoDetection()


@dataclass(frozen=True)
class Measurement:
    diameter_cm: float
    height_cm: float
    volume_cm3: float
    weight_kg: Optional[float]
    lumber_count: float
    bounding_box: Tuple[int, int, int, int]
    calibrated: bool = False
    cm_per_pixel: float = 0.0
    outline: Tuple[Tuple[int, int], ...] = ()

    def summary(self):
        """Short human readable description, as shown in the preview"""
        text = (f"Diameter: {self.diameter_cm:.1f} cm, Height: {self.height_cm:.1f} cm, "
                f"Lumber: {self.lumber_count:.1f} pieces")
        if self.weight_kg is not None:
            text += f", Weight: {self.weight_kg:.1f} kg"
        if not self.calibrated:
            text += " (uncalibrated)"
        return text

    def to_dict(self):
        return {
            'detected': True,
            'diameter_cm': self.diameter_cm,
            'height_cm': self.height_cm,
            'volume_cm3': self.volume_cm3,
            'weight_kg': self.weight_kg,
            'lumber_count': self.lumber_count,
            'bounding_box': list(self.bounding_box),
            'calibrated': self.calibrated,
            'cm_per_pixel': self.cm_per_pixel,
        }


def cylinder_volume_cm3(diameter_cm, height_cm):
    radius_cm = diameter_cm / 2
    return math.pi * radius_cm ** 2 * height_cm


def lumber_pieces(volume_cm3, piece_volume_cm3=DEFAULT_PIPELINE_SETTINGS['lumber_piece_volume_cm3']):
    """Number of standard lumber pieces a volume yields, never negative"""
    return max(0.0, volume_cm3 / piece_volume_cm3)


def calculate_measurement(bounding_box, cm_per_pixel,
                          lumber_piece_volume_cm3=DEFAULT_PIPELINE_SETTINGS['lumber_piece_volume_cm3'],
                          wood_density_g_per_cm3=DEFAULT_PIPELINE_SETTINGS['wood_density_g_per_cm3'],
                          calibrated=False, outline=()):
    """
    Convert a trunk bounding box (x, y, width, height) in pixels into a Measurement.

    weight_kg is left as None when no wood density is given.
    """
    if cm_per_pixel <= 0:
        raise ValueError(f"cm_per_pixel must be positive, got {cm_per_pixel}")

    _, _, width_px, height_px = bounding_box
    diameter_cm = width_px * cm_per_pixel
    height_cm = height_px * cm_per_pixel
    volume_cm3 = cylinder_volume_cm3(diameter_cm, height_cm)

    weight_kg = None
    if wood_density_g_per_cm3 is not None:
        weight_kg = volume_cm3 * wood_density_g_per_cm3 / 1000

    return Measurement(
        diameter_cm=diameter_cm,
        height_cm=height_cm,
        volume_cm3=volume_cm3,
        weight_kg=weight_kg,
        lumber_count=lumber_pieces(volume_cm3, lumber_piece_volume_cm3),
        bounding_box=tuple(int(v) for v in bounding_box),
        calibrated=calibrated,
        cm_per_pixel=cm_per_pixel,
        outline=tuple(outline),
    )


def result_texts(result):
    """
    Label texts for the results panel, keyed by quantity.

    Every quantity gets a text so a missing value replaces, rather than
    keeps, what an earlier result showed.
    """
    if not result:
        return {
            'diameter': "Diameter: No tree detected",
            'height': "Height: -- cm",
            'weight': "Weight: -- kg",
            'lumber': "Lumber Estimate: -- pieces",
        }
    suffix = "" if result.calibrated else " *"
    weight = "Weight: -- kg"
    if result.weight_kg is not None:
        weight = f"Weight: {result.weight_kg:.1f} kg{suffix}"
    return {
        'diameter': f"Diameter: {result.diameter_cm:.1f} cm{suffix}",
        'height': f"Height: {result.height_cm:.1f} cm{suffix}",
        'weight': weight,
        'lumber': f"Lumber Estimate: {result.lumber_count:.1f} pieces{suffix}",
    }
