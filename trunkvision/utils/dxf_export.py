import logging

import ezdxf
from ezdxf import units
import numpy as np

from .image_utils import simplify_contour

log = logging.getLogger(__name__)

OUTLINE_LAYER = "TRUNK_OUTLINE"
BOX_LAYER = "TRUNK_BOX"


def _to_cm(points, cm_per_pixel):
    # DXF y grows upwards, image y grows downwards
    return [(x * cm_per_pixel, -y * cm_per_pixel) for x, y in points]


def export_outline_dxf(measurement, path, simplify_tolerance=0.1):
    """
    Write the trunk outline and bounding box of a Measurement to a DXF file,
    in centimeters, as closed polylines on separate layers. The scale is the
    one the measurement was taken with.
    """
    if not measurement:
        raise ValueError("Nothing to export: no trunk was detected")
    cm_per_pixel = measurement.cm_per_pixel
    if cm_per_pixel <= 0:
        raise ValueError(f"cm_per_pixel must be positive, got {cm_per_pixel}")

    doc = ezdxf.new()
    doc.units = units.CM
    doc.layers.add(OUTLINE_LAYER, color=3)
    doc.layers.add(BOX_LAYER, color=1)
    msp = doc.modelspace()

    if len(measurement.outline) >= 3:
        contour = np.array(measurement.outline, dtype=np.int32).reshape(-1, 1, 2)
        simplified = simplify_contour(contour, simplify_tolerance).reshape(-1, 2)
        msp.add_lwpolyline(_to_cm(simplified.tolist(), cm_per_pixel),
                           close=True, dxfattribs={'layer': OUTLINE_LAYER})

    x, y, w, h = measurement.bounding_box
    corners = [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
    msp.add_lwpolyline(_to_cm(corners, cm_per_pixel),
                       close=True, dxfattribs={'layer': BOX_LAYER})

    doc.saveas(path)
    log.info("DXF outline saved as %s", path)
    return path
