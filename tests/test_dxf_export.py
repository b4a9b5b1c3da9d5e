import ezdxf
import pytest

from trunkvision.calibration import Calibration
from trunkvision.measurement import NO_DETECTION
from trunkvision.pipeline import MeasurementSession, run_pipeline
from trunkvision.utils.dxf_export import BOX_LAYER, OUTLINE_LAYER, export_outline_dxf


def test_outline_and_box_written_in_cm(tmp_path, trunk_frame):
    measurement = run_pipeline(trunk_frame, Calibration(0.1))
    path = str(tmp_path / "trunk.dxf")

    export_outline_dxf(measurement, path)

    doc = ezdxf.readfile(path)
    polylines = doc.modelspace().query("LWPOLYLINE")
    layers = sorted(p.dxf.layer for p in polylines)
    assert layers == [BOX_LAYER, OUTLINE_LAYER]

    box = next(p for p in polylines if p.dxf.layer == BOX_LAYER)
    xs = [x for x, _ in box.get_points("xy")]
    ys = [y for _, y in box.get_points("xy")]
    assert box.closed
    assert min(xs) == pytest.approx(10.0)
    assert max(xs) == pytest.approx(30.0)
    assert max(ys) - min(ys) == pytest.approx(10.0)


def test_nothing_to_export(tmp_path):
    with pytest.raises(ValueError):
        export_outline_dxf(NO_DETECTION, str(tmp_path / "empty.dxf"))


def test_export_uses_scale_of_the_measurement(tmp_path, trunk_frame):
    session = MeasurementSession()
    session.calibration_manager.restore(0.1, True)
    measurement = session.measure(trunk_frame)
    # Recalibrating after the measurement must not rescale its export
    session.calibration_manager.restore(0.5, True)
    path = str(tmp_path / "trunk.dxf")

    export_outline_dxf(measurement, path)

    box = next(p for p in ezdxf.readfile(path).modelspace().query("LWPOLYLINE") if p.dxf.layer == BOX_LAYER)
    xs = [x for x, _ in box.get_points("xy")]
    assert min(xs) == pytest.approx(10.0)
    assert max(xs) == pytest.approx(30.0)
