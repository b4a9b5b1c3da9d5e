import json

import cv2

from trunkvision.__main__ import main

from conftest import make_frame


def _write_png(path, rgb_frame):
    cv2.imwrite(str(path), cv2.cvtColor(rgb_frame, cv2.COLOR_RGB2BGR))
    return str(path)


def test_measure_image(tmp_path, capsys, trunk_frame):
    image = _write_png(tmp_path / "trunk.png", trunk_frame)
    dxf = tmp_path / "trunk.dxf"

    code = main(["measure", image, "--cm-per-pixel", "0.1", "--dxf", str(dxf)])

    result = json.loads(capsys.readouterr().out)
    assert code == 0
    assert result['detected']
    assert result['calibrated']
    assert abs(result['diameter_cm'] - 20.0) < 1e-6
    assert dxf.exists()


def test_measure_background_reports_no_detection(tmp_path, capsys):
    image = _write_png(tmp_path / "empty.png", make_frame())

    code = main(["measure", image])

    assert code == 1
    assert json.loads(capsys.readouterr().out) == {'detected': False}


def test_missing_image(tmp_path):
    assert main(["measure", str(tmp_path / "missing.png")]) == 2


def test_bad_scale(tmp_path, trunk_frame):
    image = _write_png(tmp_path / "trunk.png", trunk_frame)

    assert main(["measure", image, "--cm-per-pixel", "-1"]) == 2


def test_malformed_settings_file(tmp_path, trunk_frame):
    settings_dir = tmp_path / "settings"
    settings_dir.mkdir()
    (settings_dir / "bad.json").write_text('{"pipeline": {"min_contour_area": "big"}}')
    image = _write_png(tmp_path / "trunk.png", trunk_frame)

    assert main(["measure", image, "--settings", "bad", "--settings-dir", str(settings_dir)]) == 2
