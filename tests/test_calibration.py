import pytest

from trunkvision.calibration import (
    Calibration,
    CalibrationManager,
    CalibrationState,
    InvalidCalibrationInput,
)
from trunkvision.config import DEFAULT_CM_PER_PIXEL


def test_default_is_uncalibrated_placeholder():
    manager = CalibrationManager()

    assert manager.calibration_state() == {'calibrated': False, 'cm_per_pixel': DEFAULT_CM_PER_PIXEL}
    assert manager.state is CalibrationState.IDLE


def test_two_points_set_the_scale():
    manager = CalibrationManager()
    manager.begin_calibration(50)
    assert manager.state is CalibrationState.AWAITING_FIRST_POINT

    assert manager.report_point(0, 0) is None
    assert manager.state is CalibrationState.AWAITING_SECOND_POINT

    calibration = manager.report_point(100, 0)

    assert calibration.cm_per_pixel == pytest.approx(0.5)
    assert calibration.calibrated
    assert manager.calibration is calibration
    assert manager.state is CalibrationState.IDLE


def test_diagonal_distance():
    manager = CalibrationManager()
    manager.begin_calibration(10)
    manager.report_point(0, 0)

    assert manager.report_point(30, 40).cm_per_pixel == pytest.approx(10 / 50)


def test_identical_points_keep_previous_scale():
    manager = CalibrationManager(Calibration(0.25, calibrated=True))
    manager.begin_calibration(30)
    manager.report_point(12, 34)

    with pytest.raises(InvalidCalibrationInput):
        manager.report_point(12, 34)

    assert manager.calibration_state() == {'calibrated': True, 'cm_per_pixel': 0.25}
    assert manager.state is CalibrationState.IDLE


@pytest.mark.parametrize("reference", [0, -5])
def test_non_positive_reference_is_rejected(reference):
    manager = CalibrationManager()
    manager.begin_calibration(reference)
    manager.report_point(0, 0)

    with pytest.raises(InvalidCalibrationInput):
        manager.report_point(10, 0)

    assert not manager.calibration.calibrated


def test_restart_discards_pending_point():
    manager = CalibrationManager()
    manager.begin_calibration(10)
    manager.report_point(0, 0)

    manager.begin_calibration(20)
    assert manager.state is CalibrationState.AWAITING_FIRST_POINT
    manager.report_point(100, 100)
    calibration = manager.report_point(100, 140)

    assert calibration.cm_per_pixel == pytest.approx(0.5)


def test_point_while_idle_is_ignored():
    manager = CalibrationManager()

    assert manager.report_point(5, 5) is None
    assert manager.state is CalibrationState.IDLE
    assert manager.points == []


def test_cancel_and_reset():
    manager = CalibrationManager(Calibration(0.3, calibrated=True))
    manager.begin_calibration(10)
    manager.report_point(1, 1)

    manager.cancel()
    assert not manager.in_progress
    assert manager.calibration.cm_per_pixel == 0.3

    manager.reset()
    assert manager.calibration_state() == {'calibrated': False, 'cm_per_pixel': DEFAULT_CM_PER_PIXEL}


def test_restore_saved_calibration():
    manager = CalibrationManager()

    manager.restore(0.42, True)

    assert manager.calibration_state() == {'calibrated': True, 'cm_per_pixel': 0.42}
    with pytest.raises(InvalidCalibrationInput):
        manager.restore(0)


def test_calibration_value_object():
    calibration = Calibration(0.5)

    assert calibration.pixels_per_cm == pytest.approx(2.0)
    with pytest.raises(InvalidCalibrationInput):
        Calibration(-1.0)
