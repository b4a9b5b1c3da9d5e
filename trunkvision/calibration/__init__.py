from .calibration_manager import (
    Calibration,
    CalibrationError,
    CalibrationManager,
    CalibrationState,
    InvalidCalibrationInput,
)

__all__ = [
    "Calibration",
    "CalibrationError",
    "CalibrationManager",
    "CalibrationState",
    "InvalidCalibrationInput",
]
