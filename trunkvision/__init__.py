"""Trunk diameter, height and lumber yield from a single camera frame."""

from .calibration import (
    Calibration,
    CalibrationError,
    CalibrationManager,
    CalibrationState,
    InvalidCalibrationInput,
)
from .config import HSV_PRESETS, ConfigError, PipelineConfig
from .measurement import NO_DETECTION, Measurement, NoDetection, calculate_measurement
from .pipeline import MeasurementSession, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "Calibration",
    "CalibrationError",
    "CalibrationManager",
    "CalibrationState",
    "InvalidCalibrationInput",
    "HSV_PRESETS",
    "ConfigError",
    "PipelineConfig",
    "NO_DETECTION",
    "Measurement",
    "NoDetection",
    "calculate_measurement",
    "MeasurementSession",
    "run_pipeline",
]
