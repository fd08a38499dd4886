"""
Calibration module - Projection matrices loading
"""

from .load_calibration import (
    ProjectionCalibration,
    default_calibration,
    load_calibration,
    load_calibration_from_config,
    save_calibration,
)


__all__ = [
    'ProjectionCalibration',
    'default_calibration',
    'load_calibration',
    'load_calibration_from_config',
    'save_calibration',
]
