"""
load_calibration.py

Utilities for loading the fixed camera / range-sensor projection matrices.

Matrices
--------
P_rect  – 3×4 rectified intrinsic projection of the camera.
R_rect  – rectifying rotation, stored as 4×4 (a 3×3 input is padded with an
          identity row/column).
RT      – range-sensor → camera extrinsic transform, stored as 4×4 (a 3×4
          input is completed with the row [0, 0, 0, 1]).

Supported file formats
----------------------
.npz  – NumPy archive saved with ``np.savez``.  Expected keys:
            'P_rect' (or 'P'), 'R_rect' (or 'R'), 'RT' and optionally
            'frame_rate'.

If no calibration file is configured the matrices are read inline from the
configuration dictionary; any matrix missing there falls back to the KITTI
sequence values the default configuration ships with.
"""

import numpy as np
from pathlib import Path
from dataclasses import dataclass
from typing import Dict, Optional


# KITTI 2011_09_26 camera 00 / Velodyne calibration
DEFAULT_P_RECT = np.array([
    [7.215377e+02, 0.000000e+00, 6.095593e+02, 0.000000e+00],
    [0.000000e+00, 7.215377e+02, 1.728540e+02, 0.000000e+00],
    [0.000000e+00, 0.000000e+00, 1.000000e+00, 0.000000e+00],
], dtype=np.float64)

DEFAULT_R_RECT = np.array([
    [9.999239e-01,  9.837760e-03, -7.445048e-03, 0.0],
    [-9.869795e-03, 9.999421e-01, -4.278459e-03, 0.0],
    [7.402527e-03,  4.351614e-03,  9.999631e-01, 0.0],
    [0.0,           0.0,           0.0,          1.0],
], dtype=np.float64)

DEFAULT_RT = np.array([
    [7.533745e-03, -9.999714e-01, -6.166020e-04, -4.069766e-03],
    [1.480249e-02,  7.280733e-04, -9.998902e-01, -7.631618e-02],
    [9.998621e-01,  7.523790e-03,  1.480755e-02, -2.717806e-01],
    [0.0,           0.0,           0.0,           1.0],
], dtype=np.float64)

DEFAULT_FRAME_RATE = 10.0


# ===========================================================================
# Data container
# ===========================================================================

@dataclass
class ProjectionCalibration:
    """
    Container for the projection chain ``P_rect · R_rect · RT`` and the
    frame rate of the sequence.

    Attributes:
        P_rect:     3×4 intrinsic projection matrix.
        R_rect:     4×4 rectifying rotation.
        RT:         4×4 extrinsic transform.
        frame_rate: Frames per second of the sensor sequence.
    """
    P_rect:     np.ndarray
    R_rect:     np.ndarray
    RT:         np.ndarray
    frame_rate: float = DEFAULT_FRAME_RATE

    def __post_init__(self):
        """Validate and normalise shapes after construction."""
        self.P_rect = np.asarray(self.P_rect, dtype=np.float64)
        self.R_rect = _to_homogeneous_4x4(np.asarray(self.R_rect, dtype=np.float64), 'R_rect')
        self.RT     = _to_homogeneous_4x4(np.asarray(self.RT, dtype=np.float64), 'RT')

        if self.P_rect.shape != (3, 4):
            raise ValueError(f"P_rect must be (3, 4), got {self.P_rect.shape}")
        if not self.frame_rate or self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {self.frame_rate}")
        self.frame_rate = float(self.frame_rate)

    @property
    def projection_matrix(self) -> np.ndarray:
        """Combined 3×4 matrix ``P_rect · R_rect · RT``."""
        return self.P_rect @ self.R_rect @ self.RT

    @property
    def dt(self) -> float:
        """Time between two consecutive frames (s)."""
        return 1.0 / self.frame_rate


def _to_homogeneous_4x4(matrix: np.ndarray, name: str) -> np.ndarray:
    """Pad a 3×3 or 3×4 matrix to 4×4; pass a 4×4 matrix through."""
    if matrix.shape == (4, 4):
        return matrix
    padded = np.eye(4, dtype=np.float64)
    if matrix.shape == (3, 3):
        padded[:3, :3] = matrix
    elif matrix.shape == (3, 4):
        padded[:3, :] = matrix
    else:
        raise ValueError(f"{name} must be (3, 3), (3, 4) or (4, 4), got {matrix.shape}")
    return padded


def default_calibration() -> ProjectionCalibration:
    """Calibration of the KITTI sequence used by the default configuration."""
    return ProjectionCalibration(
        P_rect=DEFAULT_P_RECT.copy(),
        R_rect=DEFAULT_R_RECT.copy(),
        RT=DEFAULT_RT.copy(),
        frame_rate=DEFAULT_FRAME_RATE,
    )


# ===========================================================================
# Core loading function
# ===========================================================================

def load_calibration(
    calibration_path: str,
    frame_rate: Optional[float] = None,
) -> ProjectionCalibration:
    """
    Load projection matrices from an .npz calibration archive.

    Args:
        calibration_path: Path to the .npz archive.
        frame_rate:       Overrides the frame rate stored in the archive.

    Returns:
        ProjectionCalibration instance with float64 arrays.

    Raises:
        FileNotFoundError: If the calibration file does not exist.
        ValueError:        If a required matrix is missing from the archive.
    """
    calib_file = Path(calibration_path)
    if not calib_file.exists():
        raise FileNotFoundError(f"Calibration file not found: {calibration_path}")

    with np.load(calibration_path) as data:
        files = list(data.files)

        def pick(*names):
            for name in names:
                if name in files:
                    return np.array(data[name], dtype=np.float64)
            return None

        P_rect = pick('P_rect', 'P')
        R_rect = pick('R_rect', 'R')
        RT     = pick('RT')
        stored_rate = pick('frame_rate')

    missing = [name for name, value in (('P_rect', P_rect), ('R_rect', R_rect), ('RT', RT))
               if value is None]
    if missing:
        raise ValueError(
            f"Could not locate {missing} in {calibration_path}. Keys found: {files}"
        )

    if frame_rate is None:
        frame_rate = float(stored_rate) if stored_rate is not None else DEFAULT_FRAME_RATE

    return ProjectionCalibration(P_rect=P_rect, R_rect=R_rect, RT=RT, frame_rate=frame_rate)


def save_calibration(calibration: ProjectionCalibration, output_path: str) -> None:
    """Write a calibration to an .npz archive readable by ``load_calibration``."""
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    np.savez(
        output_file,
        P_rect=calibration.P_rect,
        R_rect=calibration.R_rect,
        RT=calibration.RT,
        frame_rate=np.array(calibration.frame_rate),
    )


# ===========================================================================
# Config-driven loader
# ===========================================================================

def load_calibration_from_config(config: Dict) -> ProjectionCalibration:
    """
    Build a ProjectionCalibration from a configuration dictionary.

    If a calibration file is referenced under ``calibration.calibration_file``
    and exists on disk, it is loaded via ``load_calibration``. Otherwise the
    matrices are taken from the inline ``P_rect`` / ``R_rect`` / ``RT`` lists,
    with the KITTI defaults for any that are missing.

    Args:
        config: Top-level configuration dict (from calibration.yaml).

    Returns:
        ProjectionCalibration instance.
    """
    calib_cfg = config.get('calibration', {}) or {}
    frame_rate = calib_cfg.get('frame_rate')

    calib_file = calib_cfg.get('calibration_file')
    if calib_file and Path(calib_file).exists():
        return load_calibration(calib_file, frame_rate)

    if calib_file:
        print(f"Warning: calibration file {calib_file} not found "
              f"– using inline matrices.")

    def matrix(key, default):
        value = calib_cfg.get(key)
        return np.array(value, dtype=np.float64) if value is not None else default.copy()

    return ProjectionCalibration(
        P_rect=matrix('P_rect', DEFAULT_P_RECT),
        R_rect=matrix('R_rect', DEFAULT_R_RECT),
        RT=matrix('RT', DEFAULT_RT),
        frame_rate=frame_rate if frame_rate is not None else DEFAULT_FRAME_RATE,
    )
