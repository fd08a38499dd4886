"""
Projector - Proiezione dei punti del sensore di distanza sul piano immagine.
"""

import numpy as np
from typing import Sequence, Tuple

from ttc_fusion.calibration.load_calibration import ProjectionCalibration
from ttc_fusion.fusion.data_structures import RangePoint


class Projector:
    """
    Maps range-sensor points to pixel coordinates through ``P_rect · R_rect · RT``.

    The perspective divide is not guarded: a point whose third homogeneous
    coordinate is zero projects to non-finite pixel coordinates, which no
    rectangle contains.
    """

    def __init__(self, calibration: ProjectionCalibration):
        """
        Args:
            calibration: Fixed projection matrices of the sensor rig.
        """
        self.calibration = calibration
        self.projection_matrix = calibration.projection_matrix

    def project(self, point: RangePoint) -> Tuple[float, float]:
        """
        Project a single point.

        Args:
            point: Range point in sensor coordinates.

        Returns:
            (u, v) pixel coordinates.
        """
        X = np.array([point.x, point.y, point.z, 1.0], dtype=np.float64)
        Y = self.projection_matrix @ X

        with np.errstate(divide='ignore', invalid='ignore'):
            u = Y[0] / Y[2]
            v = Y[1] / Y[2]

        return float(u), float(v)

    def project_points(self, points: Sequence[RangePoint]) -> np.ndarray:
        """
        Vectorised version of ``project``.

        Args:
            points: Range points in sensor coordinates.

        Returns:
            Array (N, 2) with (u, v) per point, in input order.
        """
        if len(points) == 0:
            return np.zeros((0, 2), dtype=np.float64)

        # Coordinate omogenee (4, N)
        X = np.ones((4, len(points)), dtype=np.float64)
        X[0] = [p.x for p in points]
        X[1] = [p.y for p in points]
        X[2] = [p.z for p in points]

        Y = self.projection_matrix @ X

        with np.errstate(divide='ignore', invalid='ignore'):
            uv = Y[:2] / Y[2]

        return uv.T
