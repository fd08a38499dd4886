"""
region_clusterer.py

Groups range-sensor points by the detected 2D region their projection falls in.

Each point is projected into the image and tested against every region of
the frame. Regions are shrunk about their centre by ``shrink_factor`` first:
detector boxes are loose, and points near the box edges frequently belong to
the road or to a neighbouring object.

Assignment policy
-----------------
    exactly one enclosing region  → the point is appended to that region
    zero or several regions       → the point is discarded
"""

import numpy as np
from typing import Dict, List, Sequence

from ttc_fusion.fusion.projector import Projector
from ttc_fusion.fusion.data_structures import Frame, RangePoint, Region


class RegionClusterer:
    """
    Assigns range points to the single region that encloses their projection.
    """

    def __init__(self, projector: Projector, shrink_factor: float = 0.10,
                 verbose: bool = False):
        """
        Args:
            projector:     Projector built from the rig calibration.
            shrink_factor: Fraction of width/height trimmed from each region
                           before containment testing, in [0, 1).
            verbose:       Print per-frame assignment counts.

        Raises:
            ValueError: If shrink_factor is outside [0, 1).
        """
        if not 0.0 <= shrink_factor < 1.0:
            raise ValueError(f"shrink_factor must be in [0, 1), got {shrink_factor}")

        self.projector = projector
        self.shrink_factor = shrink_factor
        self.verbose = verbose

    @classmethod
    def from_config(cls, projector: Projector, config: Dict) -> 'RegionClusterer':
        """Build a clusterer from the ``clustering`` section of fusion_params.yaml."""
        cluster_cfg = config.get('clustering', {})
        return cls(
            projector,
            shrink_factor=cluster_cfg.get('shrink_factor', 0.10),
            verbose=config.get('verbose', False),
        )

    def cluster(self, regions: List[Region], range_points: Sequence[RangePoint]) -> int:
        """
        Append every unambiguously enclosed point to its region.

        Args:
            regions:      Regions of the frame (mutated in place).
            range_points: Range points of the same frame.

        Returns:
            Number of points assigned to a region.
        """
        if not regions or len(range_points) == 0:
            return 0

        shrunk = [region.roi.shrink(self.shrink_factor) for region in regions]
        uv = self.projector.project_points(range_points)

        assigned = 0
        for point, (u, v) in zip(range_points, uv):
            enclosing = [region for region, box in zip(regions, shrunk)
                         if box.contains(u, v)]

            if len(enclosing) == 1:
                enclosing[0].range_points.append(point)
                assigned += 1

        if self.verbose:
            print(f"[RegionClusterer] {assigned}/{len(range_points)} points "
                  f"assigned to {len(regions)} regions")

        return assigned

    def cluster_frame(self, frame: Frame) -> int:
        """
        Cluster a frame's range points into its regions, at most once per frame.

        Returns:
            Number of points assigned (0 if the frame was already clustered).
        """
        if frame.is_clustered:
            return 0

        assigned = self.cluster(frame.regions, frame.range_points)
        frame.is_clustered = True
        return assigned


# Keyword parameters accepted by crop_range_points (the range_crop config keys)
CROP_PARAMETERS = ('min_x', 'max_x', 'max_y', 'min_z', 'max_z', 'min_r')


def crop_range_points(
    range_points: Sequence[RangePoint],
    min_x: float = 2.0,
    max_x: float = 20.0,
    max_y: float = 2.0,
    min_z: float = -1.5,
    max_z: float = -0.9,
    min_r: float = 0.1,
) -> List[RangePoint]:
    """
    Keep only the points inside the ego corridor.

    The default bounds select the rear of a vehicle driving ahead in the ego
    lane for a roof-mounted sensor: between 2 and 20 m forward, at most 2 m
    to either side, between 1.5 and 0.9 m below the sensor, with a
    reflectivity of at least 0.1.

    Returns:
        Filtered list, in input order.
    """
    if len(range_points) == 0:
        return []

    xyzr = np.array([[p.x, p.y, p.z, p.r] for p in range_points], dtype=np.float64)
    keep = ((xyzr[:, 0] >= min_x) & (xyzr[:, 0] <= max_x)
            & (np.abs(xyzr[:, 1]) <= max_y)
            & (xyzr[:, 2] >= min_z) & (xyzr[:, 2] <= max_z)
            & (xyzr[:, 3] >= min_r))

    return [p for p, k in zip(range_points, keep) if k]
