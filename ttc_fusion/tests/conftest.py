"""
Fixture condivise: calibrazione sintetica e frame di test.
"""

import numpy as np
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from ttc_fusion.calibration.load_calibration import ProjectionCalibration
from ttc_fusion.fusion.data_structures import (
    Correspondence,
    Frame,
    Keypoint,
    RangePoint,
    Rect,
    Region,
)


# Pinhole camera f = 100 px, principal point (320, 240), looking along the
# sensor x axis:  u = 320 - 100 * y / x,  v = 240 - 100 * z / x
SYNTHETIC_P = [[100.0, 0.0, 320.0, 0.0],
               [0.0, 100.0, 240.0, 0.0],
               [0.0, 0.0, 1.0, 0.0]]
SYNTHETIC_RT = [[0.0, -1.0, 0.0, 0.0],
                [0.0, 0.0, -1.0, 0.0],
                [1.0, 0.0, 0.0, 0.0]]


@pytest.fixture
def calibration():
    """Calibrazione sintetica a 10 fps."""
    return ProjectionCalibration(
        P_rect=np.array(SYNTHETIC_P),
        R_rect=np.eye(3),
        RT=np.array(SYNTHETIC_RT),
        frame_rate=10.0,
    )


@pytest.fixture
def fusion_config():
    """Configurazione di default della pipeline."""
    return {
        'verbose': False,
        'clustering': {'shrink_factor': 0.10},
        'range_crop': {'enabled': False},
        'matching': {'drop_unmatched': False},
        'correspondence_filter': {'distance_ratio': 0.8},
        'visual_ttc': {'min_keypoint_distance': 100.0},
    }


def _square(center, half_side):
    cx, cy = center
    return [(cx - half_side, cy - half_side), (cx + half_side, cy - half_side),
            (cx - half_side, cy + half_side), (cx + half_side, cy + half_side)]


def make_frame_pair(d0=10.0, d1=9.5, scale=1.05, height=0.0):
    """
    Build two frames observing one object straight ahead.

    The object is at forward distance d0, then d1; its keypoint pattern grows
    by ``scale`` about the image centre. Four corner keypoints are good
    matches (distance 10); two central ones are poor matches (distance 100).
    The object's range returns lie ``height`` metres above the sensor.
    """
    center = (320.0, 240.0)

    prev_pts = _square(center, 150.0) + [(320.0, 240.0), (330.0, 250.0)]
    curr_pts = [(center[0] + scale * (x - center[0]), center[1] + scale * (y - center[1]))
                for x, y in prev_pts[:4]] + [(321.0, 241.0), (331.0, 251.0)]

    def points_at(depth):
        offsets = [(0.0, 0.0), (0.3, 0.1), (-0.3, -0.1)]
        pts = [RangePoint(depth, y, height + z, 0.5) for y, z in offsets]
        # far to the side: outside every region
        pts.append(RangePoint(depth, -50.0, height, 0.5))
        return pts

    prev = Frame(
        keypoints=[Keypoint(x, y) for x, y in prev_pts],
        regions=[Region(region_id=0, roi=Rect(100.0, 50.0, 400.0, 400.0))],
        range_points=points_at(d0),
        frame_idx=0,
    )

    matches = ([Correspondence(i, i, 10.0) for i in range(4)]
               + [Correspondence(4, 4, 100.0), Correspondence(5, 5, 100.0)])

    curr = Frame(
        keypoints=[Keypoint(x, y) for x, y in curr_pts],
        regions=[Region(region_id=7, roi=Rect(90.0, 40.0, 420.0, 420.0))],
        range_points=points_at(d1),
        matches=matches,
        frame_idx=1,
    )

    return prev, curr


@pytest.fixture
def frame_pair_frames():
    return make_frame_pair()
