"""
Fusion module - Frame data structures and range-point clustering into regions.
"""

from .data_structures import (
    RangePoint,
    Keypoint,
    Correspondence,
    Rect,
    Region,
    Frame,
    FramePair,
    keypoints_from_cv,
    correspondences_from_cv,
    range_points_from_array,
)
from .projector import Projector
from .region_clusterer import RegionClusterer, crop_range_points, CROP_PARAMETERS

__all__ = [
    'RangePoint',
    'Keypoint',
    'Correspondence',
    'Rect',
    'Region',
    'Frame',
    'FramePair',
    'keypoints_from_cv',
    'correspondences_from_cv',
    'range_points_from_array',
    'Projector',
    'RegionClusterer',
    'crop_range_points',
    'CROP_PARAMETERS',
]
