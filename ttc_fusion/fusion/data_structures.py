"""
data_structures.py

Per-frame containers shared by the fusion, tracking and TTC modules.

Ownership
---------
A ``Frame`` owns its keypoints, its detected regions and its range points.
Regions are created by the external object detector and then mutated twice
during a frame-pair cycle: the RegionClusterer appends range points and the
CorrespondenceFilter appends trusted keypoint correspondences. Range points
and correspondences are immutable values, so appending them to a region is a
plain copy of a reference with no back-link to the region.
"""

import cv2
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple


# ===========================================================================
# Sensor primitives
# ===========================================================================

@dataclass(frozen=True)
class RangePoint:
    """
    Single return of the range sensor.

    Attributes:
        x: Forward distance from the sensor (m).
        y: Lateral offset, positive to the left (m).
        z: Height, positive upwards (m).
        r: Reflectivity (unitless, 0..1 for most sensors).
    """
    x: float
    y: float
    z: float
    r: float = 0.0


@dataclass(frozen=True)
class Keypoint:
    """2D image keypoint. Its index is its position in the frame's keypoint list."""
    x: float
    y: float
    size: float = 1.0

    @property
    def pt(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Correspondence:
    """
    Keypoint match between the previous and the current frame.

    Attributes:
        prev_idx: Index into the previous frame's keypoints (OpenCV ``queryIdx``).
        curr_idx: Index into the current frame's keypoints (OpenCV ``trainIdx``).
        distance: Descriptor distance; lower means a more confident match.
    """
    prev_idx: int
    curr_idx: int
    distance: float


# ===========================================================================
# Regions
# ===========================================================================

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel coordinates (x, y = top-left corner)."""
    x: float
    y: float
    width: float
    height: float

    def contains(self, u: float, v: float) -> bool:
        """
        Half-open containment test: ``x <= u < x + width`` and
        ``y <= v < y + height``. Non-finite coordinates are never contained.
        """
        return (self.x <= u < self.x + self.width
                and self.y <= v < self.y + self.height)

    def shrink(self, factor: float) -> 'Rect':
        """
        Shrink the rectangle symmetrically about its centre.

        Width and height are scaled by ``1 - factor`` and the origin moves by
        ``factor * size / 2`` so the centre is unchanged.
        """
        return Rect(
            x=self.x + factor * self.width / 2.0,
            y=self.y + factor * self.height / 2.0,
            width=self.width * (1.0 - factor),
            height=self.height * (1.0 - factor),
        )


@dataclass
class Region:
    """
    One detected object projection in a single frame.

    ``region_id`` is stable within a frame only: identity across frames is
    established exclusively by the RegionMatcher.

    ``keypoint_indices`` is carried as-is from the detector (indices into the
    frame's keypoints) and persisted with the frame; the pipeline itself
    associates keypoints through ``keypoint_matches``.
    """
    region_id: int
    roi: Rect
    class_id: int = -1
    confidence: float = 0.0
    keypoint_indices: List[int] = field(default_factory=list)
    range_points: List[RangePoint] = field(default_factory=list)
    keypoint_matches: List[Correspondence] = field(default_factory=list)


# ===========================================================================
# Frames
# ===========================================================================

@dataclass
class Frame:
    """
    Everything the pipeline knows about one observation.

    ``matches`` holds the correspondences from the previous frame's keypoints
    into this frame's keypoints (empty for the first frame of a sequence).
    """
    keypoints: List[Keypoint] = field(default_factory=list)
    regions: List[Region] = field(default_factory=list)
    range_points: List[RangePoint] = field(default_factory=list)
    matches: List[Correspondence] = field(default_factory=list)
    frame_idx: int = 0
    is_clustered: bool = False

    def get_region(self, region_id: int) -> Optional[Region]:
        """Return the region with the given id, or None."""
        for region in self.regions:
            if region.region_id == region_id:
                return region
        return None


@dataclass
class FramePair:
    """Unit of work for one TTC cycle."""
    prev: Frame
    curr: Frame
    matches: List[Correspondence]

    @classmethod
    def from_frames(cls, prev: Frame, curr: Frame) -> 'FramePair':
        """Build a pair using the correspondences stored on the current frame."""
        return cls(prev=prev, curr=curr, matches=list(curr.matches))


# ===========================================================================
# Conversions from OpenCV / NumPy
# ===========================================================================

def keypoints_from_cv(cv_keypoints: Sequence[cv2.KeyPoint]) -> List[Keypoint]:
    """Convert the output of an OpenCV detector into Keypoint values."""
    return [Keypoint(x=float(kp.pt[0]), y=float(kp.pt[1]), size=float(kp.size))
            for kp in cv_keypoints]


def correspondences_from_cv(cv_matches: Sequence[cv2.DMatch]) -> List[Correspondence]:
    """
    Convert OpenCV matches (previous frame as query, current frame as train)
    into Correspondence values.
    """
    return [Correspondence(prev_idx=int(m.queryIdx),
                           curr_idx=int(m.trainIdx),
                           distance=float(m.distance))
            for m in cv_matches]


def range_points_from_array(points: np.ndarray) -> List[RangePoint]:
    """
    Build RangePoints from an (N, 3) or (N, 4) array of x, y, z[, r].

    Raises:
        ValueError: If the array does not have 3 or 4 columns.
    """
    points = np.asarray(points, dtype=np.float64)
    if points.size == 0:
        return []
    if points.ndim != 2 or points.shape[1] not in (3, 4):
        raise ValueError(f"range points must be (N, 3) or (N, 4), got {points.shape}")

    if points.shape[1] == 3:
        return [RangePoint(float(x), float(y), float(z)) for x, y, z in points]
    return [RangePoint(float(x), float(y), float(z), float(r)) for x, y, z, r in points]


def range_points_to_array(points: Sequence[RangePoint]) -> np.ndarray:
    """Stack RangePoints into an (N, 4) float64 array."""
    if not points:
        return np.zeros((0, 4), dtype=np.float64)
    return np.array([[p.x, p.y, p.z, p.r] for p in points], dtype=np.float64)
