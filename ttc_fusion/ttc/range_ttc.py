"""
range_ttc.py

Time-to-collision from the range points of one region in two frames.

Constant-velocity model
-----------------------
With d0 and d1 the forward distance of the object in the previous and the
current frame and dt the frame interval:

    v   = (d0 - d1) / dt
    TTC = d1 / v = d1 * dt / (d0 - d1)

The distance of each frame is the median ``x`` of the region's points rather
than the closest point, so a few stray returns in front of or behind the
object do not move the estimate. For even-sized sets the upper of the two
middle values (index n // 2 after sorting) is used.
"""

from typing import Sequence

from ttc_fusion.fusion.data_structures import RangePoint
from ttc_fusion.ttc.ttc_result import TTCResult

# |d0 - d1| below this is a zero closing rate
_MIN_CLOSING_DISTANCE = 1e-9


def median_forward_distance(points: Sequence[RangePoint]) -> float:
    """``x`` of the element at index n // 2 of the points sorted by ``x``."""
    xs = sorted(p.x for p in points)
    return xs[len(xs) // 2]


class RangeTTCEstimator:
    """Median-depth TTC estimator for range-sensor data."""

    def __init__(self, frame_rate: float, verbose: bool = False):
        """
        Args:
            frame_rate: Frames per second of the sequence (> 0).
            verbose:    Print the estimator inputs and result.
        """
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")

        self.frame_rate = frame_rate
        self.dt = 1.0 / frame_rate
        self.verbose = verbose

    def estimate(
        self,
        prev_points: Sequence[RangePoint],
        curr_points: Sequence[RangePoint],
    ) -> TTCResult:
        """
        Compute the range-based TTC.

        Args:
            prev_points: Points assigned to the region in the previous frame.
            curr_points: Points assigned to the matched region in the current frame.

        Returns:
            TTCResult; UNAVAILABLE if either set is empty, INDETERMINATE if the
            median distance did not change. Negative values (receding object)
            are returned as OK.
        """
        samples = min(len(prev_points), len(curr_points))
        if len(prev_points) == 0 or len(curr_points) == 0:
            return TTCResult.unavailable(
                f"no range points (prev={len(prev_points)}, curr={len(curr_points)})"
            )

        d0 = median_forward_distance(prev_points)
        d1 = median_forward_distance(curr_points)

        if abs(d0 - d1) < _MIN_CLOSING_DISTANCE:
            return TTCResult.indeterminate(f"zero closing rate (d0 = d1 = {d1:.3f} m)", samples)

        ttc = d1 * self.dt / (d0 - d1)

        if self.verbose:
            print(f"[RangeTTCEstimator] d0: {d0:.3f}  d1: {d1:.3f}  "
                  f"frame rate: {self.frame_rate}  TTC: {ttc:.3f} s")

        return TTCResult.ok(ttc, samples)
