"""
visual_ttc.py

Time-to-collision from the scale change of a region's keypoint pattern.

For every pair of trusted correspondences the pixel distance between the two
keypoints is measured in the current frame (h1) and in the previous frame
(h0). Under a pinhole camera and constant velocity the ratio h1 / h0 is the
same for every pair and does not depend on image translation or rotation.
The median ratio r is used and

    TTC = -dt / (1 - r)

Pairs whose keypoints are closer than ``min_distance`` pixels in either frame
are skipped: a pixel of detector noise on two almost coincident keypoints
produces arbitrarily large ratios.

Sign convention
---------------
The formula is kept as written above, so an expanding pattern (r > 1, object
getting closer) gives a positive TTC and a shrinking pattern (r < 1) a
negative one. For r = 0.95 at 10 fps the result is -2.0 s.
"""

import itertools
import numpy as np
from typing import Dict, List, Sequence

from ttc_fusion.fusion.data_structures import Correspondence, Keypoint
from ttc_fusion.ttc.ttc_result import TTCResult

_MIN_SCALE_CHANGE = 1e-12


class VisualTTCEstimator:
    """Median distance-ratio TTC estimator for camera keypoints."""

    def __init__(self, frame_rate: float, min_distance: float = 100.0,
                 verbose: bool = False):
        """
        Args:
            frame_rate:   Frames per second of the sequence (> 0).
            min_distance: Minimum keypoint separation (px) in both frames for
                          a pair to contribute a ratio.
            verbose:      Print the estimator inputs and result.
        """
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")

        self.frame_rate = frame_rate
        self.dt = 1.0 / frame_rate
        self.min_distance = min_distance
        self.verbose = verbose

    @classmethod
    def from_config(cls, frame_rate: float, config: Dict) -> 'VisualTTCEstimator':
        """Build an estimator from the ``visual_ttc`` section of fusion_params.yaml."""
        visual_cfg = config.get('visual_ttc', {})
        return cls(
            frame_rate,
            min_distance=visual_cfg.get('min_keypoint_distance', 100.0),
            verbose=config.get('verbose', False),
        )

    def distance_ratios(
        self,
        prev_keypoints: Sequence[Keypoint],
        curr_keypoints: Sequence[Keypoint],
        matches: Sequence[Correspondence],
    ) -> List[float]:
        """
        Ratios h1 / h0 over all unordered pairs of distinct correspondences,
        keeping only pairs with h0 > 0 and both distances above min_distance.

        Returns:
            Retained ratios, sorted ascending.
        """
        ratios = []

        for m1, m2 in itertools.combinations(matches, 2):
            kp1_curr = curr_keypoints[m1.curr_idx]
            kp2_curr = curr_keypoints[m2.curr_idx]
            kp1_prev = prev_keypoints[m1.prev_idx]
            kp2_prev = prev_keypoints[m2.prev_idx]

            h1 = np.hypot(kp1_curr.x - kp2_curr.x, kp1_curr.y - kp2_curr.y)
            h0 = np.hypot(kp1_prev.x - kp2_prev.x, kp1_prev.y - kp2_prev.y)

            if h0 > 0 and h1 > self.min_distance and h0 > self.min_distance:
                ratios.append(float(h1 / h0))

        ratios.sort()
        return ratios

    def estimate(
        self,
        prev_keypoints: Sequence[Keypoint],
        curr_keypoints: Sequence[Keypoint],
        matches: Sequence[Correspondence],
    ) -> TTCResult:
        """
        Compute the camera-based TTC.

        Args:
            prev_keypoints: Keypoints of the previous frame.
            curr_keypoints: Keypoints of the current frame.
            matches:        Trusted correspondences of one region.

        Returns:
            TTCResult; UNAVAILABLE if no pair passes the distance filter,
            INDETERMINATE if the median ratio is 1.
        """
        ratios = self.distance_ratios(prev_keypoints, curr_keypoints, matches)

        if not ratios:
            return TTCResult.unavailable(
                f"insufficient correspondences for visual TTC ({len(matches)} matches)"
            )

        ratio = ratios[len(ratios) // 2]

        if abs(1.0 - ratio) < _MIN_SCALE_CHANGE:
            return TTCResult.indeterminate("no scale change (median ratio = 1)", len(ratios))

        ttc = -self.dt / (1.0 - ratio)

        if self.verbose:
            print(f"[VisualTTCEstimator] ratios: {len(ratios)}  median: {ratio:.4f}  "
                  f"frame rate: {self.frame_rate}  TTC: {ttc:.3f} s")

        return TTCResult.ok(ttc, len(ratios))
