"""
correspondence_filter.py

Selects the keypoint correspondences that can be trusted for one region.

Descriptor distance grows as match confidence drops, so after restricting the
correspondences to those whose current keypoint lies in the region, only the
ones clearly below the mean distance are kept:

    threshold = mean(distance) * distance_ratio      (distance_ratio = 0.8)
    keep      = distance < threshold
"""

import numpy as np
from typing import Dict, List, Sequence

from ttc_fusion.fusion.data_structures import Correspondence, Keypoint, Region


class CorrespondenceFilter:
    """One-pass distance-based outlier rejection inside a region."""

    def __init__(self, distance_ratio: float = 0.8, verbose: bool = False):
        """
        Args:
            distance_ratio: Fraction of the mean distance used as rejection
                            threshold; must be positive.
            verbose:        Print the number of retained matches.
        """
        if distance_ratio <= 0:
            raise ValueError(f"distance_ratio must be positive, got {distance_ratio}")

        self.distance_ratio = distance_ratio
        self.verbose = verbose

    @classmethod
    def from_config(cls, config: Dict) -> 'CorrespondenceFilter':
        """Build a filter from the ``correspondence_filter`` section."""
        filter_cfg = config.get('correspondence_filter', {})
        return cls(
            distance_ratio=filter_cfg.get('distance_ratio', 0.8),
            verbose=config.get('verbose', False),
        )

    @staticmethod
    def select_in_roi(
        region: Region,
        curr_keypoints: Sequence[Keypoint],
        matches: Sequence[Correspondence],
    ) -> List[Correspondence]:
        """Correspondences whose current keypoint lies in the (unshrunk) region roi."""
        selected = []
        for match in matches:
            kp = curr_keypoints[match.curr_idx]
            if region.roi.contains(kp.x, kp.y):
                selected.append(match)
        return selected

    def filter(
        self,
        region: Region,
        curr_keypoints: Sequence[Keypoint],
        matches: Sequence[Correspondence],
    ) -> List[Correspondence]:
        """
        Attach the trusted correspondences to ``region.keypoint_matches``.

        Args:
            region:         Current-frame region (mutated in place).
            curr_keypoints: Keypoints of the current frame.
            matches:        All correspondences of the frame pair.

        Returns:
            The retained correspondences (empty if none fall in the region).
        """
        in_roi = self.select_in_roi(region, curr_keypoints, matches)
        if not in_roi:
            return []

        d_mean = float(np.mean([m.distance for m in in_roi]))
        threshold = d_mean * self.distance_ratio

        trusted = [m for m in in_roi if m.distance < threshold]
        region.keypoint_matches.extend(trusted)

        if self.verbose:
            print(f"[CorrespondenceFilter] region {region.region_id}: "
                  f"{len(trusted)}/{len(in_roi)} matches kept "
                  f"(threshold {threshold:.2f})")

        return trusted
