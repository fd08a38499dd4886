"""
region_matcher.py

Frame-to-frame association of detected regions by keypoint voting.

Each keypoint correspondence votes for every (previous region, current region)
combination whose rectangles enclose its previous and current keypoint
respectively. Overlapping regions therefore receive several votes from the
same correspondence. For every previous region, the current region with the
strictly greatest number of votes wins.

Votes are kept in a sparse table keyed by the detector's region ids, so ids
need not be contiguous or start at zero.

Zero-vote rows
--------------
A previous region that collected no votes is mapped to the lowest current
region id, which is indistinguishable from a genuine match in the plain
``match`` output. Use ``match_with_votes`` to see the vote count, or build
the matcher with ``drop_unmatched=True`` to omit such rows.
"""

from collections import Counter
from typing import Dict, List, Sequence, Tuple

from ttc_fusion.fusion.data_structures import Correspondence, Keypoint, Region


class RegionMatcher:
    """
    Determines which current-frame region each previous-frame region became.
    """

    def __init__(self, drop_unmatched: bool = False, verbose: bool = False):
        """
        Args:
            drop_unmatched: Omit previous regions that received no votes
                            instead of mapping them to the lowest current id.
            verbose:        Print the number of produced matches.
        """
        self.drop_unmatched = drop_unmatched
        self.verbose = verbose

    @classmethod
    def from_config(cls, config: Dict) -> 'RegionMatcher':
        """Build a matcher from the ``matching`` section of fusion_params.yaml."""
        match_cfg = config.get('matching', {})
        return cls(
            drop_unmatched=match_cfg.get('drop_unmatched', False),
            verbose=config.get('verbose', False),
        )

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    @staticmethod
    def _enclosing_ids(regions: Sequence[Region], keypoint: Keypoint) -> List[int]:
        return [region.region_id for region in regions
                if region.roi.contains(keypoint.x, keypoint.y)]

    def count_votes(
        self,
        matches: Sequence[Correspondence],
        prev_keypoints: Sequence[Keypoint],
        curr_keypoints: Sequence[Keypoint],
        prev_regions: Sequence[Region],
        curr_regions: Sequence[Region],
    ) -> Counter:
        """
        Build the vote table.

        Returns:
            Counter keyed by (prev_region_id, curr_region_id).
        """
        votes = Counter()

        for match in matches:
            ids_prev = self._enclosing_ids(prev_regions, prev_keypoints[match.prev_idx])
            if not ids_prev:
                continue
            ids_curr = self._enclosing_ids(curr_regions, curr_keypoints[match.curr_idx])

            for id_prev in ids_prev:
                for id_curr in ids_curr:
                    votes[(id_prev, id_curr)] += 1

        return votes

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def match_with_votes(
        self,
        matches: Sequence[Correspondence],
        prev_keypoints: Sequence[Keypoint],
        curr_keypoints: Sequence[Keypoint],
        prev_regions: Sequence[Region],
        curr_regions: Sequence[Region],
    ) -> Dict[int, Tuple[int, int]]:
        """
        Best current region for every previous region, with its vote count.

        Current regions are scanned in ascending id order and only a strictly
        greater count replaces the running best, so ties go to the lowest id.

        Returns:
            {prev_region_id: (curr_region_id, votes)}. Empty if the current
            frame has no regions.
        """
        if not curr_regions:
            return {}

        votes = self.count_votes(matches, prev_keypoints, curr_keypoints,
                                 prev_regions, curr_regions)
        curr_ids = sorted(region.region_id for region in curr_regions)

        best_matches = {}
        for prev_region in prev_regions:
            id_prev = prev_region.region_id

            count_max = 0
            id_max = curr_ids[0]
            for id_curr in curr_ids:
                count = votes.get((id_prev, id_curr), 0)
                if count > count_max:
                    count_max = count
                    id_max = id_curr

            if count_max == 0 and self.drop_unmatched:
                continue
            best_matches[id_prev] = (id_max, count_max)

        if self.verbose:
            print(f"[RegionMatcher] {len(best_matches)} region matches "
                  f"from {len(matches)} keypoint matches")

        return best_matches

    def match(
        self,
        matches: Sequence[Correspondence],
        prev_keypoints: Sequence[Keypoint],
        curr_keypoints: Sequence[Keypoint],
        prev_regions: Sequence[Region],
        curr_regions: Sequence[Region],
    ) -> Dict[int, int]:
        """
        Map each previous region id to its best current region id.

        Args:
            matches:        Keypoint correspondences previous → current.
            prev_keypoints: Keypoints of the previous frame.
            curr_keypoints: Keypoints of the current frame.
            prev_regions:   Regions detected in the previous frame.
            curr_regions:   Regions detected in the current frame.

        Returns:
            {prev_region_id: curr_region_id}
        """
        best = self.match_with_votes(matches, prev_keypoints, curr_keypoints,
                                     prev_regions, curr_regions)
        return {id_prev: id_curr for id_prev, (id_curr, _) in best.items()}
