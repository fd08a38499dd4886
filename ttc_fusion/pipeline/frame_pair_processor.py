"""
frame_pair_processor.py

Runs the full fusion pipeline on one pair of consecutive frames.

Pipeline overview
-----------------
1. Range crop      – ego-corridor filter on the range points (on by default).
2. Clustering      – range points → regions, for both frames (once per frame).
3. Region matching – previous → current region ids by keypoint voting.
4. Per matched region pair:
     a. Range TTC   from the median depth of both regions' points.
     b. Filtering   of the correspondences inside the current region.
     c. Visual TTC  from the filtered correspondences.

Each region pair produces its own pair of TTCResults: an estimate that is
unavailable for one region never affects the other regions of the frame.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ttc_fusion.calibration.load_calibration import ProjectionCalibration
from ttc_fusion.fusion.projector import Projector
from ttc_fusion.fusion.data_structures import Frame, FramePair
from ttc_fusion.fusion.region_clusterer import (
    CROP_PARAMETERS,
    RegionClusterer,
    crop_range_points,
)
from ttc_fusion.tracking.correspondence_filter import CorrespondenceFilter
from ttc_fusion.tracking.region_matcher import RegionMatcher
from ttc_fusion.ttc.range_ttc import RangeTTCEstimator
from ttc_fusion.ttc.ttc_result import TTCResult
from ttc_fusion.ttc.visual_ttc import VisualTTCEstimator


@dataclass
class RegionTTC:
    """Both TTC estimates for one matched region pair."""
    prev_id:         int
    curr_id:         int
    votes:           int
    num_prev_points: int
    num_curr_points: int
    num_matches:     int
    range_ttc:       TTCResult
    visual_ttc:      TTCResult

    def to_dict(self) -> dict:
        return {
            'prev_id': self.prev_id,
            'curr_id': self.curr_id,
            'votes': self.votes,
            'num_prev_points': self.num_prev_points,
            'num_curr_points': self.num_curr_points,
            'num_matches': self.num_matches,
            'range_ttc': self.range_ttc.to_dict(),
            'visual_ttc': self.visual_ttc.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RegionTTC':
        return cls(
            prev_id=data['prev_id'],
            curr_id=data['curr_id'],
            votes=data['votes'],
            num_prev_points=data['num_prev_points'],
            num_curr_points=data['num_curr_points'],
            num_matches=data['num_matches'],
            range_ttc=TTCResult.from_dict(data['range_ttc']),
            visual_ttc=TTCResult.from_dict(data['visual_ttc']),
        )


@dataclass
class FramePairResult:
    """Output of one pipeline cycle."""
    frame_idx:     int
    region_matches: Dict[int, int] = field(default_factory=dict)
    regions:       List[RegionTTC] = field(default_factory=list)

    def get(self, prev_id: int) -> Optional[RegionTTC]:
        """Estimates for the region that had ``prev_id`` in the previous frame."""
        for region_ttc in self.regions:
            if region_ttc.prev_id == prev_id:
                return region_ttc
        return None

    def to_dict(self) -> dict:
        return {
            'frame_idx': self.frame_idx,
            'region_matches': {str(k): v for k, v in self.region_matches.items()},
            'regions': [r.to_dict() for r in self.regions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FramePairResult':
        return cls(
            frame_idx=data['frame_idx'],
            region_matches={int(k): v for k, v in data.get('region_matches', {}).items()},
            regions=[RegionTTC.from_dict(r) for r in data.get('regions', [])],
        )


class FramePairProcessor:
    """
    Wires projector, clusterer, matcher, filter and both estimators together.
    """

    def __init__(self, config: Dict, calibration: ProjectionCalibration):
        """
        Args:
            config:      Fusion configuration (from fusion_params.yaml).
            calibration: Projection matrices and frame rate of the rig.

        Raises:
            ValueError: If the range_crop section has unknown keys.
        """
        self.config = config
        self.calibration = calibration
        self.verbose = config.get('verbose', False)

        # The crop also removes returns behind the sensor, which would
        # otherwise project through the image centre
        crop_cfg = dict(config.get('range_crop', {}) or {})
        self.crop_enabled = crop_cfg.pop('enabled', True)
        unknown = sorted(set(crop_cfg) - set(CROP_PARAMETERS))
        if unknown:
            raise ValueError(f"Unknown range_crop parameters: {unknown} "
                             f"(expected a subset of {list(CROP_PARAMETERS)})")
        self.crop_params = crop_cfg

        self.projector = Projector(calibration)
        self.clusterer = RegionClusterer.from_config(self.projector, config)
        self.matcher = RegionMatcher.from_config(config)
        self.correspondence_filter = CorrespondenceFilter.from_config(config)
        self.range_estimator = RangeTTCEstimator(calibration.frame_rate, self.verbose)
        self.visual_estimator = VisualTTCEstimator.from_config(calibration.frame_rate, config)

        if self.verbose:
            print(f"[FramePairProcessor] Initialized: {calibration.frame_rate} fps")
            print(f"  Shrink factor  : {self.clusterer.shrink_factor}")
            print(f"  Distance ratio : {self.correspondence_filter.distance_ratio}")
            print(f"  Range crop     : {'on' if self.crop_enabled else 'off'}")

    def prepare_frame(self, frame: Frame) -> None:
        """Crop (if enabled) and cluster a frame's range points. Idempotent."""
        if frame.is_clustered:
            return
        if self.crop_enabled:
            frame.range_points = crop_range_points(frame.range_points, **self.crop_params)
        self.clusterer.cluster_frame(frame)

    def process(self, pair: FramePair) -> FramePairResult:
        """
        Compute the TTC estimates of every matched region pair.

        Args:
            pair: Previous and current frame with their correspondences.

        Returns:
            FramePairResult indexed by the previous frame's region ids.
        """
        self.prepare_frame(pair.prev)
        self.prepare_frame(pair.curr)

        best = self.matcher.match_with_votes(
            pair.matches,
            pair.prev.keypoints, pair.curr.keypoints,
            pair.prev.regions, pair.curr.regions,
        )

        result = FramePairResult(
            frame_idx=pair.curr.frame_idx,
            region_matches={id_prev: id_curr for id_prev, (id_curr, _) in best.items()},
        )

        trusted_by_region = {}
        for id_prev, (id_curr, votes) in best.items():
            prev_region = pair.prev.get_region(id_prev)
            curr_region = pair.curr.get_region(id_curr)

            range_ttc = self.range_estimator.estimate(prev_region.range_points,
                                                      curr_region.range_points)

            # Several previous regions may map to the same current region;
            # matches left by an earlier run on this pair are replaced
            if id_curr not in trusted_by_region:
                curr_region.keypoint_matches.clear()
                trusted_by_region[id_curr] = self.correspondence_filter.filter(
                    curr_region, pair.curr.keypoints, pair.matches)
            trusted = trusted_by_region[id_curr]

            if trusted:
                visual_ttc = self.visual_estimator.estimate(pair.prev.keypoints,
                                                            pair.curr.keypoints, trusted)
            else:
                visual_ttc = TTCResult.unavailable("camera data unavailable for this region")

            result.regions.append(RegionTTC(
                prev_id=id_prev,
                curr_id=id_curr,
                votes=votes,
                num_prev_points=len(prev_region.range_points),
                num_curr_points=len(curr_region.range_points),
                num_matches=len(trusted),
                range_ttc=range_ttc,
                visual_ttc=visual_ttc,
            ))

        if self.verbose:
            print(f"[FramePairProcessor] frame {pair.curr.frame_idx}: "
                  f"{len(result.regions)} region pairs processed")

        return result
