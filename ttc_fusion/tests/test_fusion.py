"""
Test per proiezione e clustering dei punti del sensore di distanza.
"""

import cv2
import numpy as np
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from ttc_fusion.fusion.data_structures import (
    Frame,
    RangePoint,
    Rect,
    Region,
    correspondences_from_cv,
    keypoints_from_cv,
    range_points_from_array,
    range_points_to_array,
)
from ttc_fusion.fusion.projector import Projector
from ttc_fusion.fusion.region_clusterer import RegionClusterer, crop_range_points


class TestRect:
    """Test per Rect."""

    def test_contains_is_half_open(self):
        rect = Rect(10.0, 20.0, 30.0, 40.0)

        assert rect.contains(10.0, 20.0)
        assert rect.contains(39.9, 59.9)
        assert not rect.contains(40.0, 30.0)
        assert not rect.contains(20.0, 60.0)
        assert not rect.contains(9.9, 30.0)

    def test_contains_rejects_non_finite(self):
        rect = Rect(0.0, 0.0, 100.0, 100.0)

        assert not rect.contains(np.nan, 50.0)
        assert not rect.contains(np.inf, 50.0)

    def test_shrink_keeps_center(self):
        rect = Rect(100.0, 50.0, 200.0, 100.0)
        small = rect.shrink(0.2)

        assert small.x == pytest.approx(120.0)
        assert small.y == pytest.approx(60.0)
        assert small.width == pytest.approx(160.0)
        assert small.height == pytest.approx(80.0)
        assert small.x + small.width / 2 == pytest.approx(rect.x + rect.width / 2)

    def test_shrink_zero_is_identity(self):
        rect = Rect(1.0, 2.0, 3.0, 4.0)
        assert rect.shrink(0.0) == rect


class TestProjector:
    """Test per Projector."""

    def test_project_point_on_axis(self, calibration):
        projector = Projector(calibration)

        u, v = projector.project(RangePoint(10.0, 0.0, 0.0))

        assert u == pytest.approx(320.0)
        assert v == pytest.approx(240.0)

    def test_project_lateral_offset(self, calibration):
        projector = Projector(calibration)

        # y positive (left) moves the projection to the left of the image
        u, v = projector.project(RangePoint(10.0, 1.0, -0.5))

        assert u == pytest.approx(310.0)
        assert v == pytest.approx(245.0)

    def test_project_points_matches_single(self, calibration):
        projector = Projector(calibration)
        points = [RangePoint(10.0, 1.0, -0.5), RangePoint(5.0, -2.0, 0.3)]

        uv = projector.project_points(points)

        assert uv.shape == (2, 2)
        for point, row in zip(points, uv):
            np.testing.assert_array_almost_equal(row, projector.project(point))

    def test_project_points_empty(self, calibration):
        assert Projector(calibration).project_points([]).shape == (0, 2)

    def test_zero_depth_is_not_finite(self, calibration):
        projector = Projector(calibration)

        u, v = projector.project(RangePoint(0.0, 1.0, 1.0))

        assert not np.isfinite(u)
        assert not np.isfinite(v)


class TestRegionClusterer:
    """Test per RegionClusterer."""

    def test_single_region_assignment(self, calibration):
        clusterer = RegionClusterer(Projector(calibration), shrink_factor=0.1)
        region = Region(region_id=0, roi=Rect(270.0, 190.0, 100.0, 100.0))
        points = [RangePoint(10.0, 0.0, 0.0), RangePoint(10.0, 0.2, 0.1)]

        assigned = clusterer.cluster([region], points)

        assert assigned == 2
        assert region.range_points == points

    def test_point_outside_all_regions_is_discarded(self, calibration):
        clusterer = RegionClusterer(Projector(calibration), shrink_factor=0.1)
        region = Region(region_id=0, roi=Rect(270.0, 190.0, 100.0, 100.0))

        assigned = clusterer.cluster([region], [RangePoint(10.0, -30.0, 0.0)])

        assert assigned == 0
        assert region.range_points == []

    def test_point_in_overlapping_regions_is_discarded(self, calibration):
        clusterer = RegionClusterer(Projector(calibration), shrink_factor=0.1)
        a = Region(region_id=0, roi=Rect(250.0, 190.0, 100.0, 100.0))
        b = Region(region_id=1, roi=Rect(290.0, 190.0, 100.0, 100.0))

        # (320, 240) lies in both shrunk boxes; (265, 240) only in a
        shared = RangePoint(10.0, 0.0, 0.0)
        only_a = RangePoint(10.0, 5.5, 0.0)

        assigned = clusterer.cluster([a, b], [shared, only_a])

        assert assigned == 1
        assert a.range_points == [only_a]
        assert b.range_points == []

    def test_shrink_factor_trims_edges(self, calibration):
        region_roi = Rect(270.0, 190.0, 100.0, 100.0)
        # projects to u = 275: inside the box, outside the 20 % shrunk box
        edge_point = RangePoint(10.0, 4.5, 0.0)

        loose = Region(region_id=0, roi=region_roi)
        RegionClusterer(Projector(calibration), shrink_factor=0.0).cluster([loose], [edge_point])
        assert loose.range_points == [edge_point]

        tight = Region(region_id=0, roi=region_roi)
        RegionClusterer(Projector(calibration), shrink_factor=0.2).cluster([tight], [edge_point])
        assert tight.range_points == []

    def test_zero_depth_point_is_unassigned(self, calibration):
        clusterer = RegionClusterer(Projector(calibration), shrink_factor=0.0)
        region = Region(region_id=0, roi=Rect(-1e6, -1e6, 2e6, 2e6))

        assert clusterer.cluster([region], [RangePoint(0.0, 0.0, 0.0)]) == 0

    @pytest.mark.parametrize("factor", [-0.1, 1.0, 1.5])
    def test_invalid_shrink_factor(self, calibration, factor):
        with pytest.raises(ValueError):
            RegionClusterer(Projector(calibration), shrink_factor=factor)

    def test_cluster_frame_runs_once(self, calibration):
        clusterer = RegionClusterer(Projector(calibration))
        frame = Frame(
            regions=[Region(region_id=0, roi=Rect(270.0, 190.0, 100.0, 100.0))],
            range_points=[RangePoint(10.0, 0.0, 0.0)],
        )

        assert clusterer.cluster_frame(frame) == 1
        assert clusterer.cluster_frame(frame) == 0
        assert frame.is_clustered
        assert len(frame.regions[0].range_points) == 1

    def test_from_config(self, calibration, fusion_config):
        fusion_config['clustering']['shrink_factor'] = 0.25
        clusterer = RegionClusterer.from_config(Projector(calibration), fusion_config)

        assert clusterer.shrink_factor == 0.25


class TestCropRangePoints:
    """Test per il crop del corridoio ego."""

    def test_default_corridor(self):
        inside = RangePoint(10.0, 0.5, -1.2, 0.5)
        points = [
            inside,
            RangePoint(1.0, 0.0, -1.2, 0.5),    # too close
            RangePoint(25.0, 0.0, -1.2, 0.5),   # too far
            RangePoint(10.0, 3.0, -1.2, 0.5),   # outside the lane
            RangePoint(10.0, 0.0, 0.0, 0.5),    # too high
            RangePoint(10.0, 0.0, -1.2, 0.05),  # low reflectivity
        ]

        assert crop_range_points(points) == [inside]

    def test_empty(self):
        assert crop_range_points([]) == []


class TestConversions:
    """Test per le conversioni da OpenCV / NumPy."""

    def test_keypoints_from_cv(self):
        keypoints = keypoints_from_cv([cv2.KeyPoint(12.5, 7.0, 3.0)])

        assert keypoints[0].pt == (12.5, 7.0)
        assert keypoints[0].size == 3.0

    def test_correspondences_from_cv(self):
        matches = correspondences_from_cv([cv2.DMatch(3, 8, 42.0)])

        assert matches[0].prev_idx == 3
        assert matches[0].curr_idx == 8
        assert matches[0].distance == pytest.approx(42.0)

    def test_range_points_from_array(self):
        points = range_points_from_array(np.array([[1.0, 2.0, 3.0, 0.4]]))

        assert points == [RangePoint(1.0, 2.0, 3.0, 0.4)]
        np.testing.assert_array_equal(range_points_to_array(points), [[1.0, 2.0, 3.0, 0.4]])

    def test_range_points_from_array_without_reflectivity(self):
        points = range_points_from_array(np.array([[1.0, 2.0, 3.0]]))
        assert points[0].r == 0.0

    def test_range_points_from_array_bad_shape(self):
        with pytest.raises(ValueError):
            range_points_from_array(np.zeros((2, 5)))
