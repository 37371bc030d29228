"""Tests for Bresenham rasterization."""

import pytest

from py_citygraph.core.geometry import Point
from py_citygraph.core.rasterize import points_between


class TestPointsBetween:
    """Test straight line rasterization."""

    def test_single_point(self):
        assert points_between((4, 4), (4, 4)) == [Point(4, 4)]

    def test_horizontal(self):
        assert points_between((0, 2), (3, 2)) == [Point(0, 2), Point(1, 2), Point(2, 2), Point(3, 2)]

    def test_vertical_runs_upwards_in_y(self):
        assert points_between((1, 5), (1, 2)) == [Point(1, 2), Point(1, 3), Point(1, 4), Point(1, 5)]

    def test_diagonal(self):
        assert points_between((0, 0), (3, 3)) == [Point(0, 0), Point(1, 1), Point(2, 2), Point(3, 3)]

    def test_anti_diagonal(self):
        assert points_between((0, 3), (3, 0)) == [Point(0, 3), Point(1, 2), Point(2, 1), Point(3, 0)]

    def test_order_is_by_increasing_x(self):
        """Drawing b -> a gives the same points as a -> b."""
        assert points_between((10, 3), (0, 0)) == points_between((0, 0), (10, 3))

    @pytest.mark.parametrize("a,b", [
        ((0, 0), (10, 3)), ((0, 0), (3, 10)), ((0, 10), (7, 0)), ((2, 2), (30, 11)),
    ])
    def test_endpoints_and_connectivity(self, a, b):
        """Both endpoints are included and consecutive points touch."""
        pts = points_between(a, b)
        assert set(pts[:1] + pts[-1:]) == {Point(*a), Point(*b)}
        assert len(pts) == max(abs(b[0] - a[0]), abs(b[1] - a[1])) + 1
        for p, q in zip(pts, pts[1:]):
            assert abs(p.x - q.x) <= 1 and abs(p.y - q.y) <= 1
