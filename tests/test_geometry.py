"""Tests for the integer geometry primitives."""

import numpy as np
import pytest

from py_citygraph.core.geometry import (
    Point, Polygon, Rect, bounding_rect, calculate_dist, centered_rect, edge_key,
    rect_at, round_half_away, segment_length, sort_by_length,
)


class TestRect:
    """Test rectangle helpers."""

    def test_size(self):
        r = Rect(2, 3, 10, 7)
        assert r.width == 8
        assert r.height == 4

    def test_half_open_contains(self):
        """Min corner is inside, max corner is not."""
        r = Rect(0, 0, 10, 10)
        assert r.contains(0, 0)
        assert r.contains(9, 9)
        assert not r.contains(10, 5)
        assert not r.contains(5, 10)

    def test_intersect(self):
        a = Rect(0, 0, 10, 10)
        b = Rect(5, -5, 20, 5)
        assert a.intersect(b) == Rect(5, 0, 10, 5)

    def test_intersect_disjoint_is_empty(self):
        assert Rect(0, 0, 5, 5).intersect(Rect(10, 10, 20, 20)).is_empty()

    def test_rect_at(self):
        assert rect_at(3, 4, 5, 6) == Rect(3, 4, 8, 10)

    def test_centered_rect(self):
        """Centred rectangles use integer halves on each side."""
        assert centered_rect(10, 10, 4, 4) == Rect(8, 8, 12, 12)
        assert centered_rect(10, 10, 5, 5) == Rect(8, 8, 12, 12)


class TestDistances:
    """Test distance and ordering helpers."""

    def test_calculate_dist(self):
        assert calculate_dist(0, 0, 3, 4) == 5.0

    def test_sort_by_length(self):
        segs = [(Point(0, 0), Point(10, 0)), (Point(0, 0), Point(1, 0)), (Point(0, 0), Point(5, 0))]
        sort_by_length(segs)
        assert [segment_length(s) for s in segs] == [1.0, 5.0, 10.0]

    def test_edge_key_is_direction_free(self):
        a, b = Point(5, 1), Point(2, 9)
        assert edge_key(a, b) == edge_key(b, a)
        assert edge_key(a, b) == (Point(2, 9), Point(5, 1))

    def test_edge_key_ties_on_y(self):
        assert edge_key((3, 8), (3, 2)) == (Point(3, 2), Point(3, 8))

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1), (1.4, 1), (1.5, 2), (-0.5, -1), (-1.5, -2), (-1.4, -1), (2.0, 2),
    ])
    def test_round_half_away(self, value, expected):
        assert round_half_away(value) == expected

    def test_bounding_rect(self):
        pts = [Point(3, 9), Point(-1, 4), Point(7, 2)]
        assert bounding_rect(pts) == Rect(-1, 2, 7, 9)

    def test_bounding_rect_empty(self):
        assert bounding_rect([]) == Rect(0, 0, 0, 0)


class TestPolygon:
    """Test ray-casting containment."""

    @pytest.fixture
    def square(self):
        return Polygon([Point(10, 10), Point(20, 10), Point(20, 20), Point(10, 20)])

    @pytest.fixture
    def triangle(self):
        return Polygon([Point(0, 0), Point(40, 0), Point(0, 40)])

    def test_interior_points(self, square):
        assert square.contains(15, 15)
        assert square.contains(11, 18)

    def test_exterior_points(self, square):
        assert not square.contains(5, 15)
        assert not square.contains(25, 15)
        assert not square.contains(15, 25)
        assert not square.contains(15, 2)

    def test_half_open_edges(self, square):
        """Left and top edges are inside, right and bottom edges are not."""
        assert square.contains(10, 15)
        assert square.contains(15, 10)
        assert square.contains(10, 10)
        assert not square.contains(20, 15)
        assert not square.contains(15, 20)
        assert not square.contains(20, 20)

    def test_points_in_line_with_vertices(self):
        """Rows and columns through a vertex are counted once."""
        diamond = Polygon([Point(20, 0), Point(40, 20), Point(20, 40), Point(0, 20)])
        assert diamond.contains(20, 5)
        assert diamond.contains(20, 35)
        assert diamond.contains(5, 20)
        assert diamond.contains(35, 20)
        assert not diamond.contains(20, 45)
        assert not diamond.contains(45, 20)
        assert not diamond.contains(-5, 20)

    def test_shared_edge_claimed_once(self):
        left = Polygon([Point(0, 0), Point(30, 0), Point(10, 40), Point(0, 40)])
        right = Polygon([Point(30, 0), Point(50, 0), Point(50, 40), Point(10, 40)])
        for y in range(40):
            for x in range(50):
                assert left.contains(x, y) != right.contains(x, y)

    def test_open_polygon_contains_nothing(self):
        line = Polygon([Point(0, 0), Point(10, 10)])
        assert not line.is_closed()
        assert not line.contains(5, 5)

    def test_bounds(self, triangle):
        assert triangle.bounds() == Rect(0, 0, 40, 40)

    def test_contains_many_matches_scalar(self, square, triangle):
        """The vectorised test agrees with the scalar one at every point."""
        ys, xs = np.mgrid[-2:45, -2:45]
        for poly in (square, triangle):
            many = poly.contains_many(xs, ys)
            scalar = np.array([[poly.contains(int(x), int(y)) for x in range(-2, 45)]
                               for y in range(-2, 45)])
            np.testing.assert_array_equal(many, scalar)

    def test_contains_many_open_polygon(self):
        xs = np.arange(5)
        assert not Polygon([Point(0, 0)]).contains_many(xs, xs).any()
