"""Tests for boundary extraction around a set of cells."""

import pytest

from py_citygraph.core.alea_prng import AleaPRNG
from py_citygraph.core.circuit import circuit
from py_citygraph.core.geometry import Point, Rect, edge_key
from py_citygraph.core.voronoi_graph import generate_voronoi_graph

BOUNDS = Rect(0, 0, 300, 300)


@pytest.fixture
def grid_graph():
    """3x3 sites on a regular grid, so every cell is a 100x100 square."""
    sites = [(50 + 100 * i, 50 + 100 * j) for j in range(3) for i in range(3)]
    return generate_voronoi_graph(BOUNDS, sites)


class TestCircuit:
    """Test wall circuit extraction."""

    def test_single_interior_cell(self, grid_graph):
        """The middle cell is enclosed by exactly its own four edges."""
        inside = [grid_graph.site_by_id(4)]
        outside = [s for s in grid_graph.sites if s.id != 4]
        wall = circuit(BOUNDS, inside, outside)

        assert {edge_key(*e) for e in wall} == grid_graph.site_by_id(4).edge_keys()
        assert len(wall) == 4

    def test_shared_inside_edges_removed(self, grid_graph):
        """Edges between two inside cells are not part of the wall."""
        inside = [grid_graph.site_by_id(4), grid_graph.site_by_id(5)]
        outside = [s for s in grid_graph.sites if s.id not in (4, 5)]
        wall = circuit(BOUNDS, inside, outside)
        keys = {edge_key(*e) for e in wall}

        shared = grid_graph.site_by_id(4).edge_keys() & grid_graph.site_by_id(5).edge_keys()
        assert shared
        assert not (keys & shared)
        # the right cell touches the map edge, its border edge closes the loop
        assert edge_key(Point(300, 100), Point(300, 200)) in keys

    def test_corner_cell_closed_along_border(self, grid_graph):
        inside = [grid_graph.site_by_id(0)]
        outside = [s for s in grid_graph.sites if s.id != 0]
        keys = {edge_key(*e) for e in circuit(BOUNDS, inside, outside)}
        assert keys == grid_graph.site_by_id(0).edge_keys()

    def test_each_edge_once(self, grid_graph):
        inside = [grid_graph.site_by_id(i) for i in (1, 4)]
        outside = [s for s in grid_graph.sites if s.id not in (1, 4)]
        keys = [edge_key(*e) for e in circuit(BOUNDS, inside, outside)]
        assert len(keys) == len(set(keys))
        expected = grid_graph.site_by_id(1).edge_keys() ^ grid_graph.site_by_id(4).edge_keys()
        assert set(keys) == expected

    def test_all_inside_leaves_frame(self, grid_graph):
        """With nothing outside only the edges along the map frame remain."""
        keys = {edge_key(*e) for e in circuit(BOUNDS, list(grid_graph.sites), [])}
        frame = set()
        for i in range(3):
            lo, hi = 100 * i, 100 * (i + 1)
            frame.add(edge_key(Point(lo, 0), Point(hi, 0)))
            frame.add(edge_key(Point(lo, 300), Point(hi, 300)))
            frame.add(edge_key(Point(0, lo), Point(0, hi)))
            frame.add(edge_key(Point(300, lo), Point(300, hi)))
        assert keys == frame

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_input_order_does_not_matter(self, grid_graph, seed):
        inside = [grid_graph.site_by_id(i) for i in (0, 1, 4, 7)]
        outside = [s for s in grid_graph.sites if s.id not in (0, 1, 4, 7)]
        expected = {edge_key(*e) for e in circuit(BOUNDS, inside, outside)}

        prng = AleaPRNG(seed)
        shuffled_in = sorted(inside, key=lambda s: prng.random())
        shuffled_out = sorted(outside, key=lambda s: prng.random())
        keys = {edge_key(*e) for e in circuit(BOUNDS, shuffled_in, shuffled_out)}
        assert keys == expected

    def test_empty_inside(self, grid_graph):
        assert circuit(BOUNDS, [], list(grid_graph.sites)) == []
