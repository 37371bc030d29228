"""Tests for the Voronoi spatial index."""

import numpy as np
import pytest

from py_citygraph.core.geometry import Point, Rect, edge_key
from py_citygraph.core.voronoi_graph import (
    VoronoiCell, generate_voronoi_graph, repair_cells, voronoi_cells,
)

BOUNDS = Rect(0, 0, 100, 100)


class TestVoronoiCells:
    """Test raw cell construction."""

    def test_single_site_is_whole_frame(self):
        cells = voronoi_cells(BOUNDS, [(50.0, 50.0)])
        assert len(cells) == 1
        corners = {tuple(e[0]) for e in cells[0].edges}
        assert corners == {(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)}

    def test_two_sites_split_at_bisector(self):
        cells = voronoi_cells(BOUNDS, [(25.0, 50.0), (75.0, 50.0)])
        left = {tuple(e[0]) for e in cells[0].edges}
        right = {tuple(e[0]) for e in cells[1].edges}
        assert (50.0, 0.0) in left and (50.0, 100.0) in left
        assert (50.0, 0.0) in right and (50.0, 100.0) in right
        assert max(p[0] for p in left) == 50.0
        assert min(p[0] for p in right) == 50.0

    def test_edges_form_closed_walk(self):
        cells = voronoi_cells(BOUNDS, [(10.0, 10.0), (80.0, 30.0), (40.0, 70.0)])
        for cell in cells:
            for (a, b), (c, d) in zip(cell.edges, cell.edges[1:] + cell.edges[:1]):
                assert b == c


class TestRepairCells:
    """Test vertex merging."""

    def test_near_vertices_are_merged(self):
        a = VoronoiCell((0.0, 0.0), [[(0.0, 0.0), (10.0, 0.0)], [(10.0, 0.0), (0.0, 10.0)],
                                     [(0.0, 10.0), (0.0, 0.0)]])
        b = VoronoiCell((9.0, 9.0), [[(10.0 + 1e-12, 0.0), (10.0, 10.0)],
                                     [(10.0, 10.0), (0.0, 10.0)],
                                     [(0.0, 10.0), (10.0 + 1e-12, 0.0)]])
        repair_cells([a, b], 1e-8)
        verts_a = {e[0] for e in a.edges}
        verts_b = {e[0] for e in b.edges}
        assert (10.0, 0.0) in verts_b
        assert (10.0 + 1e-12, 0.0) not in verts_b
        assert verts_a & verts_b == {(10.0, 0.0), (0.0, 10.0)}

    def test_collapsed_edges_dropped(self):
        cell = VoronoiCell((5.0, 5.0), [[(0.0, 0.0), (10.0, 0.0)], [(10.0, 0.0), (10.0, 1e-12)],
                                        [(10.0, 1e-12), (0.0, 10.0)], [(0.0, 10.0), (0.0, 0.0)]])
        repair_cells([cell], 1e-8)
        assert len(cell.edges) == 3
        for (a, b), (c, d) in zip(cell.edges, cell.edges[1:] + cell.edges[:1]):
            assert b == c


class TestVoronoiGraph:
    """Test the integer site geometry."""

    @pytest.fixture
    def graph(self):
        return generate_voronoi_graph(BOUNDS, [(20, 20), (80, 20), (50, 80), (50, 45)])

    def test_requires_sites(self):
        with pytest.raises(ValueError):
            generate_voronoi_graph(BOUNDS, [])

    def test_site_ids_follow_input_order(self, graph):
        assert len(graph) == 4
        assert [s.point for s in graph.sites] == [Point(20, 20), Point(80, 20),
                                                   Point(50, 80), Point(50, 45)]
        assert graph.site_by_id(2).point == Point(50, 80)
        assert graph.site_by_id(4) is None
        assert graph.site_by_id(-1) is None

    def test_site_contains_its_centre(self, graph):
        for site in graph.sites:
            assert site.contains(site.x, site.y)

    def test_site_for_nearest(self, graph):
        assert graph.site_for(22, 18).id == 0
        assert graph.site_for(99, 0).id == 1
        assert graph.site_for(50, 99).id == 2
        assert graph.site_for(50, 50).id == 3

    def test_site_for_tie_lowest_id(self):
        graph = generate_voronoi_graph(BOUNDS, [(40, 50), (60, 50)])
        assert graph.site_for(50, 50).id == 0

    def test_nearest_site_grid_matches_site_for(self, graph):
        area = Rect(0, 0, 100, 100)
        labels = graph.nearest_site_grid(area)
        assert labels.shape == (100, 100)
        for y in range(0, 100, 7):
            for x in range(0, 100, 7):
                assert labels[y, x] == graph.site_for(x, y).id

    def test_vertices_are_integers_inside_bounds(self, graph):
        for site in graph.sites:
            for v in site.vertices():
                assert isinstance(v.x, int) and isinstance(v.y, int)
                assert 0 <= v.x <= 100 and 0 <= v.y <= 100

    def test_shared_edges_are_identical(self, graph):
        """Neighbouring cells list the same integer edge."""
        a, b = graph.site_by_id(0), graph.site_by_id(3)
        assert a.edge_keys() & b.edge_keys()

    def test_neighbours(self, graph):
        centre = graph.site_by_id(3)
        ids = sorted(n.site.id for n in centre.neighbours())
        assert ids == [0, 1, 2]
        for n in centre.neighbours():
            for e in n.edges:
                assert edge_key(*e) in centre.edge_keys()

    def test_inside_mask_matches_contains(self, graph):
        site = graph.site_by_id(0)
        bounds = site.bounds()
        mask = site.inside_mask()
        assert mask.shape == (bounds.height, bounds.width)
        for y in range(bounds.min_y, bounds.max_y, 3):
            for x in range(bounds.min_x, bounds.max_x, 3):
                assert mask[y - bounds.min_y, x - bounds.min_x] == site.contains(x, y)

    def test_all_contains(self, graph):
        site = graph.site_by_id(3)
        points = list(site.all_contains())
        assert Point(50, 45) in points
        assert len(points) == int(site.inside_mask().sum())


SITE_SETS = [
    [(20, 20), (80, 20), (50, 80), (50, 45)],
    [(x, y) for y in (17, 50, 83) for x in (17, 50, 83)],
    [(10, 10), (90, 15), (35, 60), (70, 75), (15, 85), (60, 30)],
    [(5, 50), (95, 50), (50, 5), (50, 95), (50, 50)],
    [(12, 31), (47, 8), (88, 42), (63, 67), (29, 90), (91, 93), (40, 52)],
]


class TestCellPartition:
    """Test that cells tile the bounds without overlap."""

    @pytest.mark.parametrize("sites", SITE_SETS)
    def test_every_point_in_exactly_one_cell(self, sites):
        graph = generate_voronoi_graph(BOUNDS, sites)
        owners = np.zeros((BOUNDS.height, BOUNDS.width), dtype=np.int32)
        for site in graph.sites:
            owners += site.inside_mask(BOUNDS)
        assert (owners == 1).all()

    @pytest.mark.parametrize("sites", SITE_SETS)
    def test_site_owns_its_own_point(self, sites):
        graph = generate_voronoi_graph(BOUNDS, sites)
        for site in graph.sites:
            assert site.contains(site.x, site.y)
            others = [s for s in graph.sites if s.id != site.id]
            assert not any(o.contains(site.x, site.y) for o in others)

    def test_whole_column_through_vertex(self):
        """Points straight above and below a vertex are not double counted."""
        graph = generate_voronoi_graph(BOUNDS, SITE_SETS[0])
        for y in range(BOUNDS.min_y, BOUNDS.max_y):
            owners = [s.id for s in graph.sites if s.contains(50, y)]
            assert len(owners) == 1
