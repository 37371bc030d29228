"""Tests for terrain sampling and window counts."""

import numpy as np

from py_citygraph.core.geometry import Rect
from py_citygraph.core.terrain import TerrainGrid, summed_area_table, window_sum


class TestTerrainGrid:
    """Test the sampled outline."""

    def test_sample_shapes(self, river_terrain):
        assert river_terrain.buildable.shape == (100, 100)
        assert river_terrain.bridgeable.sum() == 10 * 100
        assert river_terrain.buildable.sum() == 90 * 100
        assert river_terrain.dock.sum() == 2 * 100

    def test_point_queries(self, river_terrain):
        assert river_terrain.can_build_on(10, 10)
        assert not river_terrain.can_build_on(50, 10)
        assert river_terrain.can_bridge_over(50, 10)
        assert river_terrain.is_suitable_dock(44, 3)

    def test_out_of_bounds_is_unusable(self, land_terrain):
        assert not land_terrain.can_build_on(-1, 5)
        assert not land_terrain.can_build_on(100, 5)
        assert not land_terrain.can_bridge_over(5, 100)
        assert not land_terrain.is_suitable_dock(-3, -3)

    def test_offset_bounds(self, land_outline):
        terrain = TerrainGrid.sample(land_outline, Rect(10, 20, 30, 25))
        assert terrain.buildable.shape == (5, 20)
        assert terrain.can_build_on(10, 20)
        assert not terrain.can_build_on(9, 20)
        assert not terrain.can_build_on(10, 25)

    def test_window_pads_outside(self, land_terrain):
        w = land_terrain.window(land_terrain.buildable, Rect(-5, -5, 5, 5))
        assert w.shape == (10, 10)
        assert w.sum() == 25
        assert not w[:5].any()
        assert w[5:, 5:].all()

    def test_buildable_count(self, river_terrain):
        assert river_terrain.buildable_count(Rect(0, 0, 10, 10)) == 100
        assert river_terrain.buildable_count(Rect(40, 0, 60, 10)) == 100
        assert river_terrain.buildable_count(Rect(-10, -10, 5, 5)) == 25
        assert river_terrain.buildable_count(Rect(200, 200, 210, 210)) == 0


class TestSummedAreaTable:
    """Test integral image helpers."""

    def test_window_sum(self):
        grid = np.arange(20).reshape(4, 5) % 3 == 0
        sat = summed_area_table(grid)
        assert sat.shape == (5, 6)
        for (x0, y0, x1, y1) in [(0, 0, 5, 4), (1, 1, 3, 3), (2, 0, 3, 4), (4, 3, 5, 4)]:
            assert window_sum(sat, x0, y0, x1, y1) == grid[y0:y1, x0:x1].sum()

    def test_window_sum_vectorised(self):
        grid = np.ones((6, 6), dtype=bool)
        sat = summed_area_table(grid)
        xs = np.arange(4)[None, :]
        ys = np.arange(4)[:, None]
        sums = window_sum(sat, xs, ys, xs + 2, ys + 3)
        assert sums.shape == (4, 4)
        assert (sums == 6).all()
