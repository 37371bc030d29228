"""Shared fixtures: simple terrain outlines."""

import pytest

from py_citygraph.core.geometry import Rect
from py_citygraph.core.terrain import TerrainGrid


class CoastRiverOutline:
    """Sea for y <= 50, a river for 495 <= x <= 505, land elsewhere."""

    def can_build_on(self, x, y):
        if y <= 50:
            return False
        return not self.can_bridge_over(x, y)

    def can_bridge_over(self, x, y):
        return 495 <= x <= 505 and y > 50

    def is_suitable_dock(self, x, y):
        return y == 50


class CoastOutline:
    """Sea for y <= 50, land elsewhere."""

    def can_build_on(self, x, y):
        return y > 50

    def can_bridge_over(self, x, y):
        return False

    def is_suitable_dock(self, x, y):
        return y == 50


class LandOutline:
    """Buildable everywhere."""

    def can_build_on(self, x, y):
        return True

    def can_bridge_over(self, x, y):
        return False

    def is_suitable_dock(self, x, y):
        return False


class RiverOutline:
    """A vertical river at 45 <= x <= 54, land elsewhere."""

    def can_build_on(self, x, y):
        return not self.can_bridge_over(x, y)

    def can_bridge_over(self, x, y):
        return 45 <= x <= 54

    def is_suitable_dock(self, x, y):
        return x == 44 or x == 55


@pytest.fixture(scope="session")
def coast_river_outline():
    return CoastRiverOutline()


@pytest.fixture(scope="session")
def coast_outline():
    return CoastOutline()


@pytest.fixture(scope="session")
def land_outline():
    return LandOutline()


@pytest.fixture(scope="session")
def river_outline():
    return RiverOutline()


@pytest.fixture
def land_terrain(land_outline):
    """100x100 all-buildable terrain grid."""
    return TerrainGrid.sample(land_outline, Rect(0, 0, 100, 100))


@pytest.fixture
def river_terrain(river_outline):
    """100x100 terrain with a river 10 units wide down the middle."""
    return TerrainGrid.sample(river_outline, Rect(0, 0, 100, 100))
