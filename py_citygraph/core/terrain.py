"""
Terrain outline supplied by the caller, and its per-build sampled grid.

The outline answers three questions about any coordinate: can we build on
it, can we bridge over it and would it suit a docks district. A build asks
each question once per unit of its area and keeps the answers in boolean
arrays so window counts and fit tests can be vectorised.
"""

from typing import Optional, Protocol

import numpy as np
import structlog

from .geometry import Rect

logger = structlog.get_logger()


class Outline(Protocol):
    """Rough description of what lies at each coordinate."""

    def can_build_on(self, x: int, y: int) -> bool:
        """True if buildings, roads, towers, gatehouses may be placed here."""
        ...

    def can_bridge_over(self, x: int, y: int) -> bool:
        """True if bridges (and wall spans) may cross this coordinate."""
        ...

    def is_suitable_dock(self, x: int, y: int) -> bool:
        """True if this coordinate counts towards a docks district."""
        ...


class TerrainGrid:
    """
    Outline answers for every unit of an area.

    Coordinates outside the sampled area are treated as unusable terrain.

    Attributes:
        bounds: Sampled area
        buildable: (height, width) bool array
        bridgeable: (height, width) bool array
        dock: (height, width) bool array
    """

    def __init__(self, bounds: Rect, buildable: np.ndarray, bridgeable: np.ndarray,
                 dock: np.ndarray):
        self.bounds = bounds
        self.buildable = buildable
        self.bridgeable = bridgeable
        self.dock = dock
        self._buildable_sat: Optional[np.ndarray] = None

    @classmethod
    def sample(cls, outline: Outline, bounds: Rect) -> "TerrainGrid":
        """Query the outline once for every coordinate of bounds."""
        shape = (bounds.height, bounds.width)
        buildable = np.zeros(shape, dtype=bool)
        bridgeable = np.zeros(shape, dtype=bool)
        dock = np.zeros(shape, dtype=bool)

        for row, y in enumerate(range(bounds.min_y, bounds.max_y)):
            for col, x in enumerate(range(bounds.min_x, bounds.max_x)):
                buildable[row, col] = outline.can_build_on(x, y)
                bridgeable[row, col] = outline.can_bridge_over(x, y)
                dock[row, col] = outline.is_suitable_dock(x, y)

        logger.info("Terrain sampled", width=bounds.width, height=bounds.height,
                    buildable=int(buildable.sum()), bridgeable=int(bridgeable.sum()),
                    dock=int(dock.sum()))
        return cls(bounds, buildable, bridgeable, dock)

    def _at(self, grid: np.ndarray, x: int, y: int) -> bool:
        if not self.bounds.contains(x, y):
            return False
        return bool(grid[y - self.bounds.min_y, x - self.bounds.min_x])

    def can_build_on(self, x: int, y: int) -> bool:
        return self._at(self.buildable, x, y)

    def can_bridge_over(self, x: int, y: int) -> bool:
        return self._at(self.bridgeable, x, y)

    def is_suitable_dock(self, x: int, y: int) -> bool:
        return self._at(self.dock, x, y)

    def window(self, grid: np.ndarray, area: Rect) -> np.ndarray:
        """
        Copy of `grid` over `area`, padded with False where area leaves bounds.

        Returns:
            (area.height, area.width) bool array
        """
        out = np.zeros((max(area.height, 0), max(area.width, 0)), dtype=bool)
        clip = area.intersect(self.bounds)
        if clip.is_empty():
            return out
        out[clip.min_y - area.min_y:clip.max_y - area.min_y,
            clip.min_x - area.min_x:clip.max_x - area.min_x] = grid[
            clip.min_y - self.bounds.min_y:clip.max_y - self.bounds.min_y,
            clip.min_x - self.bounds.min_x:clip.max_x - self.bounds.min_x]
        return out

    def buildable_count(self, area: Rect) -> int:
        """Number of buildable units in area, in constant time."""
        if self._buildable_sat is None:
            self._buildable_sat = summed_area_table(self.buildable)

        clip = area.intersect(self.bounds)
        if clip.is_empty():
            return 0
        return window_sum(self._buildable_sat,
                          clip.min_x - self.bounds.min_x, clip.min_y - self.bounds.min_y,
                          clip.max_x - self.bounds.min_x, clip.max_y - self.bounds.min_y)


def summed_area_table(grid: np.ndarray) -> np.ndarray:
    """Integral image with a leading zero row and column."""
    sat = np.zeros((grid.shape[0] + 1, grid.shape[1] + 1), dtype=np.int64)
    sat[1:, 1:] = np.cumsum(np.cumsum(grid, axis=0, dtype=np.int64), axis=1)
    return sat


def window_sum(sat: np.ndarray, x0, y0, x1, y1):
    """Sum of the source grid over [y0, y1) x [x0, x1); works on arrays too."""
    return sat[y1, x1] - sat[y0, x1] - sat[y1, x0] + sat[y0, x0]
