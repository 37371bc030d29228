"""
Spatial map: what occupies every unit of the city area.

Each unit holds one fixed-size record (district id, district type, building
id, structure flags) in a flat numpy arena indexed by `y * width + x`
(relative to the map origin). Reads outside the map return an "absent"
value instead of failing, since callers routinely read near the edges.

Roads, bridges, walls, towers and gatehouses are first drawn onto a
separate sketch surface with thick-line and rectangle primitives. Towers
and gatehouses mask their area so later lines cannot paint over them.
`end_draw` then commits the sketch into the permanent flags.
"""

from enum import IntEnum, IntFlag
from typing import Sequence, Tuple

import numpy as np
import shapely
import structlog
from scipy import ndimage
from shapely.geometry import LineString
from shapely.geometry import Point as ShapelyPoint

from .district_types import DistrictType
from .geometry import Rect
from .rasterize import points_between
from .terrain import TerrainGrid

logger = structlog.get_logger()


class Feature(IntFlag):
    """Structure flags stored per unit."""
    NONE = 0
    ROAD = 1
    BRIDGE = 2
    WALL = 4
    TOWER = 8
    GATEHOUSE = 16


STRUCTURES = Feature.ROAD | Feature.BRIDGE | Feature.WALL | Feature.TOWER | Feature.GATEHOUSE
FORTIFICATIONS = Feature.WALL | Feature.TOWER | Feature.GATEHOUSE


class Ink(IntEnum):
    """What was last painted on a unit of the sketch surface."""
    NONE = 0
    ROAD = 1
    BRIDGE = 2
    WALL = 3
    TOWER = 4
    GATEHOUSE = 5


_INK_FEATURE = {
    Ink.ROAD: Feature.ROAD,
    Ink.BRIDGE: Feature.BRIDGE,
    Ink.WALL: Feature.WALL,
    Ink.TOWER: Feature.TOWER,
    Ink.GATEHOUSE: Feature.GATEHOUSE,
}

CELL_DTYPE = np.dtype([
    ("district_id", "<u2"),
    ("district_type", "u1"),
    ("building_id", "<u4"),
    ("flags", "u1"),
])


class CityMap:
    """Dense grid of unit records plus the sketch surface used while drawing."""

    def __init__(self, bounds: Rect):
        self.bounds = bounds
        self.width = bounds.width
        self.height = bounds.height
        self.cells = np.zeros(self.width * self.height, dtype=CELL_DTYPE)

        self._ink = np.zeros((self.height, self.width), dtype=np.uint8)
        self._drawable = np.ones((self.height, self.width), dtype=bool)
        self.finalized = False

    def in_bounds(self, x: int, y: int) -> bool:
        return self.bounds.contains(x, y)

    def _index(self, x: int, y: int) -> int:
        return (y - self.bounds.min_y) * self.width + (x - self.bounds.min_x)

    def grid(self, field: str) -> np.ndarray:
        """(height, width) view of one record field."""
        return self.cells[field].reshape(self.height, self.width)

    def _slices(self, area: Rect) -> Tuple[slice, slice]:
        return (slice(area.min_y - self.bounds.min_y, area.max_y - self.bounds.min_y),
                slice(area.min_x - self.bounds.min_x, area.max_x - self.bounds.min_x))

    # --- districts -------------------------------------------------------

    def district(self, x: int, y: int) -> Tuple[DistrictType, int]:
        """District type and id at x,y; (EMPTY, -1) outside the map."""
        if not self.in_bounds(x, y):
            return DistrictType.EMPTY, -1
        rec = self.cells[self._index(x, y)]
        return DistrictType.from_id(int(rec["district_type"])), int(rec["district_id"])

    def set_district(self, x: int, y: int, district_type: DistrictType, district_id: int) -> None:
        if not self.in_bounds(x, y):
            return
        i = self._index(x, y)
        self.cells["district_id"][i] = district_id
        self.cells["district_type"][i] = district_type.id

    def assign_districts(self, labels: np.ndarray, types: Sequence[DistrictType]) -> None:
        """
        Set every unit's district from a whole-map label grid.

        Args:
            labels: (height, width) array of district ids
            types: District type per district id
        """
        type_ids = np.array([t.id for t in types], dtype=np.uint8)
        self.grid("district_id")[:] = labels
        self.grid("district_type")[:] = type_ids[labels]

    # --- buildings -------------------------------------------------------

    def building_id(self, x: int, y: int) -> int:
        """Building id at x,y: 0 for no building, -1 outside the map."""
        if not self.in_bounds(x, y):
            return -1
        return int(self.cells["building_id"][self._index(x, y)])

    def set_building_id(self, x: int, y: int, building_id: int) -> None:
        if not self.in_bounds(x, y):
            return
        self.cells["building_id"][self._index(x, y)] = building_id

    def place_building(self, area: Rect, building_id: int) -> None:
        """Stamp a building id over area (clipped to the map)."""
        clip = area.intersect(self.bounds)
        if clip.is_empty():
            return
        self.grid("building_id")[self._slices(clip)] = building_id

    # --- structure flags -------------------------------------------------

    def flags(self, x: int, y: int) -> Feature:
        if not self.in_bounds(x, y):
            return Feature.NONE
        return Feature(int(self.cells["flags"][self._index(x, y)]))

    def set_flag(self, x: int, y: int, feature: Feature) -> None:
        if not self.in_bounds(x, y):
            return
        self.cells["flags"][self._index(x, y)] |= int(feature)

    def is_road(self, x: int, y: int) -> bool:
        return bool(self.flags(x, y) & Feature.ROAD)

    def is_bridge(self, x: int, y: int) -> bool:
        return bool(self.flags(x, y) & Feature.BRIDGE)

    def is_wall(self, x: int, y: int) -> bool:
        return bool(self.flags(x, y) & Feature.WALL)

    def is_tower(self, x: int, y: int) -> bool:
        return bool(self.flags(x, y) & Feature.TOWER)

    def is_gatehouse(self, x: int, y: int) -> bool:
        return bool(self.flags(x, y) & Feature.GATEHOUSE)

    def is_occupied(self, x: int, y: int) -> bool:
        """Any structure flag or building at x,y."""
        if not self.in_bounds(x, y):
            return False
        rec = self.cells[self._index(x, y)]
        return bool(rec["flags"] & int(STRUCTURES)) or int(rec["building_id"]) != 0

    def occupied(self, area: Rect) -> np.ndarray:
        """
        Occupancy over area as a (height, width) bool array.

        Units outside the map count as unoccupied.
        """
        out = np.zeros((area.height, area.width), dtype=bool)
        clip = area.intersect(self.bounds)
        if clip.is_empty():
            return out
        rows, cols = self._slices(clip)
        taken = ((self.grid("flags")[rows, cols] & int(STRUCTURES)) != 0) | \
                (self.grid("building_id")[rows, cols] != 0)
        out[clip.min_y - area.min_y:clip.max_y - area.min_y,
            clip.min_x - area.min_x:clip.max_x - area.min_x] = taken
        return out

    # --- sketch surface --------------------------------------------------

    def ink(self, x: int, y: int) -> Ink:
        if not self.in_bounds(x, y):
            return Ink.NONE
        return Ink(int(self._ink[y - self.bounds.min_y, x - self.bounds.min_x]))

    def ink_window(self, area: Rect) -> np.ndarray:
        """Sketch codes over area, Ink.NONE outside the map."""
        out = np.zeros((area.height, area.width), dtype=np.uint8)
        clip = area.intersect(self.bounds)
        if clip.is_empty():
            return out
        out[clip.min_y - area.min_y:clip.max_y - area.min_y,
            clip.min_x - area.min_x:clip.max_x - area.min_x] = self._ink[self._slices(clip)]
        return out

    def is_fortification(self, x: int, y: int) -> bool:
        """Wall, tower or gatehouse drawn at x,y."""
        return self.ink(x, y) in (Ink.WALL, Ink.TOWER, Ink.GATEHOUSE)

    def draw_road(self, a: Sequence[int], b: Sequence[int], width: int) -> None:
        self._draw_line(a, b, width, Ink.ROAD)

    def draw_bridge(self, a: Sequence[int], b: Sequence[int], width: int) -> None:
        self._draw_line(a, b, width, Ink.BRIDGE)

    def draw_wall(self, a: Sequence[int], b: Sequence[int], width: int) -> None:
        self._draw_line(a, b, width, Ink.WALL)

    def draw_tower(self, area: Rect) -> None:
        self._fill_rect(area, Ink.TOWER)

    def draw_gatehouse(self, area: Rect) -> None:
        self._fill_rect(area, Ink.GATEHOUSE)

    def _fill_rect(self, area: Rect, ink: Ink) -> None:
        clip = area.intersect(self.bounds)
        if clip.is_empty():
            return
        rows, cols = self._slices(clip)
        window = self._ink[rows, cols]
        window[self._drawable[rows, cols]] = ink
        self._drawable[rows, cols] = False

    def _draw_line(self, a: Sequence[int], b: Sequence[int], width: int, ink: Ink) -> None:
        """
        Paint a thick line with square caps.

        A unit is painted when its centre lies inside the stroked outline; the
        one unit wide centre line is always painted so thin lines stay
        connected. Masked units are left untouched.
        """
        ax, ay, bx, by = int(a[0]), int(a[1]), int(b[0]), int(b[1])
        half = width / 2.0

        if half > 0:
            if (ax, ay) == (bx, by):
                shape = ShapelyPoint(ax, ay).buffer(half, cap_style="square")
            else:
                shape = LineString([(ax, ay), (bx, by)]).buffer(half, cap_style="square")

            min_x, min_y, max_x, max_y = shape.bounds
            area = Rect(int(np.floor(min_x)) - 1, int(np.floor(min_y)) - 1,
                        int(np.ceil(max_x)) + 1, int(np.ceil(max_y)) + 1).intersect(self.bounds)
            if not area.is_empty():
                ys, xs = np.mgrid[area.min_y:area.max_y, area.min_x:area.max_x]
                inside = shapely.contains_xy(shape, xs + 0.5, ys + 0.5)
                rows, cols = self._slices(area)
                paint = inside & self._drawable[rows, cols]
                self._ink[rows, cols][paint] = ink

        for p in points_between((ax, ay), (bx, by)):
            if not self.in_bounds(p.x, p.y):
                continue
            row, col = p.y - self.bounds.min_y, p.x - self.bounds.min_x
            if self._drawable[row, col]:
                self._ink[row, col] = ink

    def end_draw(self, road_radius: int, terrain: TerrainGrid) -> None:
        """
        Commit the sketch into the permanent structure flags.

        Every sketched unit becomes the matching flag. In addition, unsketched
        units that are buildable or bridgeable and have a fortification within
        `road_radius` (a [x - r, x + r) window) become road, or bridge where
        bridgeable, so walls are never left without access. A radius of 0
        disables the promotion.

        Args:
            road_radius: Promotion window radius
            terrain: Sampled terrain over the same bounds as this map
        """
        flags = np.zeros((self.height, self.width), dtype=np.uint8)
        for ink, feature in _INK_FEATURE.items():
            flags[self._ink == ink] = int(feature)

        promoted = 0
        if road_radius > 0:
            fort = np.isin(self._ink, (Ink.WALL, Ink.TOWER, Ink.GATEHOUSE))
            near = ndimage.maximum_filter(fort.astype(np.uint8), size=2 * road_radius,
                                          mode="constant", cval=0) > 0
            buildable = terrain.window(terrain.buildable, self.bounds)
            bridgeable = terrain.window(terrain.bridgeable, self.bounds)
            candidates = (self._ink == Ink.NONE) & (buildable | bridgeable) & near
            flags[candidates & bridgeable] = int(Feature.BRIDGE)
            flags[candidates & ~bridgeable] = int(Feature.ROAD)
            promoted = int(candidates.sum())

        self.grid("flags")[:] = flags
        self.finalized = True

        logger.info("City map finalised", roads=int(((flags & Feature.ROAD) != 0).sum()),
                    bridges=int(((flags & Feature.BRIDGE) != 0).sum()),
                    fortifications=int(((flags & int(FORTIFICATIONS)) != 0).sum()),
                    promoted=promoted)

    def feature_count(self, feature: Feature) -> int:
        return int(((self.grid("flags") & int(feature)) != 0).sum())
