"""
Districts, their output geometry and building placement.

Process for buildings in one district:
1. Compute, per footprint, every anchor inside the district bounds where
   the footprint (padded by one empty row above and below) fits
2. Place the central footprint at the fitting anchor nearest the site
3. Walk the bounds in shrinking rings; at each anchor roll against the
   building density and choose a footprint (pending minimums first, then a
   weighted draw), invalidating anchors the new building overlaps
"""

from typing import Dict, List, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field

from .alea_prng import AleaPRNG
from .city_config import BuildingConfig, DistrictConfig
from .city_map import CityMap
from .district_types import DistrictType
from .errors import BuildingPlacementError
from .geometry import Point, Rect, calculate_dist, rect_at
from .terrain import TerrainGrid, summed_area_table, window_sum
from .voronoi_graph import VoronoiSite

logger = structlog.get_logger()


class Section(BaseModel):
    """A run of an edge sharing one kind (plain path or bridge)."""

    path: Tuple[Point, Point] = Field(description="First and last point of the run")
    bridge: bool = Field(default=False, description="Whether the run is a bridge")


class Edge(BaseModel):
    """A complete line between two vertices, split into sections."""

    path: Tuple[Point, Point] = Field(description="Edge endpoints")
    sections: List[Section] = Field(default_factory=list)


class Building(BaseModel):
    """A placed footprint; `area.min` is its top-left corner."""

    id: int = Field(description="Footprint id")
    area: Rect = Field(description="Occupied rectangle")


class DistrictStats(BaseModel):
    dock_suitable: int = Field(default=0, description="Units suitable for docks")
    buildable: int = Field(default=0, description="Buildable units")
    bridgeable: int = Field(default=0, description="Bridgeable units")
    buildings_by_id: Dict[int, int] = Field(default_factory=dict, description="Placed footprints by id")
    bridges: int = Field(default=0, description="Bridges on internal roads")


class District(BaseModel):
    """A region of the city, one per Voronoi site."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int = Field(description="District id, equal to its site id")
    type: DistrictType = Field(default=DistrictType.EMPTY, description="District type")
    site: Point = Field(description="District centre")
    buildings: List[Building] = Field(default_factory=list)
    central: Optional[Building] = Field(default=None, description="Central building, if placed")
    stats: DistrictStats = Field(default_factory=DistrictStats)
    has_fortifications: bool = Field(default=False, description="Inside the city wall")
    has_curtain_fortifications: bool = Field(default=False, description="Has its own wall")
    roads: List[Edge] = Field(default_factory=list)
    walls: List[Edge] = Field(default_factory=list)
    towers: List[Rect] = Field(default_factory=list)
    gates: List[Rect] = Field(default_factory=list)

    def add_building(self, x: int, y: int, config: BuildingConfig) -> Building:
        """Record a footprint placed with its top-left corner at x,y."""
        self.stats.buildings_by_id[config.id] = self.stats.buildings_by_id.get(config.id, 0) + 1
        building = Building(id=config.id, area=rect_at(x, y, config.width, config.height))
        self.buildings.append(building)
        return building


class CityStats(BaseModel):
    """City-wide counters."""

    districts_by_type: Dict[DistrictType, int] = Field(default_factory=dict)
    buildings_by_id: Dict[int, int] = Field(default_factory=dict)

    def increment(self, district_type: DistrictType) -> None:
        self.districts_by_type[district_type] = self.count(district_type) + 1

    def decrement(self, district_type: DistrictType) -> None:
        self.districts_by_type[district_type] = self.count(district_type) - 1

    def count(self, district_type: DistrictType) -> int:
        return self.districts_by_type.get(district_type, 0)

    def add_building(self, building_id: int) -> None:
        self.buildings_by_id[building_id] = self.buildings_by_id.get(building_id, 0) + 1


def sort_districts_by_distance(centre: Point, districts: List[District]) -> None:
    """Sort in place, nearest site to centre first (stable)."""
    districts.sort(key=lambda d: calculate_dist(d.site.x, d.site.y, centre.x, centre.y))


class FootprintChooser:
    """
    Two-phase footprint selection for one district.

    Pending minimum-count footprints are placed first wherever they fit;
    otherwise a weighted draw picks among footprints under their caps.
    """

    def __init__(self, config: DistrictConfig, prng: AleaPRNG, city_stats: CityStats):
        self.config = config
        self.prng = prng
        self.city_stats = city_stats
        self.total = sum(b.probability for b in config.buildings)
        self.counts: Dict[int, int] = {b.id: 0 for b in config.buildings}
        self.pending: List[BuildingConfig] = [
            b for b in config.buildings for _ in range(b.min_in_district)
        ]

    def _capped(self, b: BuildingConfig) -> bool:
        if b.max_in_district > 0 and self.counts.get(b.id, 0) >= b.max_in_district:
            return True
        if b.max_in_city > 0 and self.city_stats.buildings_by_id.get(b.id, 0) >= b.max_in_city:
            return True
        return False

    def choose(self, fits) -> Optional[BuildingConfig]:
        """
        Pick a footprint for an anchor.

        Args:
            fits: Callable telling whether a footprint fits at the anchor

        Returns:
            The chosen footprint, or None
        """
        for i, b in enumerate(self.pending):
            if not fits(b):
                continue
            del self.pending[i]
            self.counts[b.id] = self.counts.get(b.id, 0) + 1
            return b

        if self.total <= 0:
            return None

        rv = self.prng.random()
        sofar = 0.0
        for b in self.config.buildings:
            if b.probability <= 0:
                continue
            sofar += b.probability / self.total
            if self._capped(b) or not fits(b):
                continue
            if sofar > rv:
                self.counts[b.id] = self.counts.get(b.id, 0) + 1
                return b
        return None


class DistrictBuilder:
    """
    Places the buildings of one district.

    Fit tests are precomputed per footprint from a summed-area table of
    "free" units (buildable, inside the cell, no structure, no building).
    """

    def __init__(self, district: District, config: DistrictConfig, site: VoronoiSite,
                 city_map: CityMap, terrain: TerrainGrid, prng: AleaPRNG,
                 city_stats: CityStats):
        self.district = district
        self.config = config
        self.site = site
        self.city_map = city_map
        self.city_stats = city_stats
        self.prng = prng
        self.chooser = FootprintChooser(config, prng, city_stats)

        self.bounds = site.bounds()
        footprints = list(config.buildings)
        if config.central is not None:
            footprints.append(config.central)

        pad_x = max([b.width for b in footprints] + [0])
        pad_y = max([b.height for b in footprints] + [0])
        region = Rect(self.bounds.min_x, self.bounds.min_y - 1,
                      self.bounds.max_x + pad_x, self.bounds.max_y + pad_y + 1)

        free = terrain.window(terrain.buildable, region)
        free &= ~city_map.occupied(region)
        free &= site.inside_mask(region)
        sat = summed_area_table(free)

        xs = np.arange(self.bounds.width)[None, :]
        ys = np.arange(self.bounds.height)[:, None]
        self._fits: Dict[Tuple[int, int], np.ndarray] = {}
        for b in footprints:
            key = (b.width, b.height)
            if key in self._fits:
                continue
            filled = window_sum(sat, xs, ys, xs + b.width, ys + b.height + 2)
            self._fits[key] = filled == b.width * (b.height + 2)

    def fits(self, x: int, y: int, b: BuildingConfig) -> bool:
        """Whether footprint b fits with its top-left corner at x,y."""
        if not self.bounds.contains(x, y):
            return False
        return bool(self._fits[(b.width, b.height)][y - self.bounds.min_y, x - self.bounds.min_x])

    def _commit(self, x: int, y: int, b: BuildingConfig) -> Building:
        building = self.district.add_building(x, y, b)
        self.city_stats.add_building(b.id)
        self.city_map.place_building(building.area, b.id)

        # anchors whose padded window now overlaps the new building
        for (fw, fh), fit in self._fits.items():
            x0 = max(x - fw + 1 - self.bounds.min_x, 0)
            x1 = max(x + b.width - self.bounds.min_x, 0)
            y0 = max(y - fh - self.bounds.min_y, 0)
            y1 = max(y + b.height + 1 - self.bounds.min_y, 0)
            fit[y0:y1, x0:x1] = False
        return building

    def place_central(self) -> Optional[Building]:
        """Place the central footprint at the fitting anchor nearest the site."""
        central = self.config.central
        if central is None:
            return None

        fit = self._fits[(central.width, central.height)]
        ys, xs = np.nonzero(fit)
        if len(xs) == 0:
            logger.debug("Central building does not fit", district=self.district.id)
            return None

        ax = xs + self.bounds.min_x
        ay = ys + self.bounds.min_y
        owned = self.site_owns(ax, ay)
        if not owned.any():
            return None
        ax, ay = ax[owned], ay[owned]

        dist = np.sqrt((ax - self.site.x) ** 2 + (ay - self.site.y) ** 2).astype(np.int64)
        # the last of the nearest anchors in row-major order wins
        best = np.flatnonzero(dist == dist.min())[-1]
        building = self._commit(int(ax[best]), int(ay[best]), central)
        self.district.central = building
        return building

    def site_owns(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Anchors labelled with this district in the city map."""
        ids = self.city_map.grid("district_id")[ys - self.city_map.bounds.min_y,
                                                xs - self.city_map.bounds.min_x]
        return ids == self.district.id

    def _try_anchor(self, x: int, y: int) -> None:
        if self.prng.random() >= self.config.building_density:
            return
        b = self.chooser.choose(lambda fp: self.fits(x, y, fp))
        if b is not None:
            self._commit(x, y, b)

    def place_buildings(self) -> None:
        """
        Fill the district by walking rings from the bounds edge inward.

        Raises:
            BuildingPlacementError: If a minimum-count footprint was never placed
        """
        if not self.config.buildings:
            return

        b = self.bounds
        rings = min(b.width, b.height) // 2
        for i in range(rings):
            for x in range(b.min_x + i, b.max_x - i):
                self._try_anchor(x, b.min_y + i)
                self._try_anchor(x, b.max_y - 1 - i)
            for y in range(b.min_y + i, b.max_y - i):
                self._try_anchor(b.min_x + i, y)
                self._try_anchor(b.max_x - 1 - i, y)

        if self.chooser.pending:
            missing = sorted({p.id for p in self.chooser.pending})
            logger.error("Unable to place required buildings", district=self.district.id,
                         footprints=missing)
            raise BuildingPlacementError(
                f"district {self.district.id} could not fit required footprints {missing}"
            )
