"""Run classification: splitting a straight edge into road, bridge and wall runs."""

from enum import IntEnum
from typing import List, NamedTuple, Optional, Sequence

from .city_map import CityMap
from .geometry import Point, Segment
from .rasterize import points_between
from .terrain import TerrainGrid
from .voronoi_graph import VoronoiSite


class Run(IntEnum):
    NOTHING = 0
    ROAD = 1
    BRIDGE = 2
    WALL = 3


class LineRuns(NamedTuple):
    roads: List[Segment]
    bridges: List[Segment]
    walls: List[Segment]

    def is_empty(self) -> bool:
        return not self.roads and not self.bridges


def classify_point(p: Point, city_map: CityMap, terrain: TerrainGrid,
                   site: Optional[VoronoiSite] = None) -> Run:
    """Classification of a single unit, highest priority rule first."""
    if site is not None and not site.contains(p.x, p.y):
        return Run.NOTHING
    if city_map.building_id(p.x, p.y) != 0:
        return Run.NOTHING
    if city_map.is_fortification(p.x, p.y):
        return Run.WALL
    if terrain.can_build_on(p.x, p.y):
        return Run.ROAD
    if terrain.can_bridge_over(p.x, p.y):
        return Run.BRIDGE
    return Run.NOTHING


def classify_path(path: Sequence[Point], city_map: CityMap, terrain: TerrainGrid,
                  site: Optional[VoronoiSite] = None) -> List[Run]:
    return [classify_point(p, city_map, terrain, site) for p in path]


def classify_line(start: Sequence[int], end: Sequence[int], city_map: CityMap,
                  terrain: TerrainGrid, site: Optional[VoronoiSite] = None) -> LineRuns:
    """
    Break the straight path start -> end into same-kind runs.

    Each unit of the rasterized path is classified (outside `site` or under a
    building: nothing; already fortified: wall; buildable: road; bridgeable:
    bridge). Consecutive equal classes merge into one run reported as its
    (first, last) points; runs of nothing are skipped. A bridge run is only
    reported once a road run has been, so a bridge never opens straight onto
    unusable land. The last run of the path is always reported.

    Args:
        start: First endpoint
        end: Second endpoint
        city_map: Map consulted for buildings and drawn fortifications
        terrain: Sampled outline
        site: Optional cell the path must stay inside

    Returns:
        LineRuns of road, bridge and wall segments
    """
    path = points_between(start, end)
    kinds = classify_path(path, city_map, terrain, site)

    runs = LineRuns([], [], [])
    run_start = 0
    for i in range(1, len(path) + 1):
        if i < len(path) and kinds[i] == kinds[run_start]:
            continue

        kind = kinds[run_start]
        segment = (path[run_start], path[i - 1])
        final = i == len(path)
        if kind == Run.ROAD:
            runs.roads.append(segment)
        elif kind == Run.WALL:
            runs.walls.append(segment)
        elif kind == Run.BRIDGE and (final or runs.roads):
            runs.bridges.append(segment)

        run_start = i

    return runs
