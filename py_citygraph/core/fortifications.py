"""
Fortification placement geometry: gatehouses, towers and fortified districts.

A gate sits in the middle of a wall edge between an inside and an outside
district. The gatehouse is indented into the inside district, flanked by
two towers on the wall edge and two more at the corners of the indent;
three short wall stubs close the indent. Towers elsewhere are spread along
walls at a minimum spacing.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import structlog

from .city_map import CityMap, Ink
from .districts import District, sort_districts_by_distance
from .errors import GateDoesNotFitError
from .geometry import Point, Rect, Segment, calculate_dist, centered_rect
from .rasterize import points_between
from .terrain import TerrainGrid
from .voronoi_graph import VoronoiGraph, VoronoiSite

logger = structlog.get_logger()


def _half(value: int) -> int:
    # integer halving truncated towards zero
    return int(value / 2)


@dataclass
class GateLocation:
    """A candidate gate: the wall edge and the districts on either side."""

    inside: VoronoiSite
    inside_district: District
    outside: VoronoiSite
    outside_district: District
    edge: Segment

    towers: List[Rect] = field(default_factory=list)
    gatehouse: Optional[Rect] = None
    walls: List[Segment] = field(default_factory=list)
    left: Optional[Point] = None
    right: Optional[Point] = None

    def within_gate_courtyard(self, p: Sequence[int]) -> bool:
        """Whether p lies in the box spanned by the two points the wall is cut at."""
        a, b = self.left, self.right
        if p[0] < a.x or p[0] > b.x:
            return False
        if b.y < a.y:
            a, b = b, a
        return a.y <= p[1] <= b.y

    def determine_placements(self, graph: VoronoiGraph, tower: Rect, gatehouse: Rect) -> None:
        """
        Work out towers, gatehouse and wall stubs for this edge.

        Whether the shapes sit on usable land is not checked here, see
        `fortifications_fit`.

        Raises:
            GateDoesNotFitError: If neither indent direction stays inside
        """
        tw, th = tower.width, tower.height
        gw, gh = gatehouse.width, gatehouse.height

        a, b = self.edge
        if b.x < a.x:
            a, b = b, a
        dx = float(b.x - a.x)
        dy = float(b.y - a.y)

        m = dy / dx if dx != 0 else 0.0
        c = a.y - m * a.x
        middle = Point(_half(a.x + b.x), _half(a.y + b.y))
        vertical = abs(dy) > abs(dx)
        mult = -1 if m < 0 else 1

        if vertical:
            total = float(th + th + gh)
            half_total = int(total / 2)
            ly = middle.y - total / 2
            ry = middle.y + total / 2
            if dx == 0:
                lx = rx = float(a.x)
            else:
                lx = (ly - c) / m
                rx = (ry - c) / m
            left, right = Point(int(lx), int(ly)), Point(int(rx), int(ry))
            if right.x < left.x:
                left, right = right, left

            imid = Point(left.x - mult * 2 * tw, middle.y)
            if graph.site_for(imid.x, imid.y).id != self.inside.id:
                imid = Point(right.x + mult * 2 * tw, middle.y)
                if graph.site_for(imid.x, imid.y).id != self.inside.id:
                    raise GateDoesNotFitError("unable to fit gatehouse")

            self.towers = [
                centered_rect(left.x, left.y, tw, th),
                centered_rect(right.x, right.y, tw, th),
                centered_rect(imid.x, imid.y - half_total, tw, th),
                centered_rect(imid.x, imid.y + half_total, tw, th),
            ]
            self.walls = [
                (left, Point(imid.x, imid.y - half_total * mult)),
                (right, Point(imid.x, imid.y + half_total * mult)),
                (Point(imid.x, imid.y - half_total), Point(imid.x, imid.y + half_total)),
            ]
        else:
            total = float(tw + tw + gw)
            half_total = int(total / 2)
            lx = middle.x - total / 2
            rx = middle.x + total / 2
            left = Point(int(lx), int(m * lx + c))
            right = Point(int(rx), int(m * rx + c))
            if right.x < left.x:
                left, right = right, left

            imid = Point(middle.x, left.y + mult * 2 * th)
            if graph.site_for(imid.x, imid.y).id != self.inside.id:
                imid = Point(middle.x, right.y - mult * 2 * th)
                if graph.site_for(imid.x, imid.y).id != self.inside.id:
                    raise GateDoesNotFitError("unable to fit gatehouse")

            self.towers = [
                centered_rect(left.x, left.y, tw, th),
                centered_rect(right.x, right.y, tw, th),
                centered_rect(imid.x - half_total, imid.y, tw, th),
                centered_rect(imid.x + half_total, imid.y, tw, th),
            ]
            self.walls = [
                (left, Point(imid.x - half_total, imid.y)),
                (right, Point(imid.x + half_total, imid.y)),
                (Point(imid.x - mult * half_total, imid.y), Point(imid.x + mult * half_total, imid.y)),
            ]

        self.gatehouse = centered_rect(imid.x, imid.y, gw, gh)
        self.left = left
        self.right = right

    def fortifications_fit(self, city_map: CityMap, terrain: TerrainGrid) -> bool:
        """
        Whether the gatehouse and all towers sit on buildable land in either
        district, clear of anything already fortified.
        """
        for area in [self.gatehouse] + self.towers:
            for x in range(area.min_x, area.max_x):
                for y in range(area.min_y, area.max_y):
                    if city_map.is_fortification(x, y):
                        return False
                    if not terrain.can_build_on(x, y):
                        return False
                    if not (self.inside.contains(x, y) or self.outside.contains(x, y)):
                        return False
        return True


class TowerPlacer:
    """
    Places towers along walls at a minimum spacing.

    Towers, unlike other structures, may stand on bridgeable land and on
    top of already drawn wall.
    """

    def __init__(self, city_map: CityMap, terrain: TerrainGrid, tower_area: Rect,
                 spacing: int, existing: Optional[List[Rect]] = None):
        self.city_map = city_map
        self.terrain = terrain
        self.tower_area = tower_area
        self.spacing = spacing
        self.existing = list(existing or [])
        self.towers: List[Rect] = []

    def tower_fits(self, x: int, y: int) -> Optional[Rect]:
        """Tower rectangle centred on x,y if it fits, else None."""
        area = centered_rect(x, y, self.tower_area.width, self.tower_area.height)
        for ty in range(area.min_y, area.max_y):
            for tx in range(area.min_x, area.max_x):
                if self.city_map.ink(tx, ty) in (Ink.TOWER, Ink.GATEHOUSE):
                    return None
                if self.terrain.can_build_on(tx, ty) or self.terrain.can_bridge_over(tx, ty):
                    continue
                return None
        return area

    def too_close(self, p: Point, spacing: int) -> bool:
        for t in self.existing + self.towers:
            tx, ty = _half(t.max_x + t.min_x), _half(t.max_y + t.min_y)
            if int(calculate_dist(tx, ty, p.x, p.y)) < spacing:
                return True
        return False

    def add(self, tower: Rect) -> None:
        """Draw and record a tower without any checks."""
        self.city_map.draw_tower(tower)
        self.towers.append(tower)

    def try_place(self, p: Point, spacing: int) -> Optional[Rect]:
        tower = self.tower_fits(p.x, p.y)
        if tower is None:
            return None
        if spacing > 0 and self.too_close(p, spacing):
            return None
        self.add(tower)
        return tower

    def fill_towers(self, a: Point, b: Point) -> None:
        """Towers at both ends of a wall (half spacing), then every `spacing` units."""
        self.try_place(a, _half(self.spacing))
        self.try_place(b, _half(self.spacing))
        if self.spacing <= 0:
            return

        pts = points_between(a, b)
        for i in range(self.spacing, len(pts), self.spacing):
            self.try_place(pts[i], self.spacing)


def promote_fortified(inside: List[District], outside: List[District], min_sites: int,
                      centre: Point) -> Tuple[List[District], List[District]]:
    """
    Make sure at least `min_sites` districts sit inside the city wall.

    The outside districts nearest the centre are promoted (and flagged as
    fortified); if too few remain, all of them are.

    Returns:
        New (inside, outside) lists
    """
    needed = min_sites - len(inside)
    if needed <= 0:
        return list(inside), list(outside)

    candidates = list(outside)
    if needed < len(candidates):
        sort_districts_by_distance(centre, candidates)
    promoted, remaining = candidates[:needed], candidates[needed:]
    for d in promoted:
        d.has_fortifications = True

    logger.debug("Districts promoted inside the wall", promoted=[d.id for d in promoted])
    return list(inside) + promoted, remaining
