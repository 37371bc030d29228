"""Voronoi spatial index used to carve the city area into district cells."""

import math
from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence, Set, Tuple

import numpy as np
import structlog
from scipy.spatial import cKDTree

from .geometry import Point, Polygon, Rect, Segment, edge_key, round_half_away

logger = structlog.get_logger()

Coord = Tuple[float, float]


class VoronoiCell:
    """Raw (floating point) Voronoi cell: its centre and ordered boundary edges."""

    def __init__(self, center: Coord, edges: List[List[Coord]]):
        self.center = center
        self.edges = edges


def _clip(polygon: List[Coord], normal: Coord, limit: float) -> List[Coord]:
    """
    Clip a convex polygon to the half-plane normal . p <= limit.

    Sutherland-Hodgman against a single line; vertex order is preserved.
    """
    nx, ny = normal
    out: List[Coord] = []
    n = len(polygon)
    for i in range(n):
        cur = polygon[i]
        nxt = polygon[(i + 1) % n]
        fc = nx * cur[0] + ny * cur[1] - limit
        fn = nx * nxt[0] + ny * nxt[1] - limit
        if fc <= 0:
            out.append(cur)
        if (fc <= 0) != (fn <= 0):
            t = fc / (fc - fn)
            out.append((cur[0] + t * (nxt[0] - cur[0]), cur[1] + t * (nxt[1] - cur[1])))

    deduped: List[Coord] = []
    for p in out:
        if not deduped or deduped[-1] != p:
            deduped.append(p)
    if len(deduped) > 1 and deduped[0] == deduped[-1]:
        deduped.pop()
    return deduped


def voronoi_cells(bounds: Rect, coords: Sequence[Coord]) -> List[VoronoiCell]:
    """
    Compute one convex cell per coordinate by half-plane intersection.

    Each cell starts as the bounding rectangle and is cut by the perpendicular
    bisector towards every other (distinct) coordinate. Adjacent cells may
    disagree slightly on shared vertices; see `repair_cells`.

    Args:
        bounds: Bounding rectangle of the diagram
        coords: Cell centres

    Returns:
        List of VoronoiCell in the same order as coords
    """
    frame = [
        (float(bounds.min_x), float(bounds.min_y)),
        (float(bounds.max_x), float(bounds.min_y)),
        (float(bounds.max_x), float(bounds.max_y)),
        (float(bounds.min_x), float(bounds.max_y)),
    ]

    cells = []
    for c in coords:
        polygon = list(frame)
        for other in coords:
            if other == c:
                continue
            dx, dy = other[0] - c[0], other[1] - c[1]
            length = math.hypot(dx, dy)
            normal = (dx / length, dy / length)
            mid = ((c[0] + other[0]) / 2, (c[1] + other[1]) / 2)
            polygon = _clip(polygon, normal, normal[0] * mid[0] + normal[1] * mid[1])
            if not polygon:
                break

        edges = [[polygon[i], polygon[(i + 1) % len(polygon)]] for i in range(len(polygon))]
        cells.append(VoronoiCell(center=c, edges=edges))
    return cells


def repair_cells(cells: List[VoronoiCell], epsilon: float) -> None:
    """
    Merge nearly identical vertices so adjacent cells share exact coordinates.

    Vertices within epsilon of one another are mapped onto the first one seen.
    Each cell's edges are then re-threaded into a single closed walk (edge end
    to next edge start) and edges that collapsed to a point are dropped.

    Args:
        cells: Cells to repair in place
        epsilon: Merge distance
    """
    coord_slice: List[Coord] = []
    seen: Set[Coord] = set()
    for cell in cells:
        for edge in cell.edges:
            for p in edge:
                if p not in seen:
                    seen.add(p)
                    coord_slice.append(p)

    if not coord_slice:
        return

    tree = cKDTree(np.asarray(coord_slice, dtype=np.float64))
    mapping: Dict[Coord, Coord] = {}
    for i, c in enumerate(coord_slice):
        if c in mapping:
            continue
        for j in tree.query_ball_point(c, epsilon):
            n = coord_slice[j]
            if n not in mapping:
                mapping[n] = c

    merged = 0
    for cell in cells:
        edges = []
        for start, end in cell.edges:
            start, end = mapping[start], mapping[end]
            if start == end:
                merged += 1
                continue
            edges.append([start, end])
        cell.edges = _thread_edges(edges)

    logger.debug("Voronoi cells repaired", vertices=len(coord_slice),
                 unique=len(set(mapping.values())), dropped_edges=merged)


def _thread_edges(edges: List[List[Coord]]) -> List[List[Coord]]:
    """Order edges so each one starts where the previous one ended."""
    if not edges:
        return edges

    starts = {edge[0]: edge for edge in edges}
    ordered = [edges[0]]
    used = {id(edges[0])}
    while len(ordered) < len(edges):
        nxt = starts.get(ordered[-1][1])
        if nxt is None or id(nxt) in used:
            break
        ordered.append(nxt)
        used.add(id(nxt))

    # a broken walk keeps the remaining edges in their input order
    ordered.extend(e for e in edges if id(e) not in used)
    return ordered


class Neighbour(NamedTuple):
    """A site sharing at least one edge with another, plus the shared edges."""
    site: "VoronoiSite"
    edges: List[Segment]


class VoronoiSite:
    """
    A site of the Voronoi graph and the integer geometry of its cell.

    Geometry is derived lazily from the repaired floating point cell and
    cached: vertices are rounded half away from zero onto the grid.
    """

    def __init__(self, site_id: int, graph: "VoronoiGraph", cell: VoronoiCell):
        self._id = site_id
        self._graph = graph
        self._cell = cell
        self._poly: Optional[Polygon] = None
        self._edges: List[Segment] = []
        self._edge_keys: Set[Tuple[Point, Point]] = set()

    def __repr__(self) -> str:
        return f"VoronoiSite(id={self._id}, x={self.x}, y={self.y})"

    @property
    def id(self) -> int:
        return self._id

    @property
    def x(self) -> int:
        return int(self._cell.center[0])

    @property
    def y(self) -> int:
        return int(self._cell.center[1])

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)

    def _build_polygon(self) -> None:
        points = []
        edges = []
        for start, end in self._cell.edges:
            a = Point(round_half_away(start[0]), round_half_away(start[1]))
            b = Point(round_half_away(end[0]), round_half_away(end[1]))
            points.append(a)
            edges.append((a, b))
        self._poly = Polygon(points)
        self._edges = edges
        self._edge_keys = {edge_key(a, b) for a, b in edges}

    @property
    def polygon(self) -> Polygon:
        if self._poly is None:
            self._build_polygon()
        return self._poly

    def edges(self) -> List[Segment]:
        """All edges surrounding this site, in walk order."""
        self.polygon
        return self._edges

    def edge_keys(self) -> Set[Tuple[Point, Point]]:
        self.polygon
        return self._edge_keys

    def vertices(self) -> List[Point]:
        """Vertices through which the edges pass."""
        return self.polygon.points

    def contains(self, x: int, y: int) -> bool:
        """Rough (ray casting) test of whether x,y lies in this cell."""
        return self.polygon.contains(x, y)

    def contains_many(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        return self.polygon.contains_many(xs, ys)

    def bounds(self) -> Rect:
        """Rectangle spanning the cell's vertices."""
        return self.polygon.bounds()

    def inside_mask(self, area: Optional[Rect] = None) -> np.ndarray:
        """
        Containment of every grid point of `area` (default: the cell bounds).

        Returns:
            Boolean array of shape (area.height, area.width), row major
        """
        area = area or self.bounds()
        ys, xs = np.mgrid[area.min_y:area.max_y, area.min_x:area.max_x]
        return self.contains_many(xs, ys)

    def all_contains(self) -> Iterator[Point]:
        """Lazily yield every grid point inside the cell, row by row."""
        bnds = self.bounds()
        poly = self.polygon
        for y in range(bnds.min_y, bnds.max_y):
            for x in range(bnds.min_x, bnds.max_x):
                if poly.contains(x, y):
                    yield Point(x, y)

    def neighbours(self) -> List[Neighbour]:
        """All sites that share at least one edge with this one."""
        mine = self.edge_keys()
        found = []
        for other in self._graph.sites:
            if other.id == self.id:
                continue
            shared = [e for e in other.edges() if edge_key(*e) in mine]
            if shared:
                found.append(Neighbour(site=other, edges=shared))
        return found


class VoronoiGraph:
    """Voronoi diagram over integer sites inside a bounding rectangle."""

    def __init__(self, bounds: Rect, cells: List[VoronoiCell]):
        self.bounds = bounds
        self.sites: List[VoronoiSite] = [VoronoiSite(i, self, cell) for i, cell in enumerate(cells)]
        self._site_xy = np.array([[s.x, s.y] for s in self.sites], dtype=np.int64).reshape(-1, 2)

    def __len__(self) -> int:
        return len(self.sites)

    def site_by_id(self, site_id: int) -> Optional[VoronoiSite]:
        if site_id < 0 or site_id >= len(self.sites):
            return None
        return self.sites[site_id]

    def site_for(self, x: int, y: int) -> VoronoiSite:
        """
        Nearest site to the given point.

        A linear scan over all sites; on equal distances the site with the
        lowest id wins.
        """
        d2 = (self._site_xy[:, 0] - x) ** 2 + (self._site_xy[:, 1] - y) ** 2
        return self.sites[int(np.argmin(d2))]

    def nearest_site_grid(self, area: Optional[Rect] = None) -> np.ndarray:
        """
        Label every grid point of `area` with the id of its nearest site.

        Equivalent to calling `site_for` per point, evaluated a row at a time.

        Returns:
            int32 array of shape (area.height, area.width)
        """
        area = area or self.bounds
        labels = np.empty((area.height, area.width), dtype=np.int32)
        xs = np.arange(area.min_x, area.max_x, dtype=np.int64)
        dx2 = (xs[:, None] - self._site_xy[None, :, 0]) ** 2
        for row, y in enumerate(range(area.min_y, area.max_y)):
            dy2 = (y - self._site_xy[:, 1]) ** 2
            labels[row] = np.argmin(dx2 + dy2[None, :], axis=1)
        return labels


def generate_voronoi_graph(bounds: Rect, sites: Sequence[Sequence[int]],
                           repair_epsilon: float = 1e-8) -> VoronoiGraph:
    """
    Build the Voronoi graph for the given sites.

    Args:
        bounds: Area the diagram covers
        sites: Integer site coordinates; a site's index is its id
        repair_epsilon: Distance under which vertices are merged

    Returns:
        Repaired VoronoiGraph
    """
    if len(sites) == 0:
        raise ValueError("voronoi diagram requires at least one site")

    coords = [(float(s[0]), float(s[1])) for s in sites]
    cells = voronoi_cells(bounds, coords)
    repair_cells(cells, repair_epsilon)

    logger.info("Voronoi graph calculated", sites=len(cells),
                edges=sum(len(c.edges) for c in cells))
    return VoronoiGraph(bounds, cells)
