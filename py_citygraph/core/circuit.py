"""Boundary extraction: the edges separating a set of inside cells from the rest."""

from typing import Dict, List, Sequence, Set, Tuple

import structlog

from .geometry import Point, Rect, Segment, edge_key
from .voronoi_graph import VoronoiSite

logger = structlog.get_logger()


def _on_border(bounds: Rect, p: Point) -> bool:
    # one pixel of slack, cell vertices are rounded onto the grid
    return (p.x <= bounds.min_x + 1 or p.x >= bounds.max_x - 1 or
            p.y <= bounds.min_y + 1 or p.y >= bounds.max_y - 1)


def circuit(bounds: Rect, inside: Sequence[VoronoiSite],
            outside: Sequence[VoronoiSite]) -> List[Segment]:
    """
    Find the edges enclosing all `inside` sites.

    Every edge of an inside cell starts as a candidate. An edge survives only
    if both its vertices and the edge itself are also owned by some outside
    cell, or if both of its vertices lie on the map border. Edges shared by
    two inside cells therefore disappear, and a region touching the map edge
    is closed along the border.

    A site present in both collections gives undefined results.

    Args:
        bounds: Map bounds used for the border test
        inside: Sites enclosed by the circuit
        outside: All other sites

    Returns:
        Each surviving undirected edge once, ordered by its canonical key
    """
    outside_edges: Set[Tuple[Point, Point]] = set()
    outside_verts: Set[Point] = set()
    for site in outside:
        for a, b in site.edges():
            outside_verts.add(a)
            outside_verts.add(b)
            outside_edges.add(edge_key(a, b))

    candidates: Dict[Tuple[Point, Point], Segment] = {}
    for site in inside:
        for a, b in site.edges():
            candidates.setdefault(edge_key(a, b), (a, b))

    wall = []
    for key in sorted(candidates):
        a, b = key
        if a in outside_verts and b in outside_verts and key in outside_edges:
            wall.append(candidates[key])
        elif _on_border(bounds, a) and _on_border(bounds, b):
            wall.append(candidates[key])

    logger.debug("Circuit extracted", inside=len(inside), outside=len(outside), edges=len(wall))
    return wall
