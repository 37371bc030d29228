"""
Integer-grid geometry primitives.

This module holds the small geometric vocabulary shared by every other part
of the city builder:
- Point and Rect value types (grid coordinates, half-open rectangles)
- Ray-casting point-in-polygon tests, scalar and vectorised
- Distances, canonical edge keys and rounding helpers
"""

import math
from typing import Iterable, List, NamedTuple, Sequence, Tuple

import numpy as np


class Point(NamedTuple):
    """An integer grid coordinate."""
    x: int
    y: int


class Rect(NamedTuple):
    """Half-open rectangle: min corner inclusive, max corner exclusive."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return Point((self.max_x + self.min_x) // 2, (self.max_y + self.min_y) // 2)

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y

    def intersect(self, other: "Rect") -> "Rect":
        """Return the overlap of two rectangles (possibly empty)."""
        r = Rect(
            max(self.min_x, other.min_x),
            max(self.min_y, other.min_y),
            min(self.max_x, other.max_x),
            min(self.max_y, other.max_y),
        )
        if r.max_x < r.min_x or r.max_y < r.min_y:
            return Rect(r.min_x, r.min_y, r.min_x, r.min_y)
        return r

    def is_empty(self) -> bool:
        return self.max_x <= self.min_x or self.max_y <= self.min_y


def rect_at(x: int, y: int, width: int, height: int) -> Rect:
    """Rectangle with top-left corner (x, y) and the given size."""
    return Rect(x, y, x + width, y + height)


def centered_rect(cx: int, cy: int, width: int, height: int) -> Rect:
    """Rectangle of the given size centred on (cx, cy)."""
    return Rect(cx - width // 2, cy - height // 2, cx + width // 2, cy + height // 2)


Segment = Tuple[Point, Point]


def calculate_dist(ax: float, ay: float, bx: float, by: float) -> float:
    """Standard euclidean distance."""
    return math.sqrt((ax - bx) ** 2 + (ay - by) ** 2)


def segment_length(segment: Segment) -> float:
    a, b = segment
    return calculate_dist(a[0], a[1], b[0], b[1])


def sort_by_length(segments: List[Segment]) -> None:
    """Sort segments in place, shortest first."""
    segments.sort(key=segment_length)


def edge_key(a: Sequence[int], b: Sequence[int]) -> Tuple[Point, Point]:
    """
    Canonical identity of an undirected edge.

    The endpoint with the lower x (then lower y) comes first, so (a, b) and
    (b, a) map to the same key.
    """
    a = Point(int(a[0]), int(a[1]))
    b = Point(int(b[0]), int(b[1]))
    if b < a:
        a, b = b, a
    return a, b


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def bounding_rect(points: Iterable[Sequence[int]]) -> Rect:
    """
    Lowest and highest x and y of the given points.

    The highest values form the max corner, so the vertices themselves lie on
    the (exclusive) right and bottom edges of the returned rectangle.
    """
    pts = list(points)
    if not pts:
        return Rect(0, 0, 0, 0)
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    return Rect(min(xs), min(ys), max(xs), max(ys))


class Polygon:
    """
    Closed polygon over integer vertices.

    Containment is an even-odd ray cast, half open like Rect: points on the
    left and top edges are inside, points on the right and bottom edges are
    not. Polygons sharing an edge therefore never both contain a point on it.
    """

    def __init__(self, points: Sequence[Point]):
        self.points: List[Point] = [Point(int(p[0]), int(p[1])) for p in points]

    def __len__(self) -> int:
        return len(self.points)

    def is_closed(self) -> bool:
        return len(self.points) >= 3

    def bounds(self) -> Rect:
        return bounding_rect(self.points)

    def contains(self, x: int, y: int) -> bool:
        """Ray-casting containment test for a single grid point."""
        if not self.is_closed():
            return False

        pts = self.points
        inside = False
        prev = pts[-1]
        for cur in pts:
            if _ray_crosses(x, y, prev, cur):
                inside = not inside
            prev = cur
        return inside

    def contains_many(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """
        Vectorised equivalent of `contains` for arrays of grid points.

        Args:
            xs: Integer x coordinates (any shape)
            ys: Integer y coordinates (same shape as xs)

        Returns:
            Boolean array, True where the point is inside
        """
        xs = np.asarray(xs, dtype=np.int64)
        ys = np.asarray(ys, dtype=np.int64)
        inside = np.zeros(np.broadcast(xs, ys).shape, dtype=bool)
        if not self.is_closed():
            return inside

        pts = self.points
        prev = pts[-1]
        for cur in pts:
            inside ^= _ray_crosses_many(xs, ys, prev, cur)
            prev = cur
        return inside


def _ray_crosses(px: int, py: int, start: Point, end: Point) -> bool:
    """
    Whether a ray cast from (px, py) towards +x crosses the edge start-end.

    Edges are half open in y (lower end included, upper end excluded) and the
    point must lie strictly left of the edge, so cells sharing an edge never
    both claim a point on it. Integer arithmetic keeps the test exact.
    """
    if start.y > end.y:
        start, end = end, start
    if not start.y <= py < end.y:
        return False
    return (px - start.x) * (end.y - start.y) < (py - start.y) * (end.x - start.x)


def _ray_crosses_many(xs: np.ndarray, ys: np.ndarray, start: Point, end: Point) -> np.ndarray:
    if start.y > end.y:
        start, end = end, start
    in_band = (ys >= start.y) & (ys < end.y)
    left = (xs - start.x) * (end.y - start.y) < (ys - start.y) * (end.x - start.x)
    return in_band & left
