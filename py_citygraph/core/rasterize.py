"""Segment rasterization (Bresenham) on the integer grid."""

from typing import List, Sequence

from .geometry import Point


def points_between(a: Sequence[int], b: Sequence[int]) -> List[Point]:
    """
    Return every grid point on the straight line between a and b, inclusive.

    Pure integer Bresenham. Drawing a -> b is equivalent to drawing b -> a,
    so the points always run in increasing x (increasing y for verticals);
    the result may therefore be ordered b -> a.

    Args:
        a: First endpoint (x, y)
        b: Second endpoint (x, y)

    Returns:
        Ordered list of grid points
    """
    x1, y1 = int(a[0]), int(a[1])
    x2, y2 = int(b[0]), int(b[1])

    if x1 > x2:
        x1, y1, x2, y2 = x2, y2, x1, y1

    dx, dy = x2 - x1, y2 - y1
    if dy < 0:
        dy = -dy

    pts: List[Point] = []

    if x1 == x2 and y1 == y2:
        pts.append(Point(x1, y1))

    elif y1 == y2:
        for x in range(x1, x2 + 1):
            pts.append(Point(x, y1))

    elif x1 == x2:
        lo, hi = min(y1, y2), max(y1, y2)
        for y in range(lo, hi + 1):
            pts.append(Point(x1, y))

    elif dx == dy:
        step = 1 if y1 < y2 else -1
        for i in range(dx + 1):
            pts.append(Point(x1 + i, y1 + step * i))

    elif dx > dy:
        # wider than high
        step = 1 if y1 < y2 else -1
        dy2, e, slope = 2 * dy, dx, 2 * dx
        x, y = x1, y1
        for _ in range(dx):
            pts.append(Point(x, y))
            x += 1
            e -= dy2
            if e < 0:
                y += step
                e += slope
        pts.append(Point(x2, y2))

    else:
        # higher than wide
        step = 1 if y1 < y2 else -1
        dx2, e, slope = 2 * dx, dy, 2 * dy
        x, y = x1, y1
        for _ in range(dy):
            pts.append(Point(x, y))
            y += step
            e -= dx2
            if e < 0:
                x += 1
                e += slope
        pts.append(Point(x2, y2))

    return pts
