"""
Rejection sampling of Voronoi sites.

Candidate filters judge a point on its own (for example "is there enough
buildable land around it"); site filters compare a candidate against every
site accepted so far (for example a minimum separation).
"""

from typing import Callable, List, Optional, Tuple

import structlog

from ..config import settings
from ..utils.random import clock_seed
from .alea_prng import AleaPRNG
from .geometry import Point, Rect, calculate_dist
from .voronoi_graph import VoronoiGraph, generate_voronoi_graph

logger = structlog.get_logger()

CandidateFilter = Callable[[int, int], bool]
SiteFilter = Callable[[int, int, int, int], bool]


def min_distance(dist: float) -> SiteFilter:
    """Site filter keeping a candidate at least `dist` away from every site."""

    def _filter(ax: int, ay: int, sx: int, sy: int) -> bool:
        return calculate_dist(sx, sy, ax, ay) >= dist

    return _filter


class SiteBuilder:
    """Collects accepted sites inside `bounds`, then builds their Voronoi graph."""

    def __init__(self, bounds: Rect, seed: Optional[int] = None):
        self.bounds = bounds
        self.sites: List[Point] = []
        self.prng = AleaPRNG(seed if seed else clock_seed())
        self._candidate_filters: List[CandidateFilter] = []
        self._site_filters: List[SiteFilter] = []

    def set_seed(self, seed: int) -> None:
        self.prng = AleaPRNG(seed)

    def set_candidate_filters(self, *filters: CandidateFilter) -> None:
        self._candidate_filters = list(filters)

    def set_site_filters(self, *filters: SiteFilter) -> None:
        self._site_filters = list(filters)

    def site_count(self) -> int:
        return len(self.sites)

    def accepted(self, x: int, y: int) -> bool:
        """Whether (x, y) passes every candidate filter and every site filter."""
        for fn in self._candidate_filters:
            if not fn(x, y):
                return False

        for site in self.sites:
            for fn in self._site_filters:
                if not fn(x, y, site.x, site.y):
                    return False
        return True

    def add_random_site(self) -> Optional[Tuple[int, int, int]]:
        """
        Try one random point within bounds.

        Returns:
            (x, y, site_id) if the point was accepted, otherwise None
        """
        x = self.prng.randrange(self.bounds.min_x, self.bounds.max_x)
        y = self.prng.randrange(self.bounds.min_y, self.bounds.max_y)
        if not self.accepted(x, y):
            return None
        return x, y, self._add_site(x, y)

    def add_site(self, x: int, y: int) -> Optional[int]:
        """Add a site at (x, y) if the filters allow it; returns its id."""
        if not self.accepted(x, y):
            return None
        return self._add_site(x, y)

    def _add_site(self, x: int, y: int) -> int:
        self.sites.append(Point(x, y))
        return len(self.sites) - 1

    def voronoi(self, repair_epsilon: Optional[float] = None) -> VoronoiGraph:
        """Build the Voronoi graph for the accepted sites (at least one is required)."""
        if repair_epsilon is None:
            repair_epsilon = settings.voronoi_repair_epsilon
        logger.debug("Building voronoi graph", sites=len(self.sites), bounds=tuple(self.bounds))
        return generate_voronoi_graph(self.bounds, self.sites, repair_epsilon)
