"""
City layout synthesis.

This module builds a whole city from a terrain outline and configuration.

Process (strict order, later phases rely on earlier ones):
1. add_user_districts(), random_districts() - Sites and their types
2. Voronoi graph - Computed once over every district site
3. verify_district_locations() - Tally terrain per district, repair docks
4. add_walls() - City wall, curtain walls, gates and towers (optional)
5. add_main_roads() - Roads and bridges along district edges
6. add_minor_roads() - Per-district road network from a sub-Voronoi
7. end_draw() - Commit the drawn network into the city map
8. assign_districts(), add_buildings() - Map labels, central building, then footprints in rings
"""

from typing import Callable, Dict, List, Optional, Tuple

import structlog

from ..config import settings
from ..utils.random import clock_seed, derive_prng
from .alea_prng import AleaPRNG
from .circuit import circuit
from .city_config import BuilderConfig, CityConfig, DistrictConfig
from .city_map import CityMap
from .district_types import ALL_DISTRICTS, DistrictType, sort_types_by_desirability
from .districts import (
    CityStats,
    District,
    DistrictBuilder,
    Edge,
    Section,
    sort_districts_by_distance,
)
from .errors import (
    CannotMeetDesiredDistrictsError,
    DockPlacementError,
    GateDoesNotFitError,
    MissingDistrictConfigError,
    SiteNotFoundError,
    UnsatisfiableConfigError,
)
from .fortifications import GateLocation, TowerPlacer, promote_fortified
from .geometry import Point, Rect, Segment, calculate_dist, edge_key, segment_length
from .line_classifier import classify_line
from .site_builder import SiteBuilder, min_distance
from .terrain import Outline, TerrainGrid
from .voronoi_graph import VoronoiGraph, VoronoiSite

logger = structlog.get_logger()

CITY_WALL = -1


def _in_path_order(edge: Edge) -> None:
    """Sort sections by their nearest point to the start of the edge."""
    start = edge.path[0]
    edge.sections.sort(key=lambda s: min(calculate_dist(start.x, start.y, p.x, p.y) for p in s.path))


class CityGraph:
    """
    A synthesized city: districts with their geometry, city walls and the
    finalised city map.

    Attributes:
        districts: Districts ordered by id
        walls: City wall edges
        towers: City wall towers
        gates: City gatehouses
        stats: City-wide counters
        seed: Seed the build ran with
        city_map: Spatial map of the finished city
    """

    def __init__(self, builder_config: BuilderConfig, config: CityConfig, outline: Outline):
        self.builder_config = builder_config
        self.config = config
        self.outline = outline

        self.seed = config.seed if config.seed else clock_seed()
        self.prng = AleaPRNG(self.seed)
        self.centre = config.resolved_centre()
        self.area = config.area

        self.districts: List[District] = []
        self.walls: List[Edge] = []
        self.towers: List[Rect] = []
        self.gates: List[Rect] = []
        self.stats = CityStats()

        self.city_map = CityMap(self.area)
        self.terrain: Optional[TerrainGrid] = None
        self.graph: Optional[VoronoiGraph] = None
        self.site_builder = SiteBuilder(self.area)
        self.site_builder.set_seed(self.seed)
        self._by_id: Dict[int, District] = {}

    def build(self) -> "CityGraph":
        """
        Run every build phase.

        Raises:
            UnsatisfiableConfigError: If the configuration cannot be met
        """
        logger.info("Starting city build", seed=self.seed, area=tuple(self.area),
                     desired_districts=self.config.desired_districts)

        self.terrain = TerrainGrid.sample(self.outline, self.area)

        self.add_user_districts()
        added = self.random_districts()

        if self.site_builder.site_count() == 0:
            logger.error("No district sites placed", desired_districts=self.config.desired_districts)
            raise UnsatisfiableConfigError("no district sites to build a city from")
        self.graph = self.site_builder.voronoi(settings.voronoi_repair_epsilon)
        self.verify_district_locations(added)

        if self.config.fortifications is not None:
            self.add_walls(added)

        self.add_main_roads()
        self.add_minor_roads()

        radius = 0
        if self.config.fortifications is not None:
            radius = self.config.fortifications.wall_border_road_width
        self.city_map.end_draw(radius, self.terrain)

        self.assign_districts()
        self.add_buildings()

        logger.info("City build complete", districts=len(self.districts),
                    walls=len(self.walls), towers=len(self.towers), gates=len(self.gates),
                    buildings=sum(self.stats.buildings_by_id.values()))
        return self

    # --- lookups ---------------------------------------------------------

    def district_config(self, district_type: DistrictType) -> DistrictConfig:
        config = self.builder_config.districts.get(district_type)
        if config is None:
            logger.error("Missing district config", district_type=district_type.value)
            raise MissingDistrictConfigError(district_type)
        return config

    def site(self, district_id: int) -> VoronoiSite:
        site = self.graph.site_by_id(district_id)
        if site is None:
            raise SiteNotFoundError(district_id)
        return site

    def district(self, district_id: int) -> District:
        return self._by_id[district_id]

    def _new_district(self, site_id: int, point: Point) -> District:
        district = District(id=site_id, site=point)
        self._by_id[site_id] = district
        self.districts.append(district)
        return district

    # --- district placement ----------------------------------------------

    def add_user_districts(self) -> None:
        """Place caller-specified district sites exactly where given."""
        for placed in self.config.district_sites:
            site_id = self.site_builder.add_site(placed.site.x, placed.site.y)
            if site_id is None:
                continue

            district = self._new_district(site_id, Point(placed.site.x, placed.site.y))
            district.type = placed.type
            district.has_fortifications = placed.has_fortifications
            district.has_curtain_fortifications = placed.has_curtain_fortifications
            self.stats.increment(placed.type)

        if self.config.district_sites:
            logger.info("User districts placed", districts=len(self.districts))

    def _total_probability(self) -> float:
        return sum(self.builder_config.districts[t].probability
                   for t in ALL_DISTRICTS if t in self.builder_config.districts)

    def choose_district_type(self, total: float) -> DistrictType:
        """Weighted random district type; EMPTY if the draw falls past every weight."""
        rv = self.prng.random()
        sofar = 0.0
        for t in ALL_DISTRICTS:
            config = self.builder_config.districts.get(t)
            if config is None or config.probability <= 0:
                continue
            prob = config.probability / total
            if rv <= prob + sofar:
                return t
            sofar += prob
        return DistrictType.EMPTY

    def draw_district_type(self, total: float, count: Callable[[DistrictType], int],
                           exclude: Tuple[DistrictType, ...] = ()) -> DistrictType:
        """
        Draw types until one is under its city maximum.

        Raises:
            UnsatisfiableConfigError: If no type could ever be drawn
        """
        eligible = set()
        for t in ALL_DISTRICTS:
            config = self.builder_config.districts.get(t)
            if config is None or config.probability <= 0 or t in exclude:
                continue
            if config.max_in_city > 0 and count(t) >= config.max_in_city:
                continue
            eligible.add(t)

        if not eligible:
            logger.error("No district type can be chosen", excluded=[t.value for t in exclude])
            raise UnsatisfiableConfigError("no district type is below its maximum")

        while True:
            t = self.choose_district_type(total)
            if t in eligible:
                return t

    def _enough_land(self, x: int, y: int) -> bool:
        # the site itself must be buildable as well as its surrounding window
        size = self.config.min_district_size
        half = size // 2
        if not self.terrain.can_build_on(x, y):
            return False
        return self.terrain.buildable_count(Rect(x - half, y - half, x + half, y + half)) >= size

    def random_districts(self) -> List[District]:
        """
        Add random districts until the desired count is reached.

        Types meeting every minimum-in-city come first, the rest are drawn by
        probability. Sites nearest the centre get the most desirable types.

        Returns:
            The newly placed districts

        Raises:
            CannotMeetDesiredDistrictsError: If the minimum types cannot be placed
        """
        placed: List[District] = []
        if len(self.districts) >= self.config.desired_districts:
            return placed

        pending: Dict[DistrictType, int] = {}
        dtypes: List[DistrictType] = []
        total = self._total_probability()
        for t in ALL_DISTRICTS:
            config = self.builder_config.districts.get(t)
            if config is None:
                continue
            for _ in range(self.stats.count(t), config.min_in_city):
                dtypes.append(t)
                pending[t] = pending.get(t, 0) + 1

        self.site_builder.set_candidate_filters(self._enough_land)
        self.site_builder.set_site_filters(min_distance(float(self.config.min_district_size // 2)))

        attempts = self.config.desired_districts * settings.site_attempts_per_district
        for _ in range(attempts):
            if len(placed) + len(self.districts) >= self.config.desired_districts:
                break
            accepted = self.site_builder.add_random_site()
            if accepted is None:
                continue
            x, y, site_id = accepted
            placed.append(self._new_district(site_id, Point(x, y)))

        if len(placed) < len(dtypes):
            logger.error("Cannot place minimum districts", placed=len(placed), required=len(dtypes))
            raise CannotMeetDesiredDistrictsError(len(placed), len(dtypes))

        def count(t: DistrictType) -> int:
            return self.stats.count(t) + pending.get(t, 0)

        for _ in range(len(dtypes), len(placed)):
            t = self.draw_district_type(total, count)
            dtypes.append(t)
            pending[t] = pending.get(t, 0) + 1

        ordered = list(placed)
        sort_districts_by_distance(self.centre, ordered)
        sort_types_by_desirability(dtypes)
        for district, t in zip(ordered, dtypes):
            district.type = t
            self.stats.increment(t)

        logger.info("Random districts placed", placed=len(placed),
                     total=len(self.districts), attempts=attempts)
        return placed

    def verify_district_locations(self, added: List[District]) -> None:
        """
        Tally terrain inside every district and repair docks districts
        lacking dock-suitable land.

        A failing dock first swaps type with a new district that has enough
        dock land; failing that it becomes a random non-dock type if the city
        has more docks than its minimum.

        Raises:
            DockPlacementError: If a dock can be neither swapped nor retyped
        """
        for d in self.districts:
            site = self.site(d.id)
            area = site.bounds()
            inside = site.inside_mask(area)
            d.stats.buildable = int((self.terrain.window(self.terrain.buildable, area) & inside).sum())
            d.stats.bridgeable = int((self.terrain.window(self.terrain.bridgeable, area) & inside).sum())
            d.stats.dock_suitable = int((self.terrain.window(self.terrain.dock, area) & inside).sum())

        min_dock = self.config.min_dock_size
        docks = [d for d in added
                 if d.type == DistrictType.DOCKS and d.stats.dock_suitable < min_dock]
        potential = [d for d in added
                     if d.type != DistrictType.DOCKS and d.stats.dock_suitable >= min_dock]
        if not docks:
            return

        logger.info("Repairing docks districts", misplaced=len(docks), candidates=len(potential))
        total = self._total_probability()
        while docks:
            d = docks.pop()

            if potential:
                last = potential.pop()
                last.type, d.type = DistrictType.DOCKS, last.type
                continue

            dock_config = self.builder_config.districts.get(DistrictType.DOCKS)
            min_in_city = dock_config.min_in_city if dock_config else 0
            if self.stats.count(DistrictType.DOCKS) > min_in_city:
                t = self.draw_district_type(total, self.stats.count, exclude=(DistrictType.DOCKS,))
                d.type = t
                self.stats.increment(t)
                self.stats.decrement(DistrictType.DOCKS)
                continue

            logger.error("Unable to place docks district", district=d.id)
            raise DockPlacementError("unable to find place for docks district")

    # --- fortifications --------------------------------------------------

    def add_walls(self, added: List[District]) -> None:
        """Build the city wall around fortified districts and curtain walls."""
        fort = self.config.fortifications
        for d in added:
            config = self.district_config(d.type)
            d.has_fortifications = config.has_fortifications
            d.has_curtain_fortifications = config.has_curtain_fortifications

        curtain = [d for d in self.districts if d.has_curtain_fortifications]
        inside = [d for d in self.districts
                  if d.has_fortifications and not d.has_curtain_fortifications]
        outside = [d for d in self.districts
                   if not d.has_fortifications and not d.has_curtain_fortifications]
        inside, outside = promote_fortified(inside, outside, fort.min_fortified_sites, self.centre)

        gates_ideal, gates_other = self.gate_candidates(inside + curtain)

        logger.info("Adding walls", inside=len(inside), outside=len(outside), curtain=len(curtain))

        all_towers: List[Rect] = []
        if inside:
            walls, gates, towers = self.wall_districts(
                inside, outside, gates_ideal.get(CITY_WALL, []), all_towers,
                width=fort.wall_width, max_gates=fort.max_city_gates,
            )
            self.walls = walls
            self.towers = towers
            self.gates = [g.gatehouse for g in gates.values()]
            all_towers.extend(towers)

        for d in curtain:
            gates = gates_ideal.get(d.id) or gates_other.get(d.id, [])
            others = [o for o in self.districts if o.id != d.id]
            walls, made, towers = self.wall_districts(
                [d], others, gates, all_towers,
                width=fort.curtain_wall_width, max_gates=1,
            )
            d.walls = walls
            d.towers = towers
            d.gates = [g.gatehouse for g in made.values()]
            all_towers.extend(towers)

        logger.info("Walls added", city_wall_edges=len(self.walls), towers=len(all_towers),
                    gates=len(self.gates) + sum(len(d.gates) for d in curtain))

    def gate_candidates(self, walled: List[District]) -> Tuple[Dict[int, List[GateLocation]],
                                                                Dict[int, List[GateLocation]]]:
        """
        Edges a gatehouse could go in, keyed by wall (CITY_WALL or district id).

        City wall gates open from inside districts onto unfortified ones.
        Curtain wall gates ideally open into the walled city, otherwise onto
        any non-curtain neighbour.
        """
        fort = self.config.fortifications
        span_x = fort.tower_area.width * 2 + fort.gatehouse_area.width
        span_y = fort.tower_area.height * 2 + fort.gatehouse_area.height

        ideal: Dict[int, List[GateLocation]] = {}
        other: Dict[int, List[GateLocation]] = {}
        for d in walled:
            site = self.site(d.id)
            city_wall = d.has_fortifications and not d.has_curtain_fortifications
            source = CITY_WALL if city_wall else d.id

            for n in site.neighbours():
                neighbour = self.district(n.site.id)
                is_ideal = True
                if neighbour.has_curtain_fortifications:
                    continue
                elif city_wall:
                    if neighbour.has_fortifications:
                        continue
                else:
                    is_ideal = neighbour.has_fortifications

                for e in n.edges:
                    length = int(segment_length(e))
                    if length < span_x or length < span_y:
                        continue
                    loc = GateLocation(inside=site, inside_district=d, outside=n.site,
                                       outside_district=neighbour, edge=e)
                    (ideal if is_ideal else other).setdefault(source, []).append(loc)
        return ideal, other

    def wall_districts(self, inside: List[District], outside: List[District],
                       gates: List[GateLocation], all_towers: List[Rect], width: int,
                       max_gates: int) -> Tuple[List[Edge], Dict[Tuple[Point, Point], GateLocation], List[Rect]]:
        """
        Wall in the given districts: gates first, then the circuit around them.

        Returns:
            (wall edges, gates made keyed by edge, towers placed)
        """
        fort = self.config.fortifications
        placer = TowerPlacer(self.city_map, self.terrain, fort.tower_area,
                             fort.min_dist_between_towers, existing=all_towers)

        made: Dict[Tuple[Point, Point], GateLocation] = {}
        for loc in gates:
            if len(made) >= max_gates:
                break
            try:
                loc.determine_placements(self.graph, fort.tower_area, fort.gatehouse_area)
            except GateDoesNotFitError:
                logger.debug("Gate indent does not fit", district=loc.inside_district.id,
                             edge=loc.edge)
                continue
            if not loc.fortifications_fit(self.city_map, self.terrain):
                logger.debug("Gate fortifications do not fit", district=loc.inside_district.id)
                continue

            made[edge_key(*loc.edge)] = loc
            for a, b in loc.walls:
                self.city_map.draw_wall(a, b, width)
            for tower in loc.towers:
                placer.add(tower)
            self.city_map.draw_gatehouse(loc.gatehouse)

        inside_sites = [self.site(d.id) for d in inside]
        outside_sites = [self.site(d.id) for d in outside]

        edges: List[Edge] = []
        for a, b in circuit(self.area, inside_sites, outside_sites):
            runs = classify_line(a, b, self.city_map, self.terrain)
            if runs.is_empty():
                continue

            gate = made.get(edge_key(a, b))
            edge = Edge(path=(a, b))
            gate_sections_added = False
            for path in runs.roads + runs.walls:
                if gate and (gate.within_gate_courtyard(path[0]) or gate.within_gate_courtyard(path[1])):
                    # drawn with the gate already
                    if not gate_sections_added:
                        edge.sections.extend(Section(path=w) for w in gate.walls)
                        gate_sections_added = True
                    continue
                self.city_map.draw_wall(path[0], path[1], width)
                edge.sections.append(Section(path=path))
                placer.fill_towers(*path)

            for path in runs.bridges:
                length = int(segment_length(path))
                if fort.max_bridge_wall_length > 0 and length > fort.max_bridge_wall_length:
                    continue
                self.city_map.draw_wall(path[0], path[1], width)
                edge.sections.append(Section(path=path, bridge=True))
                placer.fill_towers(*path)

            edges.append(edge)

        return edges, made, placer.towers

    # --- roads -----------------------------------------------------------

    def _on_frame(self, a: Point, b: Point) -> bool:
        """Both endpoints on the min sides, or both on the max sides, of the area."""
        lo = (a.x == self.area.min_x or a.y == self.area.min_y) and \
             (b.x == self.area.min_x or b.y == self.area.min_y)
        hi = (a.x == self.area.max_x or a.y == self.area.max_y) and \
             (b.x == self.area.max_x or b.y == self.area.max_y)
        return lo or hi

    def _bridge_length_ok(self, path: Segment) -> bool:
        length = int(segment_length(path))
        if self.config.max_bridge_length > 0 and length > self.config.max_bridge_length:
            return False
        return length >= self.config.min_bridge_length

    def add_main_roads(self) -> None:
        """
        Lay roads along district edges.

        Each shared edge is laid once and attached to every district owning
        it. An edge whose bridges cannot all be built (too long, too short or
        over the city's bridge budget) is dropped entirely.
        """
        width = self.config.main_road_width
        max_bridges = self.config.max_bridges
        created = 0
        laid: Dict[Tuple[Point, Point], Optional[Edge]] = {}
        dropped = 0

        for d in self.districts:
            config = self.district_config(d.type)
            if not config.needs_roads():
                continue

            for a, b in self.site(d.id).edges():
                if self._on_frame(a, b):
                    continue

                key = edge_key(a, b)
                if key in laid:
                    if laid[key] is not None:
                        d.roads.append(laid[key])
                    continue

                laid[key] = None
                runs = classify_line(a, b, self.city_map, self.terrain)
                if runs.is_empty():
                    continue

                bridges = sorted(runs.bridges, key=segment_length)
                over_budget = max_bridges >= 0 and created + len(bridges) > max_bridges
                if over_budget or not all(self._bridge_length_ok(p) for p in bridges):
                    dropped += 1
                    logger.debug("Main road dropped", district=d.id, edge=key, bridges=len(bridges))
                    continue

                edge = Edge(path=(a, b))
                for path in runs.roads:
                    self.city_map.draw_road(path[0], path[1], width // 2)
                    edge.sections.append(Section(path=path))
                for path in bridges:
                    self.city_map.draw_bridge(path[0], path[1], width // 2)
                    edge.sections.append(Section(path=path, bridge=True))
                created += len(bridges)
                _in_path_order(edge)

                laid[key] = edge
                d.roads.append(edge)

        logger.info("Main roads added", edges=sum(1 for e in laid.values() if e is not None),
                    bridges=created, dropped=dropped)

    def add_minor_roads(self) -> None:
        """
        Lay each district's internal roads along a sub-Voronoi of its cell.

        Sub-sites are buildable points inside the cell, spaced by half the
        block size (the configured minimum or the largest footprint side).
        """
        for d in self.districts:
            config = self.district_config(d.type)
            if not config.needs_roads():
                continue

            site = self.site(d.id)
            block = self.config.min_block_size
            for b in config.buildings:
                block = max(block, b.width, b.height)

            bounds = site.bounds()
            builder = SiteBuilder(bounds)
            builder.set_seed(self.seed // 2 + d.id)
            builder.set_candidate_filters(
                lambda x, y, site=site: self.terrain.can_build_on(x, y) and site.contains(x, y)
            )
            builder.set_site_filters(min_distance(float(block // 2)))

            for _ in range(int(bounds.width * 0.25 * config.road_density)):
                builder.add_random_site()
            if builder.site_count() == 0:
                continue

            road_width = max(config.road_width, 2) // 2
            sub_graph = builder.voronoi(settings.voronoi_repair_epsilon)
            seen = set()
            for sub_site in sub_graph.sites:
                for a, b in sub_site.edges():
                    key = edge_key(a, b)
                    if key in seen:
                        continue
                    seen.add(key)
                    edge = self._lay_minor_road(d, config, site, a, b, road_width)
                    if edge is not None:
                        d.roads.append(edge)

        logger.info("Minor roads added", roads=sum(len(d.roads) for d in self.districts),
                    bridges=sum(d.stats.bridges for d in self.districts))

    def _lay_minor_road(self, d: District, config: DistrictConfig, site: VoronoiSite,
                        a: Point, b: Point, width: int) -> Optional[Edge]:
        runs = classify_line(a, b, self.city_map, self.terrain, site)
        if runs.is_empty():
            return None

        edge = Edge(path=(a, b))
        for path in runs.roads:
            # axis aligned runs trace the sub-graph frame
            if path[0].x == path[1].x or path[0].y == path[1].y:
                continue
            self.city_map.draw_road(path[0], path[1], width)
            edge.sections.append(Section(path=path))

        for path in sorted(runs.bridges, key=segment_length):
            if config.max_bridges >= 0 and d.stats.bridges >= config.max_bridges:
                break
            if not self._bridge_length_ok(path):
                continue
            self.city_map.draw_bridge(path[0], path[1], width)
            d.stats.bridges += 1
            edge.sections.append(Section(path=path, bridge=True))
        _in_path_order(edge)
        return edge

    # --- buildings -------------------------------------------------------

    def assign_districts(self) -> None:
        """Label every unit of the city map with its nearest district."""
        labels = self.graph.nearest_site_grid(self.area)
        types = [self.district(i).type for i in range(len(self.districts))]
        self.city_map.assign_districts(labels, types)

    def add_buildings(self) -> None:
        """Place central buildings and footprints in every district."""
        for d in self.districts:
            site = self.site(d.id)
            config = self.district_config(d.type)
            if config.central is None and not config.buildings:
                continue

            builder = DistrictBuilder(d, config, site, self.city_map, self.terrain,
                                      derive_prng(self.seed, d.id), self.stats)
            builder.place_central()
            builder.place_buildings()

        logger.info("Buildings added", buildings=dict(sorted(self.stats.buildings_by_id.items())))

    # --- results ---------------------------------------------------------

    def districts_by_type(self) -> Dict[DistrictType, List[District]]:
        grouped: Dict[DistrictType, List[District]] = {}
        for d in self.districts:
            grouped.setdefault(d.type, []).append(d)
        return grouped

    def bridge_sections(self) -> List[Section]:
        """Every bridge section on any district road, each shared edge once."""
        seen = set()
        found = []
        for d in self.districts:
            for edge in d.roads:
                if id(edge) in seen:
                    continue
                seen.add(id(edge))
                found.extend(s for s in edge.sections if s.bridge)
        return found


def generate_city(builder_config: BuilderConfig, config: CityConfig,
                  outline: Outline) -> CityGraph:
    """
    Build a city.

    Args:
        builder_config: District settings
        config: City settings
        outline: Terrain description

    Returns:
        The finished CityGraph

    Raises:
        UnsatisfiableConfigError: If the configuration cannot be met
    """
    return CityGraph(builder_config, config, outline).build()
