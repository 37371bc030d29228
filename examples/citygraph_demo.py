#!/usr/bin/env python3
"""
Demo script building a walled city on a coast with a river through it.

The outline is deliberately simple: sea for y <= 50, a straight river
between x = 495 and x = 505, buildable land everywhere else.
"""

import sys

from py_citygraph.core import (
    BuilderConfig, BuildingConfig, CityConfig, DistrictConfig, DistrictType,
    Feature, FortificationSettings, Rect, generate_city,
)
from py_citygraph.core.district_types import all_district_types
from py_citygraph.utils.log import configure_logging


class CoastRiverOutline:
    """Sea along the top edge, river down the middle."""

    def can_build_on(self, x, y):
        if y <= 50:
            return False
        return not self.can_bridge_over(x, y)

    def can_bridge_over(self, x, y):
        return 495 <= x <= 505 and y > 50

    def is_suitable_dock(self, x, y):
        return y == 50


def default_config() -> BuilderConfig:
    """Reasonable defaults for every district type."""
    small = BuildingConfig(id=1, area=Rect(0, 0, 8, 8), probability=0.20)
    medium = BuildingConfig(id=2, area=Rect(0, 0, 9, 9), probability=0.10)
    large = BuildingConfig(id=3, area=Rect(0, 0, 12, 12), probability=0.05)
    tiny = BuildingConfig(id=4, area=Rect(0, 0, 5, 5), probability=0.50)
    huge = BuildingConfig(id=5, area=Rect(0, 0, 16, 16), probability=0.3)
    giant = BuildingConfig(id=6, area=Rect(0, 0, 30, 30), probability=0.2)

    districts = {
        t: DistrictConfig(road_width=2, road_density=1.0, building_density=1.0,
                          probability=0.05, buildings=[small, medium, large])
        for t in all_district_types()
    }

    for t in (DistrictType.RESIDENTIAL_SLUM, DistrictType.ABANDONED,
              DistrictType.RESIDENTIAL_MIDDLE, DistrictType.DOCKS):
        districts[t].buildings.append(tiny)
    districts[DistrictType.GRAVEYARD].buildings = [tiny]
    for t in (DistrictType.EMPTY, DistrictType.PARK, DistrictType.SQUARE, DistrictType.MARKET):
        districts[t].buildings = []
    districts[DistrictType.FIELDS].buildings = [giant, huge]
    for t in (DistrictType.RESIDENTIAL_UPPER, DistrictType.CIVIC,
              DistrictType.FORTRESS, DistrictType.TEMPLE):
        districts[t].buildings.extend([giant, huge])

    districts[DistrictType.FORTRESS].has_curtain_fortifications = True

    for t in (DistrictType.FORTRESS, DistrictType.CIVIC, DistrictType.TEMPLE):
        districts[t].central = huge
    districts[DistrictType.SQUARE].central = small

    limits = {
        DistrictType.CIVIC: (1, 1),
        DistrictType.TEMPLE: (1, 1),
        DistrictType.FORTRESS: (0, 1),
        DistrictType.GRAVEYARD: (1, 3),
        DistrictType.INDUSTRIAL: (0, 5),
        DistrictType.RESEARCH: (0, 1),
        DistrictType.PRISON: (0, 1),
        DistrictType.BARRACKS: (0, 4),
        DistrictType.PARK: (1, 1),
        DistrictType.ABANDONED: (0, 1),
        DistrictType.DOCKS: (0, 2),
        DistrictType.MARKET: (1, 1),
        DistrictType.SQUARE: (1, 1),
    }
    for t, (lo, hi) in limits.items():
        districts[t].min_in_city = lo
        districts[t].max_in_city = hi

    roads = {
        DistrictType.FORTRESS: (None, 0.2),
        DistrictType.MARKET: (None, 0.4),
        DistrictType.SQUARE: (None, 0.2),
        DistrictType.PARK: (None, 0.0),
        DistrictType.FIELDS: (2, 0.1),
        DistrictType.RESIDENTIAL_SLUM: (1, 1.0),
        DistrictType.RESIDENTIAL_MIDDLE: (None, 0.7),
        DistrictType.RESIDENTIAL_UPPER: (3, 0.3),
        DistrictType.CIVIC: (3, 0.7),
        DistrictType.TEMPLE: (None, 0.7),
        DistrictType.ABANDONED: (1, 1.2),
        DistrictType.WAREHOUSE: (None, 0.5),
        DistrictType.EMPTY: (None, 0.0),
    }
    for t, (width, density) in roads.items():
        if width is not None:
            districts[t].road_width = width
        districts[t].road_density = density

    for t, density in ((DistrictType.RESIDENTIAL_UPPER, 0.7), (DistrictType.RESIDENTIAL_MIDDLE, 0.9),
                       (DistrictType.CIVIC, 0.8), (DistrictType.TEMPLE, 0.8),
                       (DistrictType.RESEARCH, 0.7)):
        districts[t].building_density = density

    for t, probability in ((DistrictType.RESEARCH, 0.01), (DistrictType.BARRACKS, 0.03),
                           (DistrictType.PRISON, 0.01), (DistrictType.FIELDS, 0.3),
                           (DistrictType.EMPTY, 0.1), (DistrictType.RESIDENTIAL_SLUM, 0.1),
                           (DistrictType.RESIDENTIAL_LOWER, 0.4),
                           (DistrictType.RESIDENTIAL_MIDDLE, 0.2),
                           (DistrictType.RESIDENTIAL_UPPER, 0.01)):
        districts[t].probability = probability

    return BuilderConfig(districts=districts)


def main():
    """Build the demo city and print its statistics."""
    configure_logging()

    seed = int(sys.argv[1]) if len(sys.argv) > 1 else None
    config = CityConfig(
        area=Rect(0, 0, 1000, 1000),
        main_road_width=4,
        max_bridges=-1,
        max_bridge_length=15,
        min_bridge_length=10,
        min_district_size=150,
        desired_districts=100,
        min_dock_size=10,
        seed=seed,
        fortifications=FortificationSettings(
            max_bridge_wall_length=0,
            min_fortified_sites=6,
            max_city_gates=2,
            min_dist_between_towers=10,
            tower_area=Rect(0, 0, 5, 5),
            gatehouse_area=Rect(0, 0, 8, 8),
            wall_width=5,
            curtain_wall_width=4,
            wall_border_road_width=3,
        ),
    )

    city = generate_city(default_config(), config, CoastRiverOutline())

    print(f"==stats== (seed {city.seed})")
    print(f"Districts by type: {dict(sorted((k.value, v) for k, v in city.stats.districts_by_type.items()))}\n")
    for d in city.districts:
        print(f"\t{d.type.value} district ({d.id}, {tuple(d.site)}):")
        print(f"\t\tBuildings: {len(d.buildings)} Roads: {len(d.roads)}")
        print(f"\t\tWalls: {len(d.walls)} Towers: {len(d.towers)} Gates: {len(d.gates)}")
        print(f"\t\tBuildings by id: {dict(sorted(d.stats.buildings_by_id.items()))}\n")

    print("==total==")
    print(f"\tBuildings by id: {dict(sorted(city.stats.buildings_by_id.items()))}")
    print(f"\tCity wall edges: {len(city.walls)} towers: {len(city.towers)} gates: {len(city.gates)}")
    for feature in Feature:
        print(f"\t{feature.name.lower()} units: {city.city_map.feature_count(feature)}")


if __name__ == "__main__":
    main()
