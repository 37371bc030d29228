"""
City and district configuration.

`BuilderConfig` holds settings meant to be shared by many cities (which
district types exist, their probabilities, building footprints, walls).
`CityConfig` holds the settings of one particular city.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .district_types import DistrictType
from .geometry import Point, Rect


class BuildingConfig(BaseModel):
    """
    A building footprint.

    Only the land area matters here; what stands on it (a tower, a walled
    garden, a plaza) is up to the consumer.
    """

    id: int = Field(gt=0, description="Footprint id stored in the city map, non-zero")
    area: Rect = Field(description="Footprint rectangle, only its size is used")
    max_in_city: int = Field(default=0, ge=0, description="City-wide cap, ignored if 0")
    max_in_district: int = Field(default=0, ge=0, description="Per-district cap, ignored if 0")
    min_in_district: int = Field(default=0, ge=0, description="Minimum placed in each district")
    probability: float = Field(default=0.0, ge=0.0, description="Relative weight of random choice")

    @property
    def width(self) -> int:
        return self.area.width

    @property
    def height(self) -> int:
        return self.area.height


class DistrictConfig(BaseModel):
    """General settings for every district of one type."""

    max_in_city: int = Field(default=0, ge=0, description="Cap on districts of this type, ignored if 0")
    min_in_city: int = Field(default=0, ge=0, description="Minimum districts of this type")
    probability: float = Field(default=0.0, ge=0.0, description="Relative weight of random choice")
    buildings: List[BuildingConfig] = Field(default_factory=list, description="Footprints to place")
    central: Optional[BuildingConfig] = Field(
        default=None, description="Footprint placed as near the district centre as fits"
    )
    road_width: int = Field(default=0, ge=0, description="Width of roads inside the district")
    road_density: float = Field(default=0.0, ge=0.0, description="Higher values make more roads")
    max_bridges: int = Field(default=0, description="Bridges allowed inside the district, <0 for no cap")
    building_density: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Chance of trying a building at each anchor"
    )
    has_fortifications: bool = Field(default=False, description="Inside the city wall")
    has_curtain_fortifications: bool = Field(
        default=False, description="Has a wall, towers and gatehouse of its own"
    )

    def needs_roads(self) -> bool:
        return self.road_width > 0 and self.road_density > 0


class BuilderConfig(BaseModel):
    """District settings shared across cities."""

    districts: Dict[DistrictType, DistrictConfig] = Field(default_factory=dict)


class FortificationSettings(BaseModel):
    """Walls, towers and gatehouses."""

    max_city_gates: int = Field(default=2, ge=0, description="Gatehouses in the city wall")
    max_bridge_wall_length: int = Field(
        default=0, description="Longest wall over bridgeable land, <=0 for no cap"
    )
    curtain_wall_width: int = Field(default=4, ge=1, description="Thickness of district walls")
    wall_width: int = Field(default=5, ge=1, description="Thickness of the city wall")
    min_dist_between_towers: int = Field(default=10, ge=0, description="Tower spacing along walls")
    tower_area: Rect = Field(default=Rect(0, 0, 5, 5), description="Tower footprint")
    gatehouse_area: Rect = Field(default=Rect(0, 0, 8, 8), description="Gatehouse footprint")
    min_fortified_sites: int = Field(default=0, ge=0, description="Districts walled at minimum")
    wall_border_road_width: int = Field(
        default=3, ge=0, description="Radius of road laid around fortifications, 0 disables"
    )


class DistrictSite(BaseModel):
    """A district placed by the caller at a known location."""

    type: DistrictType = Field(description="District type")
    site: Point = Field(description="District centre")
    has_fortifications: bool = Field(default=False, description="Inside the city wall")
    has_curtain_fortifications: bool = Field(default=False, description="Has its own wall")


class CityConfig(BaseModel):
    """Settings for one city."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    area: Rect = Field(description="Bounds of the city")
    main_road_width: int = Field(default=4, ge=1, description="Width of roads between districts")
    max_bridges: int = Field(default=-1, description="Main road bridges, <0 for no cap")
    max_bridge_length: int = Field(default=0, description="Longest road bridge, <=0 for no cap")
    min_bridge_length: int = Field(default=0, ge=0, description="Shortest road bridge")
    district_sites: List[DistrictSite] = Field(default_factory=list)
    desired_districts: int = Field(default=0, ge=0, description="Districts wanted, best effort")
    min_district_size: int = Field(
        default=0, ge=0, description="Buildable units wanted around each random district site"
    )
    min_block_size: int = Field(default=0, ge=0, description="Smallest block inside a district")
    min_dock_size: int = Field(default=0, ge=0, description="Dock units required by a docks district")
    seed: Optional[int] = Field(default=None, description="PRNG seed, clock derived if unset")
    centre: Optional[Point] = Field(default=None, description="Centre, middle of area if unset")
    fortifications: Optional[FortificationSettings] = Field(default=None)

    def resolved_centre(self) -> Point:
        if self.centre is not None and self.centre != Point(0, 0):
            return self.centre
        return Point(
            self.area.min_x + self.area.width // 2,
            self.area.min_y + self.area.height // 2,
        )
