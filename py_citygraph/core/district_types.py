"""
District types.

A district type says roughly what one finds in a district. Types carry a
stable numeric id (stored in the spatial map) and a desirability rank: the
lower the rank, the closer to the city centre the type tends to be placed.
"""

from enum import Enum
from typing import List, Tuple


class DistrictType(str, Enum):
    PARK = "park"
    TEMPLE = "temple"
    CIVIC = "civic"
    GRAVEYARD = "graveyard"
    RESIDENTIAL_UPPER = "residential-upperclass"
    RESIDENTIAL_MIDDLE = "residential-middleclass"
    RESIDENTIAL_LOWER = "residential-lowerclass"
    RESIDENTIAL_SLUM = "residential-slum"
    ABANDONED = "abandoned"
    FORTRESS = "fortress"
    MARKET = "market"
    COMMERCIAL = "commercial"
    SQUARE = "square"
    INDUSTRIAL = "industrial"
    WAREHOUSE = "warehouse"
    BARRACKS = "barracks"
    PRISON = "prison"
    DOCKS = "docks"
    RESEARCH = "research"
    FIELDS = "fields"
    EMPTY = "empty"

    @property
    def id(self) -> int:
        return _TYPE_IDS[self]

    @property
    def desirability(self) -> int:
        """Lower is more desirable; EMPTY ranks behind everything."""
        if self is DistrictType.EMPTY:
            return len(ALL_DISTRICTS) + 1
        return self.id

    @classmethod
    def from_id(cls, type_id: int) -> "DistrictType":
        """Inverse of `id`; unknown ids map to EMPTY."""
        return _TYPES_BY_ID.get(type_id, cls.EMPTY)


# ordered by how close to the centre each type tends to sit
ALL_DISTRICTS: Tuple[DistrictType, ...] = (
    DistrictType.FORTRESS,
    DistrictType.CIVIC,
    DistrictType.RESIDENTIAL_UPPER,
    DistrictType.TEMPLE,
    DistrictType.SQUARE,
    DistrictType.MARKET,
    DistrictType.COMMERCIAL,
    DistrictType.PARK,
    DistrictType.RESIDENTIAL_MIDDLE,
    DistrictType.RESEARCH,
    DistrictType.GRAVEYARD,
    DistrictType.RESIDENTIAL_LOWER,
    DistrictType.DOCKS,
    DistrictType.RESIDENTIAL_SLUM,
    DistrictType.INDUSTRIAL,
    DistrictType.WAREHOUSE,
    DistrictType.BARRACKS,
    DistrictType.PRISON,
    DistrictType.FIELDS,
    DistrictType.ABANDONED,
    DistrictType.EMPTY,
)

_TYPE_IDS = {t: (0 if t is DistrictType.EMPTY else i + 1) for i, t in enumerate(ALL_DISTRICTS)}
_TYPES_BY_ID = {v: k for k, v in _TYPE_IDS.items()}


def all_district_types() -> List[DistrictType]:
    return list(ALL_DISTRICTS)


def sort_types_by_desirability(types: List[DistrictType]) -> None:
    """Sort in place, most desirable first (stable)."""
    types.sort(key=lambda t: t.desirability)