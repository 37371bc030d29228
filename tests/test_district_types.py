"""Tests for district types and their desirability order."""

from py_citygraph.core.district_types import (
    ALL_DISTRICTS, DistrictType, all_district_types, sort_types_by_desirability,
)


class TestDistrictTypes:
    """Test ids and ordering."""

    def test_all_types_listed_once(self):
        assert len(ALL_DISTRICTS) == len(DistrictType) == 21
        assert set(all_district_types()) == set(DistrictType)

    def test_ids(self):
        assert DistrictType.EMPTY.id == 0
        assert DistrictType.FORTRESS.id == 1
        ids = [t.id for t in ALL_DISTRICTS]
        assert len(set(ids)) == len(ids)

    def test_from_id_round_trip(self):
        for t in DistrictType:
            assert DistrictType.from_id(t.id) is t
        assert DistrictType.from_id(250) is DistrictType.EMPTY

    def test_string_values(self):
        assert DistrictType("residential-slum") is DistrictType.RESIDENTIAL_SLUM
        assert DistrictType.DOCKS.value == "docks"

    def test_sort_by_desirability(self):
        types = [DistrictType.EMPTY, DistrictType.FIELDS, DistrictType.FORTRESS,
                 DistrictType.PARK, DistrictType.CIVIC]
        sort_types_by_desirability(types)
        assert types == [DistrictType.FORTRESS, DistrictType.CIVIC, DistrictType.PARK,
                         DistrictType.FIELDS, DistrictType.EMPTY]
