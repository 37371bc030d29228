"""
Core city generation functionality.
"""

from .city_config import (BuilderConfig, BuildingConfig, CityConfig, DistrictConfig,
                          DistrictSite, FortificationSettings)
from .city_map import CityMap, Feature
from .citygraph import CityGraph, generate_city
from .district_types import DistrictType
from .districts import Building, District, Edge, Section
from .errors import CitygraphError, UnsatisfiableConfigError
from .geometry import Point, Rect
from .terrain import Outline, TerrainGrid
from .voronoi_graph import VoronoiGraph, VoronoiSite, generate_voronoi_graph

__all__ = ['BuilderConfig', 'BuildingConfig', 'CityConfig', 'DistrictConfig',
           'DistrictSite', 'FortificationSettings', 'CityMap', 'Feature',
           'CityGraph', 'generate_city', 'DistrictType', 'Building', 'District',
           'Edge', 'Section', 'CitygraphError', 'UnsatisfiableConfigError',
           'Point', 'Rect', 'Outline', 'TerrainGrid',
           'VoronoiGraph', 'VoronoiSite', 'generate_voronoi_graph']
