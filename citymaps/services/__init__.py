"""
citymaps/services package marker.
"""

from citymaps.services.fetch_cache import CacheEntry, TabularFetchCache
from citymaps.services.geometry_loader import GeometryLoader
from citymaps.services.map_data_service import MapDataService, get_map_data_service
from citymaps.services.row_transformer import RowTransformer
from citymaps.services.statistics_index import IndexReport, StatisticsJoinIndex, normalize_region_id

__all__ = [
    "CacheEntry",
    "GeometryLoader",
    "IndexReport",
    "MapDataService",
    "RowTransformer",
    "StatisticsJoinIndex",
    "TabularFetchCache",
    "get_map_data_service",
    "normalize_region_id",
]
