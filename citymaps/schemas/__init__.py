"""
citymaps/schemas package marker.
"""

from citymaps.schemas.geometry import Bounds, GeoFeature, GeoFeatureCollection, GeoGeometry
from citymaps.schemas.sheets import SheetValuesResponse

__all__ = [
    "Bounds",
    "GeoFeature",
    "GeoFeatureCollection",
    "GeoGeometry",
    "SheetValuesResponse",
]
