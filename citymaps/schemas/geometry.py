"""
citymaps/schemas/geometry.py

Validation models for GeoJSON region and overlay documents.
"""

from __future__ import annotations

from typing import Any, Iterator, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Bounds = tuple[tuple[float, float], tuple[float, float]]


class GeoGeometry(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    coordinates: Any = None
    geometries: list["GeoGeometry"] | None = None

    def positions(self) -> Iterator[tuple[float, float]]:
        """
        Yield every (lon, lat) position in the geometry.
        """

        if self.geometries:
            for geometry in self.geometries:
                yield from geometry.positions()
            return
        yield from _walk_positions(self.coordinates)


class GeoFeature(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    type: Literal["Feature"] = "Feature"
    id: Any = None
    properties: dict[str, Any] = Field(default_factory=dict)
    geometry: GeoGeometry | None = None

    @field_validator("properties", mode="before")
    @classmethod
    def _null_properties(cls, value: Any) -> Any:
        return {} if value is None else value

    def bounds(self) -> Bounds | None:
        return _bounds_of(self.geometry.positions() if self.geometry else iter(()))

    def to_geojson(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class GeoFeatureCollection(BaseModel):
    """
    GeoJSON FeatureCollection as read from a static geometry document.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[GeoFeature] = Field(default_factory=list)


def _walk_positions(coordinates: Any) -> Iterator[tuple[float, float]]:
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        return
    if isinstance(coordinates[0], (int, float)):
        if len(coordinates) >= 2:
            yield float(coordinates[0]), float(coordinates[1])
        return
    for child in coordinates:
        yield from _walk_positions(child)


def _bounds_of(positions: Iterator[tuple[float, float]]) -> Bounds | None:
    """
    Return ((south, west), (north, east)) for GeoJSON (lon, lat) positions.
    """

    south = west = float("inf")
    north = east = float("-inf")
    seen = False
    for lon, lat in positions:
        seen = True
        south, north = min(south, lat), max(north, lat)
        west, east = min(west, lon), max(east, lon)
    if not seen:
        return None
    return (south, west), (north, east)
