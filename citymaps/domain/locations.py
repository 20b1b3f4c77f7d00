"""
citymaps/domain/locations.py

Point locations grouped by category.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping

from citymaps.domain.ingestion import RowRejection


@dataclass(frozen=True)
class ParsedLocation:
    """
    One validated location row ready for rendering.
    """

    name: str
    category: str
    coordinates: tuple[float, float]
    detail_html: str

    @property
    def lat(self) -> float:
        return self.coordinates[0]

    @property
    def lon(self) -> float:
        return self.coordinates[1]

    def to_feature(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "properties": {
                "Name": self.name,
                "popupContent": self.detail_html,
                "Category": self.category,
            },
            "geometry": {"type": "Point", "coordinates": [self.lon, self.lat]},
        }


class CategoryCollection(Mapping[str, tuple[ParsedLocation, ...]]):
    """
    Read-only mapping of category name to its locations, in first-seen order.
    """

    def __init__(self, groups: Iterable[tuple[str, Iterable[ParsedLocation]]] = ()) -> None:
        self._groups: dict[str, tuple[ParsedLocation, ...]] = {
            category: tuple(locations) for category, locations in groups
        }

    @classmethod
    def from_locations(cls, locations: Iterable[ParsedLocation]) -> "CategoryCollection":
        grouped: dict[str, list[ParsedLocation]] = {}
        for location in locations:
            grouped.setdefault(location.category, []).append(location)
        return cls(grouped.items())

    def __getitem__(self, category: str) -> tuple[ParsedLocation, ...]:
        return self._groups[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        counts = ", ".join(f"{key!r}: {len(value)}" for key, value in self._groups.items())
        return f"CategoryCollection({{{counts}}})"

    @property
    def location_count(self) -> int:
        return sum(len(locations) for locations in self._groups.values())

    def locations(self) -> Iterator[ParsedLocation]:
        for group in self._groups.values():
            yield from group

    def to_geojson(self) -> dict[str, dict[str, Any]]:
        """
        Render one GeoJSON FeatureCollection per category.
        """

        return {
            category: {
                "type": "FeatureCollection",
                "features": [location.to_feature() for location in group],
            }
            for category, group in self._groups.items()
        }


@dataclass(frozen=True)
class TransformReport:
    """
    Collection built from one sheet plus skipped-row accounting.
    """

    collection: CategoryCollection
    rows_processed: int
    rows_skipped: int
    rejections: list[RowRejection] = field(default_factory=list)
