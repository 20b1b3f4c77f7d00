"""
citymaps/services/map_data_service.py

Ingestion pipeline for locations, region statistics and geometry documents.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, TypeVar

from citymaps.config import (
    MapDisplaySettings,
    SheetsSettings,
    get_cache_settings,
    get_external_http_settings,
    get_location_column_settings,
    get_map_display_settings,
    get_sheets_settings,
    get_statistics_column_settings,
)
from citymaps.connectors.sheets_connector import SheetsConnector
from citymaps.domain.ingestion import DatasetResult, DatasetStatus
from citymaps.domain.locations import CategoryCollection, TransformReport
from citymaps.errors import EmptyDataset, SourceUnavailable
from citymaps.logging_utils import log_event
from citymaps.schemas.geometry import GeoFeatureCollection
from citymaps.services.fetch_cache import TabularFetchCache
from citymaps.services.geometry_loader import GeometryLoader
from citymaps.services.row_transformer import RowTransformer
from citymaps.services.statistics_index import IndexReport, StatisticsJoinIndex

logger = logging.getLogger(__name__)

R = TypeVar("R", TransformReport, IndexReport)

LOCATIONS = "locations"
STATISTICS = "statistics"
REGIONS = "regions"
OVERLAY = "overlay"


class MapDataService:
    """
    Loads every dataset the map needs and converts dataset-level failures
    into degraded results instead of raising.
    """

    def __init__(
        self,
        *,
        connector: SheetsConnector,
        sheets: SheetsSettings,
        location_cache: TabularFetchCache[TransformReport],
        statistics_cache: TabularFetchCache[IndexReport],
        geometry_loader: GeometryLoader,
        display: MapDisplaySettings,
    ) -> None:
        self._connector = connector
        self._sheets = sheets
        self._location_cache = location_cache
        self._statistics_cache = statistics_cache
        self._geometry_loader = geometry_loader
        self._display = display

    def load_locations(self) -> DatasetResult[CategoryCollection]:
        if not self._display.show_locations:
            return DatasetResult(name=LOCATIONS, status=DatasetStatus.DISABLED, message="Locations disabled.")
        return self._load_sheet(
            LOCATIONS,
            self._location_cache,
            self._sheets.locations_sheet_id,
            self._sheets.locations_range,
            lambda report: report.collection,
        )

    def load_statistics(self) -> DatasetResult[StatisticsJoinIndex]:
        if not self._display.show_statistics:
            return DatasetResult(name=STATISTICS, status=DatasetStatus.DISABLED, message="Statistics disabled.")
        return self._load_sheet(
            STATISTICS,
            self._statistics_cache,
            self._sheets.stats_sheet_id,
            self._sheets.stats_range,
            lambda report: report.index,
        )

    def load_regions(self) -> DatasetResult[GeoFeatureCollection]:
        return self._load_geometry(REGIONS, self._display.regions_source)

    def load_overlay(self) -> DatasetResult[GeoFeatureCollection]:
        if not self._display.show_overlay:
            return DatasetResult(name=OVERLAY, status=DatasetStatus.DISABLED, message="Overlay disabled.")
        return self._load_geometry(OVERLAY, self._display.overlay_source)

    def refresh(self) -> None:
        """
        Force the next load of each sheet to hit the network.
        """

        self._location_cache.invalidate()
        self._statistics_cache.invalidate()

    def _load_sheet(
        self,
        name: str,
        cache: TabularFetchCache[R],
        sheet_id: str,
        range_: str,
        extract: Callable[[R], object],
    ) -> DatasetResult:
        if not self._connector.enabled:
            log_event(logger, logging.INFO, "dataset_disabled", dataset=name, reason="api_key_missing")
            return DatasetResult(
                name=name,
                status=DatasetStatus.DISABLED,
                message="Google Sheets API key not configured.",
            )

        try:
            report = cache.fetch(sheet_id, range_)
        except (SourceUnavailable, EmptyDataset) as exc:
            log_event(logger, logging.ERROR, "dataset_unavailable", dataset=name, error=str(exc))
            return DatasetResult(name=name, status=DatasetStatus.UNAVAILABLE, message=str(exc))

        return DatasetResult(
            name=name,
            status=DatasetStatus.OK,
            data=extract(report),
            rejections=list(report.rejections),
        )

    def _load_geometry(self, name: str, source: str | None) -> DatasetResult[GeoFeatureCollection]:
        if not source:
            return DatasetResult(name=name, status=DatasetStatus.DISABLED, message=f"No {name} source configured.")
        try:
            collection = self._geometry_loader.load(source)
        except SourceUnavailable as exc:
            log_event(logger, logging.ERROR, "dataset_unavailable", dataset=name, error=str(exc))
            return DatasetResult(name=name, status=DatasetStatus.UNAVAILABLE, message=str(exc))
        return DatasetResult(name=name, status=DatasetStatus.OK, data=collection)


@lru_cache(maxsize=1)
def get_map_data_service() -> MapDataService:
    """
    Build and cache the map data service from environment settings.
    """

    sheets = get_sheets_settings()
    http_settings = get_external_http_settings()
    ttl_seconds = get_cache_settings().ttl_seconds
    connector = SheetsConnector(settings=sheets, http_settings=http_settings)
    transformer = RowTransformer(get_location_column_settings())
    statistics_columns = get_statistics_column_settings()

    return MapDataService(
        connector=connector,
        sheets=sheets,
        location_cache=TabularFetchCache(
            connector,
            ttl_seconds=ttl_seconds,
            transform=lambda table: transformer.transform_with_report(table.header, table.rows),
            name=LOCATIONS,
        ),
        statistics_cache=TabularFetchCache(
            connector,
            ttl_seconds=ttl_seconds,
            transform=lambda table: StatisticsJoinIndex.build_with_report(
                table.header, table.rows, statistics_columns
            ),
            name=STATISTICS,
        ),
        geometry_loader=GeometryLoader(http_settings=http_settings),
        display=get_map_display_settings(),
    )
