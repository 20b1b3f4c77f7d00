"""
citymaps/config.py

Environment-driven settings for sheet retrieval, caching, layers and display.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

PLACEHOLDER_API_KEYS = {"your_google_sheets_api_key_here", "YOUR_GOOGLE_SHEETS_API_KEY_HERE"}

DEFAULT_VISIBLE_COLUMNS: tuple[str, ...] = (
    "Werbeträger",
    "Ort",
    "Standort",
    "Maße",
    "Beleuchtung",
    "Buchungsintervall",
    "Vorlaufzeit",
)

DEFAULT_ROUTES: tuple[str, ...] = (
    "U1", "U2", "U3", "U4", "U5", "U6", "U7", "U8", "U9",
    "S41", "S5", "S9",
)

DEFAULT_ROUTE_COLORS: dict[str, str] = {
    "S1": "#DE4DA4",
    "S2": "#006F35",
    "S25": "#006F35",
    "S3": "#003F7F",
    "S41": "#A23B1E",
    "S5": "#FF6600",
    "S9": "#8B1538",
    "U1": "#7DAD4C",
    "U2": "#DA421E",
    "U3": "#16683D",
    "U4": "#F0D722",
    "U5": "#7E5330",
    "U6": "#007734",
    "U7": "#009BD5",
    "U8": "#224F86",
    "U9": "#F3791D",
}

DEFAULT_CATEGORY_COLORS: dict[str, str] = {
    "Brückenwerbung": "#1f77b4",
    "City Light Poster": "#ff7f0e",
    "City Light Säule": "#2ca02c",
    "Fassadenwerbung": "#d62728",
    "Großfläche": "#9467bd",
    "Kreide Stencil": "#8c564b",
    "Leuchtkasten": "#e377c2",
    "Litfaßsäule": "#7f7f7f",
    "Mastenschild": "#bcbd22",
    "Plakatwerbung": "#17becf",
    "Stromkasten": "#e41a1c",
    "Uhrenwerbung": "#4daf4a",
    "Div. Supermarktwerbung": "#984ea3",
}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list; an unset variable keeps the default, an
    empty one yields an empty tuple.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for external connectors.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class SheetsSettings:
    """
    Google Sheets source settings.
    """

    api_key: str | None = None
    base_url: str = "https://sheets.googleapis.com/v4/spreadsheets"
    locations_sheet_id: str = "1ltHBwFfhnMvTEh1qzpZ6WFvMKBG9Q1v0358kyKSrLcg"
    locations_range: str = "Tabellenblatt1!A:K"
    stats_sheet_id: str = "16j8VuT1ziwtkP-M5uuhFg7Z0AWqkxlLDTCwmdTwIEVA"
    stats_range: str = "Berlin!A:F"

    @property
    def has_valid_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key not in PLACEHOLDER_API_KEYS


@dataclass(frozen=True)
class CacheSettings:
    """
    In-memory sheet cache settings.
    """

    ttl_seconds: float = 300.0


@dataclass(frozen=True)
class LocationColumnSettings:
    """
    Column names used to turn location sheet rows into map points.
    """

    name_column: str = "Name"
    coordinates_column: str = "Koordinaten"
    category_column: str = "Werbeträger"
    visible_columns: tuple[str, ...] = DEFAULT_VISIBLE_COLUMNS
    image_columns: tuple[str, ...] = ("Bild1", "Bild2")
    logo_url: str | None = "https://www.wtm-aussenwerbung.de/wp-content/uploads/wtm-aussenwerbung.webp"


@dataclass(frozen=True)
class StatisticsColumnSettings:
    """
    Column-name-to-field mapping for the region statistics sheet.
    Matching is case-insensitive.
    """

    id_column: str = "cartodb_id"
    name_column: str = "name"
    population_column: str = "population"
    area_column: str = "area"
    derived_count_column: str = "adcount"
    notes_column: str = "notes"


@dataclass(frozen=True)
class LayerSettings:
    """
    Feature property names and colours used by the region layer controller.
    """

    region_id_property: str = "cartodb_id"
    region_name_property: str = "name"
    overlay_discriminant_property: str = "route_name"
    overlay_filter: tuple[str, ...] = DEFAULT_ROUTES
    overlay_colors: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ROUTE_COLORS))
    category_colors: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_COLORS))
    region_color: str = "#13538a"


@dataclass(frozen=True)
class UITexts:
    """
    User-facing text for the detail panel and loading states.
    """

    title: str = "Berlin City Map - Districts & Transportation"
    overlay_toggle_text: str = "Öffentliche Verkehrsmittel"
    region_select_prompt: str = "Bezirk auswählen"
    region_select_hint: str = "Wähle einen Bezirk auf der Karte, um Details anzuzeigen."
    loading_text: str = "Lade Kartendaten..."
    error_text: str = "Fehler beim Laden der Daten"
    stats_unavailable_text: str = "Statistiken derzeit nicht verfügbar."
    data_source: str = "Datenquelle: Bezirksamt / interne Erhebung"


@dataclass(frozen=True)
class MapDisplaySettings:
    """
    Map viewport defaults, geometry sources and feature flags.
    """

    center: tuple[float, float] = (52.51, 13.39)
    zoom: int = 11
    min_zoom: int = 10
    max_zoom: int = 14
    regions_source: str | None = "data/geojson/sample_districts.geojson"
    overlay_source: str | None = "data/geojson/sample_routes.geojson"
    show_overlay: bool = True
    show_statistics: bool = True
    show_locations: bool = True
    ui: UITexts = field(default_factory=UITexts)


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_sheets_settings() -> SheetsSettings:
    """
    Return Google Sheets source settings from environment variables.
    """

    defaults = SheetsSettings()
    return SheetsSettings(
        api_key=_get_optional_str_env("GOOGLE_SHEETS_API_KEY"),
        base_url=_get_str_env("GOOGLE_SHEETS_BASE_URL", defaults.base_url),
        locations_sheet_id=_get_str_env("LOCATIONS_SHEET_ID", defaults.locations_sheet_id),
        locations_range=_get_str_env("LOCATIONS_SHEET_RANGE", defaults.locations_range),
        stats_sheet_id=_get_str_env("STATS_SHEET_ID", defaults.stats_sheet_id),
        stats_range=_get_str_env("STATS_SHEET_RANGE", defaults.stats_range),
    )


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    """
    Return sheet cache settings.
    """

    return CacheSettings(ttl_seconds=max(0.0, _get_float_env("SHEETS_CACHE_TTL_SECONDS", 300.0)))


@lru_cache(maxsize=1)
def get_location_column_settings() -> LocationColumnSettings:
    defaults = LocationColumnSettings()
    return LocationColumnSettings(
        name_column=_get_str_env("LOCATIONS_NAME_COLUMN", defaults.name_column),
        coordinates_column=_get_str_env("LOCATIONS_COORDINATES_COLUMN", defaults.coordinates_column),
        category_column=_get_str_env("LOCATIONS_CATEGORY_COLUMN", defaults.category_column),
        visible_columns=_get_list_env("LOCATIONS_VISIBLE_COLUMNS", defaults.visible_columns),
        image_columns=_get_list_env("LOCATIONS_IMAGE_COLUMNS", defaults.image_columns)[:2],
        logo_url=_get_optional_str_env("LOCATIONS_LOGO_URL") or defaults.logo_url,
    )


@lru_cache(maxsize=1)
def get_statistics_column_settings() -> StatisticsColumnSettings:
    defaults = StatisticsColumnSettings()
    return StatisticsColumnSettings(
        id_column=_get_str_env("STATS_ID_COLUMN", defaults.id_column),
        name_column=_get_str_env("STATS_NAME_COLUMN", defaults.name_column),
        population_column=_get_str_env("STATS_POPULATION_COLUMN", defaults.population_column),
        area_column=_get_str_env("STATS_AREA_COLUMN", defaults.area_column),
        derived_count_column=_get_str_env("STATS_DERIVED_COUNT_COLUMN", defaults.derived_count_column),
        notes_column=_get_str_env("STATS_NOTES_COLUMN", defaults.notes_column),
    )


@lru_cache(maxsize=1)
def get_layer_settings() -> LayerSettings:
    defaults = LayerSettings()
    return LayerSettings(
        region_id_property=_get_str_env("REGION_ID_PROPERTY", defaults.region_id_property),
        region_name_property=_get_str_env("REGION_NAME_PROPERTY", defaults.region_name_property),
        overlay_discriminant_property=_get_str_env(
            "OVERLAY_DISCRIMINANT_PROPERTY", defaults.overlay_discriminant_property
        ),
        overlay_filter=_get_list_env("OVERLAY_FILTER", defaults.overlay_filter),
    )


@lru_cache(maxsize=1)
def get_map_display_settings() -> MapDisplaySettings:
    """
    Return map display settings from environment variables.
    """

    defaults = MapDisplaySettings()
    return MapDisplaySettings(
        center=(
            _get_float_env("MAP_CENTER_LAT", defaults.center[0]),
            _get_float_env("MAP_CENTER_LON", defaults.center[1]),
        ),
        zoom=_get_int_env("MAP_ZOOM", defaults.zoom),
        min_zoom=_get_int_env("MAP_MIN_ZOOM", defaults.min_zoom),
        max_zoom=_get_int_env("MAP_MAX_ZOOM", defaults.max_zoom),
        regions_source=_get_optional_str_env("REGIONS_GEOJSON") or defaults.regions_source,
        overlay_source=_get_optional_str_env("OVERLAY_GEOJSON") or defaults.overlay_source,
        show_overlay=_get_bool_env("SHOW_OVERLAY", defaults.show_overlay),
        show_statistics=_get_bool_env("SHOW_STATISTICS", defaults.show_statistics),
        show_locations=_get_bool_env("SHOW_LOCATIONS", defaults.show_locations),
    )


def validate_map_settings(
    display: MapDisplaySettings,
    layers: LayerSettings,
) -> list[str]:
    """
    Return configuration errors; an empty list means the settings are usable.
    """

    errors: list[str] = []
    if len(display.center) != 2:
        errors.append("Invalid or missing map center coordinates.")
    else:
        lat, lon = display.center
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            errors.append("Map center coordinates are out of range.")

    if not 1 <= display.zoom <= 20:
        errors.append("Invalid zoom level (must be between 1-20).")
    if display.min_zoom > display.max_zoom:
        errors.append("min_zoom must not exceed max_zoom.")
    elif not display.min_zoom <= display.zoom <= display.max_zoom:
        errors.append("Zoom level must lie between min_zoom and max_zoom.")

    if display.show_overlay and not display.overlay_source:
        errors.append("Overlay feature enabled but no overlay data source provided.")
    if not layers.region_id_property:
        errors.append("Region id property must not be empty.")
    if display.show_overlay and not layers.overlay_discriminant_property:
        errors.append("Overlay discriminant property must not be empty.")
    return errors
