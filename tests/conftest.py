"""
tests/conftest.py

Shared fakes: a recording rendering engine, a scripted HTTP session, a
manual clock and an in-memory table connector.
"""

from __future__ import annotations

from typing import Any, Sequence

import pytest
import requests

from citymaps.config import ExternalHTTPSettings, SheetsSettings
from citymaps.connectors.base import BaseConnector
from citymaps.domain.ingestion import SheetTable
from citymaps.domain.interaction import StyleSpec
from citymaps.map.engine import FeatureHandlers
from citymaps.schemas.geometry import Bounds, GeoFeatureCollection


# ---------------------------------------------------------------------------
# Rendering engine
# ---------------------------------------------------------------------------


class RecordingEngine:
    """In-memory RenderingEngine that records every call."""

    def __init__(self) -> None:
        self.layers: dict[str, list[tuple[str, dict[str, Any]]]] = {}
        self.layer_options: dict[str, dict[str, Any]] = {}
        self.visible: dict[str, bool] = {}
        self.styles: dict[tuple[str, str], StyleSpec] = {}
        self.handlers: dict[tuple[str, str], FeatureHandlers] = {}
        self.style_calls: list[tuple[str, str]] = []
        self.removed: list[str] = []
        self.fitted: list[Bounds] = []

    def create_layer(
        self,
        name: str,
        features: Sequence[tuple[str, dict[str, Any]]],
        *,
        pane: str | None = None,
        visible: bool = True,
        tooltip_field: str | None = None,
        popup_field: str | None = None,
        highlight: StyleSpec | None = None,
    ) -> str:
        self.layers[name] = list(features)
        self.layer_options[name] = {
            "pane": pane,
            "tooltip_field": tooltip_field,
            "popup_field": popup_field,
            "highlight": highlight,
        }
        self.visible[name] = visible
        return name

    def remove_layer(self, layer: str) -> None:
        self.removed.append(layer)
        self.layers.pop(layer, None)
        self.visible.pop(layer, None)

    def set_feature_style(self, layer: str, feature_id: str, style: StyleSpec) -> None:
        self.styles[(layer, feature_id)] = style
        self.style_calls.append((layer, feature_id))

    def bind_feature_handlers(self, layer: str, feature_id: str, handlers: FeatureHandlers) -> None:
        self.handlers[(layer, feature_id)] = handlers

    def fit_bounds(self, bounds: Bounds) -> None:
        self.fitted.append(bounds)

    def set_layer_visible(self, layer: str, visible: bool) -> None:
        self.visible[layer] = visible

    def feature_ids(self, layer: str) -> list[str]:
        return [feature_id for feature_id, _ in self.layers.get(layer, [])]


@pytest.fixture()
def engine() -> RecordingEngine:
    return RecordingEngine()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, *, invalid_json: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)  # type: ignore[arg-type]


class FakeSession:
    """Replays scripted responses (or exceptions) in order and records calls."""

    def __init__(self, *responses: FakeResponse | Exception) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def request(self, **kwargs: Any) -> FakeResponse:
        self.calls.append(kwargs)
        if not self._responses:
            raise AssertionError("FakeSession ran out of scripted responses.")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request(method="GET", url=url, **kwargs)


@pytest.fixture()
def http_settings() -> ExternalHTTPSettings:
    return ExternalHTTPSettings(
        timeout_seconds=1.0,
        max_retries=2,
        backoff_initial_seconds=0.5,
        backoff_multiplier=2.0,
        rate_limit_per_second=0.0,
    )


@pytest.fixture()
def sheets_settings() -> SheetsSettings:
    return SheetsSettings(api_key="test-key", locations_sheet_id="loc-sheet", stats_sheet_id="stats-sheet")


# ---------------------------------------------------------------------------
# Clock and connector
# ---------------------------------------------------------------------------


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


class FakeConnector(BaseConnector):
    """Serves fixed tables (or raises fixed errors) without any network I/O."""

    def __init__(self, *results: SheetTable | Exception, http_settings: ExternalHTTPSettings | None = None) -> None:
        super().__init__(source="fake", http_settings=http_settings or ExternalHTTPSettings(), session=FakeSession())
        self._results = list(results)
        self.calls: list[tuple[str, str]] = []
        self.on_fetch: Any = None

    def fetch_table(self, source_id: str, range_: str) -> SheetTable:
        self.calls.append((source_id, range_))
        if self.on_fetch is not None:
            self.on_fetch()
        result = self._results[0] if len(self._results) == 1 else self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


def _square(west: float, south: float, east: float, north: float) -> dict[str, Any]:
    return {
        "type": "Polygon",
        "coordinates": [[[west, south], [east, south], [east, north], [west, north], [west, south]]],
    }


@pytest.fixture()
def regions() -> GeoFeatureCollection:
    return GeoFeatureCollection.model_validate(
        {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "properties": {"cartodb_id": 1, "name": "Mitte"}, "geometry": _square(13.3, 52.5, 13.4, 52.6)},
                {"type": "Feature", "properties": {"cartodb_id": 2, "name": "Pankow"}, "geometry": _square(13.4, 52.5, 13.5, 52.6)},
                {"type": "Feature", "properties": {"cartodb_id": 3, "name": "Neukölln"}, "geometry": _square(13.4, 52.4, 13.5, 52.5)},
            ],
        }
    )


@pytest.fixture()
def routes() -> GeoFeatureCollection:
    return GeoFeatureCollection.model_validate(
        {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "properties": {"route_name": name},
                    "geometry": {"type": "LineString", "coordinates": [[13.3, 52.5], [13.4, 52.52]]},
                }
                for name in ("U2", "U8", "M10")
            ],
        }
    )
