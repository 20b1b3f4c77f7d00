"""
citymaps/map/folium_engine.py

Rendering engine backed by folium (Leaflet).

Server-side state is kept per layer; `build_map()` renders a fresh
`folium.Map` from it and `dispatch()` replays frontend events (for example
clicks reported by streamlit-folium) into the bound handlers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import folium

from citymaps.domain.interaction import StyleSpec
from citymaps.map.engine import FEATURE_ID_KEY, LAYER_KEY, PANE_Z_INDEX, FeatureHandlers
from citymaps.schemas.geometry import Bounds

logger = logging.getLogger(__name__)

DEFAULT_TILES = "CartoDB positron"


@dataclass
class _LayerRecord:
    name: str
    features: list[tuple[str, dict[str, Any]]]
    pane: str | None
    visible: bool
    tooltip_field: str | None
    popup_field: str | None
    highlight: StyleSpec | None
    styles: dict[str, StyleSpec] = field(default_factory=dict)
    handlers: dict[str, FeatureHandlers] = field(default_factory=dict)

    @property
    def z_index(self) -> int:
        return PANE_Z_INDEX.get(self.pane or "", 400)

    def feature_collection(self) -> dict[str, Any]:
        features = []
        for feature_id, feature in self.features:
            properties = dict(feature.get("properties") or {})
            for label_field in (self.tooltip_field, self.popup_field):
                if label_field:
                    properties.setdefault(label_field, "")
            properties[FEATURE_ID_KEY] = feature_id
            properties[LAYER_KEY] = self.name
            features.append({**feature, "properties": properties})
        return {"type": "FeatureCollection", "features": features}

    def is_point_layer(self) -> bool:
        return bool(self.features) and all(
            (feature.get("geometry") or {}).get("type") == "Point" for _, feature in self.features
        )


@dataclass
class ClickReplay:
    """
    Turns the sticky `last_active_drawing` echoed by streamlit-folium into
    one-shot click events.

    The component keeps returning the last clicked feature on every rerun,
    so a feature is replayed only when it differs from the previous one.
    `reset()` bumps the widget key so the next click on the same feature
    is seen again.
    """

    key_prefix: str = "city_map"
    generation: int = 0
    last_feature: Any = None

    @property
    def widget_key(self) -> str:
        return f"{self.key_prefix}_{self.generation}"

    def is_new(self, feature: Mapping[str, Any] | None) -> bool:
        if not feature or feature == self.last_feature:
            return False
        self.last_feature = feature
        return True

    def reset(self) -> None:
        self.generation += 1
        self.last_feature = None


class FoliumEngine:
    """
    `RenderingEngine` implementation producing folium maps.
    """

    def __init__(
        self,
        *,
        center: tuple[float, float],
        zoom: int,
        min_zoom: int | None = None,
        max_zoom: int | None = None,
        tiles: str = DEFAULT_TILES,
    ) -> None:
        self._center = center
        self._zoom = zoom
        self._min_zoom = min_zoom
        self._max_zoom = max_zoom
        self._tiles = tiles
        self._layers: dict[str, _LayerRecord] = {}
        self._bounds: Bounds | None = None

    @property
    def bounds(self) -> Bounds | None:
        return self._bounds

    def layer_names(self) -> list[str]:
        return list(self._layers)

    def is_visible(self, layer: str) -> bool:
        record = self._layers.get(layer)
        return bool(record and record.visible)

    def style_of(self, layer: str, feature_id: str) -> StyleSpec | None:
        record = self._layers.get(layer)
        return record.styles.get(feature_id) if record else None

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
        self._layers[name] = _LayerRecord(
            name=name,
            features=list(features),
            pane=pane,
            visible=visible,
            tooltip_field=tooltip_field,
            popup_field=popup_field,
            highlight=highlight,
        )
        return name

    def remove_layer(self, layer: str) -> None:
        self._layers.pop(layer, None)

    def set_feature_style(self, layer: str, feature_id: str, style: StyleSpec) -> None:
        record = self._layers.get(layer)
        if record is not None:
            record.styles[feature_id] = style

    def bind_feature_handlers(self, layer: str, feature_id: str, handlers: FeatureHandlers) -> None:
        record = self._layers.get(layer)
        if record is not None:
            record.handlers[feature_id] = handlers

    def fit_bounds(self, bounds: Bounds) -> None:
        self._bounds = bounds

    def set_layer_visible(self, layer: str, visible: bool) -> None:
        record = self._layers.get(layer)
        if record is not None:
            record.visible = visible

    def dispatch(self, layer: str, feature_id: str, event: str) -> bool:
        """
        Invoke the handler bound for `event` ("enter", "leave" or "click").
        Returns False when nothing is bound.
        """

        record = self._layers.get(layer)
        handlers = record.handlers.get(feature_id) if record else None
        if handlers is None:
            logger.debug("No handlers bound layer=%s feature_id=%s event=%s", layer, feature_id, event)
            return False

        callback = {
            "enter": handlers.on_enter,
            "leave": handlers.on_leave,
            "click": handlers.on_click,
        }.get(event)
        if callback is None:
            raise ValueError(f"Unsupported map event '{event}'.")
        callback()
        return True

    def dispatch_feature(self, feature: Mapping[str, Any] | None, event: str = "click") -> bool:
        """
        Dispatch an event for a GeoJSON feature echoed back by the frontend.
        """

        if not feature:
            return False
        properties = feature.get("properties") or {}
        layer = properties.get(LAYER_KEY)
        feature_id = properties.get(FEATURE_ID_KEY)
        if layer is None or feature_id is None:
            return False
        return self.dispatch(str(layer), str(feature_id), event)

    def build_map(self) -> folium.Map:
        options: dict[str, Any] = {}
        if self._min_zoom is not None:
            options["min_zoom"] = self._min_zoom
        if self._max_zoom is not None:
            options["max_zoom"] = self._max_zoom

        fmap = folium.Map(
            location=list(self._center),
            zoom_start=self._zoom,
            tiles=self._tiles,
            **options,
        )
        for record in sorted(self._layers.values(), key=lambda item: item.z_index):
            if record.visible and record.features:
                self._add_layer(fmap, record)

        if self._bounds is not None:
            (south, west), (north, east) = self._bounds
            fmap.fit_bounds([[south, west], [north, east]])
        return fmap

    def _add_layer(self, fmap: folium.Map, record: _LayerRecord) -> None:
        styles = {feature_id: style.as_leaflet() for feature_id, style in record.styles.items()}

        def style_function(feature: dict[str, Any]) -> dict[str, Any]:
            return styles.get(feature["properties"][FEATURE_ID_KEY], {})

        kwargs: dict[str, Any] = {"name": record.name, "style_function": style_function}
        if record.highlight is not None:
            highlight = record.highlight.as_leaflet()
            kwargs["highlight_function"] = lambda _feature: highlight
        if record.tooltip_field:
            kwargs["tooltip"] = folium.GeoJsonTooltip(fields=[record.tooltip_field], labels=False)
        if record.popup_field:
            kwargs["popup"] = folium.GeoJsonPopup(fields=[record.popup_field], labels=False)
        if record.is_point_layer():
            kwargs["marker"] = folium.CircleMarker(radius=6, fill=True)

        folium.GeoJson(json.dumps(record.feature_collection()), **kwargs).add_to(fmap)
