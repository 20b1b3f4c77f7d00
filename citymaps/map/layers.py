"""
citymaps/map/layers.py

Region, overlay and location layers with styling derived from interaction state.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Protocol, Sequence

from citymaps.config import LayerSettings
from citymaps.domain.interaction import InteractionState, StyleSpec
from citymaps.domain.locations import CategoryCollection
from citymaps.map.engine import MARKER_PANE, OVERLAY_PANE, REGION_PANE, FeatureHandlers, RenderingEngine
from citymaps.schemas.geometry import GeoFeature, GeoFeatureCollection
from citymaps.services.statistics_index import normalize_region_id

logger = logging.getLogger(__name__)

REGION_LAYER = "regions"
OVERLAY_LAYER = "overlay"
LOCATION_LAYER = "locations"

DIMMED_OPACITY = 0.2
DEFAULT_OVERLAY_COLOR = "#000000"
DEFAULT_MARKER_COLOR = "#666666"


class RegionEventSink(Protocol):
    def pointer_enter(self, region_id: str) -> None: ...

    def pointer_leave(self, region_id: str) -> None: ...

    def click(self, region_id: str) -> None: ...


class RegionLayerController:
    """
    Owns the rendered region polygons, the optional overlay and point markers.

    Overlay visibility and region outline prominence are one visual state:
    both are derived from the last applied InteractionState.
    """

    def __init__(self, engine: RenderingEngine, settings: LayerSettings | None = None) -> None:
        self._engine = engine
        self._settings = settings or LayerSettings()
        self._regions: dict[str, GeoFeature] = {}
        self._region_layer: str | None = None
        self._overlay_layer: str | None = None
        self._location_layer: str | None = None
        self._state = InteractionState()
        self._events: RegionEventSink | None = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def region_ids(self) -> list[str]:
        return list(self._regions)

    @property
    def has_overlay(self) -> bool:
        return self._overlay_layer is not None

    def has_region(self, region_id: str | None) -> bool:
        return region_id is not None and region_id in self._regions

    def region_name(self, region_id: str) -> str | None:
        feature = self._regions.get(region_id)
        if feature is None:
            return None
        name = feature.properties.get(self._settings.region_name_property)
        return str(name) if name is not None else None

    def attach_events(self, sink: RegionEventSink) -> None:
        self._events = sink

    def load_regions(self, collection: GeoFeatureCollection) -> list[str]:
        """
        Replace the region layer; returns the rendered region ids in order.
        """

        id_property = self._settings.region_id_property
        regions: dict[str, GeoFeature] = {}
        for position, feature in enumerate(collection.features):
            region_id = normalize_region_id(feature.properties.get(id_property, feature.id))
            if not region_id:
                logger.warning("Region feature without id skipped position=%s property=%s", position, id_property)
                continue
            if region_id in regions:
                logger.warning("Duplicate region id in geometry id=%s; last feature wins", region_id)
            regions[region_id] = feature

        if self._region_layer is not None:
            self._engine.remove_layer(self._region_layer)

        self._regions = regions
        self._region_layer = self._engine.create_layer(
            REGION_LAYER,
            [(region_id, feature.to_geojson()) for region_id, feature in regions.items()],
            pane=REGION_PANE,
            tooltip_field=self._settings.region_name_property,
            highlight=self._hover_style(),
        )
        for region_id in regions:
            self._engine.set_feature_style(self._region_layer, region_id, self.style_for_state(region_id, self._state))
            self._engine.bind_feature_handlers(self._region_layer, region_id, self._handlers_for(region_id))

        logger.info("Loaded region layer regions=%s", len(regions))
        return list(regions)

    def load_overlay(self, collection: GeoFeatureCollection, filter_list: Sequence[str] = ()) -> int:
        """
        Replace the overlay layer; a non-empty `filter_list` keeps only listed
        discriminant values. Returns the number of rendered features.
        """

        discriminant = self._settings.overlay_discriminant_property
        allowed = set(filter_list)
        features = [
            feature
            for feature in collection.features
            if not allowed or feature.properties.get(discriminant) in allowed
        ]

        if self._overlay_layer is not None:
            self._engine.remove_layer(self._overlay_layer)

        entries = [(f"{feature.properties.get(discriminant)}:{position}", feature) for position, feature in enumerate(features)]
        self._overlay_layer = self._engine.create_layer(
            OVERLAY_LAYER,
            [(feature_id, feature.to_geojson()) for feature_id, feature in entries],
            pane=OVERLAY_PANE,
            visible=self._state.overlay_visible,
            tooltip_field=discriminant,
        )
        for feature_id, feature in entries:
            self._engine.set_feature_style(
                self._overlay_layer,
                feature_id,
                self.overlay_style(feature.properties.get(discriminant)),
            )
        logger.info("Loaded overlay layer features=%s filtered_out=%s", len(features), len(collection.features) - len(features))
        return len(features)

    def load_locations(self, collection: CategoryCollection) -> int:
        """
        Replace the point-marker layer with one marker per location.
        """

        if self._location_layer is not None:
            self._engine.remove_layer(self._location_layer)

        entries = []
        for category, locations in collection.items():
            for position, location in enumerate(locations):
                entries.append((f"{category}:{position}", location))

        self._location_layer = self._engine.create_layer(
            LOCATION_LAYER,
            [(feature_id, location.to_feature()) for feature_id, location in entries],
            pane=MARKER_PANE,
            tooltip_field="Name",
            popup_field="popupContent",
        )
        for feature_id, location in entries:
            self._engine.set_feature_style(self._location_layer, feature_id, self.marker_style(location.category))
        return len(entries)

    def set_overlay_visible(self, visible: bool) -> None:
        """
        Show or hide the overlay and restyle every region outline to match.
        """

        self.apply_state(replace(self._state, overlay_visible=visible))

    def apply_state(self, state: InteractionState, region_ids: Sequence[str] | None = None) -> None:
        """
        Restyle the given regions (all when None) for `state`.

        A change of overlay visibility always restyles every region. Unknown
        ids are ignored so events arriving before layers exist are harmless.
        """

        overlay_changed = state.overlay_visible != self._state.overlay_visible
        self._state = state
        if overlay_changed:
            if self._overlay_layer is not None:
                self._engine.set_layer_visible(self._overlay_layer, state.overlay_visible)
            region_ids = None

        if self._region_layer is None:
            return
        targets = self._regions.keys() if region_ids is None else [r for r in region_ids if r in self._regions]
        for region_id in targets:
            self._engine.set_feature_style(self._region_layer, region_id, self.style_for_state(region_id, state))

    def zoom_to_region(self, region_id: str) -> bool:
        feature = self._regions.get(region_id)
        bounds = feature.bounds() if feature is not None else None
        if bounds is None:
            return False
        self._engine.fit_bounds(bounds)
        return True

    def style_for_state(self, region_id: str | None, state: InteractionState) -> StyleSpec:
        """
        Derive a region's stroke from (hovered, selected, overlay_visible).

        Selection alone does not change the outline; only hover highlights.
        """

        if region_id is not None and region_id == state.hovered_region_id:
            return self._hover_style()
        return StyleSpec(
            color=self._settings.region_color,
            weight=2,
            opacity=DIMMED_OPACITY if state.overlay_visible else 1.0,
            fill_opacity=0.0,
            dash_array="10",
        )

    def overlay_style(self, discriminant: object) -> StyleSpec:
        color = self._settings.overlay_colors.get(str(discriminant), DEFAULT_OVERLAY_COLOR)
        return StyleSpec(color=color, weight=2, opacity=0.6, fill_opacity=0.0)

    def marker_style(self, category: str) -> StyleSpec:
        color = self._settings.category_colors.get(category, DEFAULT_MARKER_COLOR)
        return StyleSpec(color=color, weight=1, opacity=1.0, fill_opacity=0.8, fill_color=color)

    def _hover_style(self) -> StyleSpec:
        return StyleSpec(
            color=self._settings.region_color,
            weight=5,
            opacity=1.0,
            fill_opacity=0.4,
            dash_array="",
        )

    def _handlers_for(self, region_id: str) -> FeatureHandlers:
        return FeatureHandlers(
            on_enter=lambda: self._events.pointer_enter(region_id) if self._events else None,
            on_leave=lambda: self._events.pointer_leave(region_id) if self._events else None,
            on_click=lambda: self._events.click(region_id) if self._events else None,
        )
