"""
tests/test_layer_controller.py

Pytest unit tests for RegionLayerController against a recording engine.

Coverage
--------
- style_for_state as a pure function of the full interaction state
- Overlay visibility coupled to region outline opacity
- Overlay discriminant filtering
- Region loading, replacement and zoom-to-bounds
- Tolerance of unknown region ids
"""

from __future__ import annotations

import pytest

from citymaps.config import LayerSettings
from citymaps.domain.interaction import InteractionState
from citymaps.domain.locations import CategoryCollection, ParsedLocation
from citymaps.map.engine import MARKER_PANE, OVERLAY_PANE, REGION_PANE
from citymaps.map.layers import (
    DEFAULT_MARKER_COLOR,
    DIMMED_OPACITY,
    LOCATION_LAYER,
    OVERLAY_LAYER,
    REGION_LAYER,
    RegionLayerController,
)
from citymaps.schemas.geometry import GeoFeatureCollection

from conftest import RecordingEngine


@pytest.fixture()
def controller(engine: RecordingEngine, regions: GeoFeatureCollection) -> RegionLayerController:
    controller = RegionLayerController(engine, LayerSettings())
    controller.load_regions(regions)
    return controller


# ---------------------------------------------------------------------------
# style_for_state
# ---------------------------------------------------------------------------


class TestStyleForState:
    @pytest.mark.parametrize("overlay_visible", [False, True])
    @pytest.mark.parametrize("selected", [None, "1"])
    def test_hovered_region_is_heavy_solid_and_filled(
        self, controller: RegionLayerController, overlay_visible: bool, selected: str | None
    ) -> None:
        state = InteractionState(hovered_region_id="1", selected_region_id=selected, overlay_visible=overlay_visible)

        style = controller.style_for_state("1", state)

        assert style.weight == 5
        assert style.dash_array == ""
        assert style.fill_opacity > 0
        assert style.opacity == 1.0

    def test_idle_region_is_thin_dashed_fill_less(self, controller: RegionLayerController) -> None:
        style = controller.style_for_state("1", InteractionState())

        assert style.weight == 2
        assert style.dash_array == "10"
        assert style.fill_opacity == 0.0
        assert style.opacity == 1.0

    def test_overlay_visible_dims_non_hovered_regions(self, controller: RegionLayerController) -> None:
        state = InteractionState(hovered_region_id="2", overlay_visible=True)

        assert controller.style_for_state("1", state).opacity == DIMMED_OPACITY
        assert controller.style_for_state("2", state).opacity == 1.0

    def test_selection_alone_does_not_change_outline(self, controller: RegionLayerController) -> None:
        selected = controller.style_for_state("1", InteractionState(selected_region_id="1"))
        idle = controller.style_for_state("1", InteractionState())

        assert selected == idle

    def test_is_pure(self, controller: RegionLayerController) -> None:
        state = InteractionState(hovered_region_id="3", overlay_visible=True)

        assert controller.style_for_state("1", state) == controller.style_for_state("1", state)


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------


class TestRegions:
    def test_load_regions_renders_every_feature_with_handlers(
        self, engine: RecordingEngine, controller: RegionLayerController
    ) -> None:
        assert engine.feature_ids(REGION_LAYER) == ["1", "2", "3"]
        assert engine.layer_options[REGION_LAYER]["pane"] == REGION_PANE
        assert engine.layer_options[REGION_LAYER]["tooltip_field"] == "name"
        assert all((REGION_LAYER, region_id) in engine.handlers for region_id in ("1", "2", "3"))
        assert all(engine.styles[(REGION_LAYER, region_id)].opacity == 1.0 for region_id in ("1", "2", "3"))

    def test_region_name_and_membership(self, controller: RegionLayerController) -> None:
        assert controller.region_name("2") == "Pankow"
        assert controller.region_name("99") is None
        assert controller.has_region("3")
        assert not controller.has_region(None)

    def test_reload_replaces_region_layer(
        self, engine: RecordingEngine, controller: RegionLayerController, regions: GeoFeatureCollection
    ) -> None:
        subset = GeoFeatureCollection(features=regions.features[:1])

        assert controller.load_regions(subset) == ["1"]
        assert engine.removed == [REGION_LAYER]
        assert engine.feature_ids(REGION_LAYER) == ["1"]

    def test_features_without_id_are_skipped(self, engine: RecordingEngine) -> None:
        collection = GeoFeatureCollection.model_validate(
            {
                "type": "FeatureCollection",
                "features": [
                    {"type": "Feature", "properties": {"name": "Anonymous"}, "geometry": None},
                    {"type": "Feature", "id": 8, "properties": {"name": "Top-level id"}, "geometry": None},
                ],
            }
        )
        controller = RegionLayerController(engine)

        assert controller.load_regions(collection) == ["8"]

    def test_zoom_to_region_fits_feature_bounds(
        self, engine: RecordingEngine, controller: RegionLayerController
    ) -> None:
        assert controller.zoom_to_region("2") is True
        assert engine.fitted == [((52.5, 13.4), (52.6, 13.5))]

    def test_zoom_to_unknown_region_is_a_no_op(
        self, engine: RecordingEngine, controller: RegionLayerController
    ) -> None:
        assert controller.zoom_to_region("99") is False
        assert engine.fitted == []

    def test_apply_state_ignores_unknown_ids(self, engine: RecordingEngine, controller: RegionLayerController) -> None:
        engine.style_calls.clear()

        controller.apply_state(InteractionState(hovered_region_id="99"), ["99"])

        assert engine.style_calls == []

    def test_apply_state_before_regions_loaded_is_harmless(self, engine: RecordingEngine) -> None:
        controller = RegionLayerController(engine)

        controller.apply_state(InteractionState(hovered_region_id="1", overlay_visible=True))

        assert engine.style_calls == []


# ---------------------------------------------------------------------------
# Overlay
# ---------------------------------------------------------------------------


class TestOverlay:
    def test_filter_list_keeps_only_listed_discriminants(
        self, engine: RecordingEngine, controller: RegionLayerController, routes: GeoFeatureCollection
    ) -> None:
        rendered = controller.load_overlay(routes, ["U2", "U8"])

        assert rendered == 2
        assert engine.feature_ids(OVERLAY_LAYER) == ["U2:0", "U8:1"]
        assert engine.layer_options[OVERLAY_LAYER]["pane"] == OVERLAY_PANE

    def test_empty_filter_renders_everything(
        self, engine: RecordingEngine, controller: RegionLayerController, routes: GeoFeatureCollection
    ) -> None:
        assert controller.load_overlay(routes, []) == 3

    def test_overlay_starts_hidden_and_uses_route_colours(
        self, engine: RecordingEngine, controller: RegionLayerController, routes: GeoFeatureCollection
    ) -> None:
        controller.load_overlay(routes, ["U2"])

        assert engine.visible[OVERLAY_LAYER] is False
        assert engine.styles[(OVERLAY_LAYER, "U2:0")].color == LayerSettings().overlay_colors["U2"]

    def test_unknown_route_gets_default_colour(self, controller: RegionLayerController) -> None:
        assert controller.overlay_style("X99").color == "#000000"

    def test_toggle_while_hovered_dims_only_other_regions(
        self, engine: RecordingEngine, controller: RegionLayerController, routes: GeoFeatureCollection
    ) -> None:
        controller.load_overlay(routes)
        controller.apply_state(InteractionState(hovered_region_id="2"), ["2"])

        controller.apply_state(InteractionState(hovered_region_id="2", overlay_visible=True))

        assert engine.visible[OVERLAY_LAYER] is True
        assert engine.styles[(REGION_LAYER, "2")].opacity == 1.0
        assert engine.styles[(REGION_LAYER, "1")].opacity == DIMMED_OPACITY
        assert engine.styles[(REGION_LAYER, "3")].opacity == DIMMED_OPACITY

    def test_overlay_change_restyles_every_region(
        self, engine: RecordingEngine, controller: RegionLayerController, routes: GeoFeatureCollection
    ) -> None:
        controller.load_overlay(routes)
        engine.style_calls.clear()

        controller.set_overlay_visible(True)

        assert sorted(engine.style_calls) == [(REGION_LAYER, "1"), (REGION_LAYER, "2"), (REGION_LAYER, "3")]
        assert controller.state.overlay_visible is True

        controller.set_overlay_visible(False)

        assert engine.visible[OVERLAY_LAYER] is False
        assert all(engine.styles[(REGION_LAYER, region_id)].opacity == 1.0 for region_id in ("1", "2", "3"))


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


class TestLocations:
    def test_one_marker_per_location(self, engine: RecordingEngine, controller: RegionLayerController) -> None:
        collection = CategoryCollection.from_locations(
            [
                ParsedLocation("A", "Großfläche", (52.5, 13.4), "<h3>A</h3>"),
                ParsedLocation("B", "Stromkasten", (52.6, 13.3), "<h3>B</h3>"),
                ParsedLocation("C", "Großfläche", (52.4, 13.5), "<h3>C</h3>"),
            ]
        )

        assert controller.load_locations(collection) == 3
        assert engine.feature_ids(LOCATION_LAYER) == ["Großfläche:0", "Großfläche:1", "Stromkasten:0"]
        assert engine.layer_options[LOCATION_LAYER]["pane"] == MARKER_PANE
        assert engine.layer_options[LOCATION_LAYER]["popup_field"] == "popupContent"
        assert engine.styles[(LOCATION_LAYER, "Stromkasten:0")].fill_color == LayerSettings().category_colors["Stromkasten"]

    def test_unknown_category_uses_grey_marker(
        self, engine: RecordingEngine, controller: RegionLayerController
    ) -> None:
        controller.load_locations(
            CategoryCollection.from_locations([ParsedLocation("X", "Litfaßsäule", (52.5, 13.4), "<h3>X</h3>")])
        )

        assert engine.styles[(LOCATION_LAYER, "Litfaßsäule:0")].fill_color == DEFAULT_MARKER_COLOR == "#666666"
