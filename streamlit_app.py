"""Streamlit frontend for the interactive city map."""

from __future__ import annotations

from dataclasses import dataclass, field

import streamlit as st
from streamlit_folium import st_folium

from citymaps.config import get_layer_settings, get_map_display_settings, validate_map_settings
from citymaps.domain.ingestion import DatasetResult, DatasetStatus
from citymaps.logging_utils import configure_logging
from citymaps.map import ClickReplay, DetailPanel, FoliumEngine, InteractionStateMachine, RegionLayerController
from citymaps.services.map_data_service import MapDataService, get_map_data_service

DISPLAY = get_map_display_settings()
UI = DISPLAY.ui

st.set_page_config(page_title=UI.title, layout="wide")


@dataclass
class MapSession:
    engine: FoliumEngine
    controller: RegionLayerController
    machine: InteractionStateMachine
    results: dict[str, DatasetResult] = field(default_factory=dict)
    clicks: ClickReplay = field(default_factory=ClickReplay)


@st.cache_resource(show_spinner=False)
def _load_backend() -> MapDataService:
    """Build the shared data service once per server process."""
    configure_logging()
    return get_map_data_service()


def _load_sheets(session: MapSession, service: MapDataService) -> None:
    """(Re)load the sheet-backed datasets into an existing session."""
    statistics = service.load_statistics()
    session.results["statistics"] = statistics
    session.machine.bind_index(statistics.data)

    locations = service.load_locations()
    session.results["locations"] = locations
    if locations.data is not None:
        session.controller.load_locations(locations.data)


def _build_session(service: MapDataService) -> MapSession:
    engine = FoliumEngine(
        center=DISPLAY.center,
        zoom=DISPLAY.zoom,
        min_zoom=DISPLAY.min_zoom,
        max_zoom=DISPLAY.max_zoom,
    )
    layer_settings = get_layer_settings()
    controller = RegionLayerController(engine, layer_settings)
    machine = InteractionStateMachine(controller, DetailPanel(UI))
    session = MapSession(engine=engine, controller=controller, machine=machine)

    with st.spinner(UI.loading_text):
        regions = service.load_regions()
        session.results["regions"] = regions
        if regions.data is not None:
            controller.load_regions(regions.data)
            machine.regions_reloaded()

        overlay = service.load_overlay()
        session.results["overlay"] = overlay
        if overlay.data is not None:
            controller.load_overlay(overlay.data, layer_settings.overlay_filter)

        _load_sheets(session, service)
    return session


def _get_session(service: MapDataService) -> MapSession:
    if "map_session" not in st.session_state:
        st.session_state["map_session"] = _build_session(service)
    return st.session_state["map_session"]


def render_sidebar(session: MapSession, service: MapDataService) -> None:
    st.sidebar.title(UI.title)
    for problem in validate_map_settings(DISPLAY, get_layer_settings()):
        st.sidebar.error(problem)

    if session.controller.has_overlay:
        label = f"{UI.overlay_toggle_text} ({'an' if session.machine.state.overlay_visible else 'aus'})"
        if st.sidebar.button(label, use_container_width=True):
            session.machine.toggle_overlay()
            st.rerun()

    if session.machine.state.selected_region_id is not None:
        if st.sidebar.button("Auswahl aufheben", use_container_width=True):
            session.machine.close()
            session.clicks.reset()
            st.rerun()

    if st.sidebar.button("Daten aktualisieren", use_container_width=True):
        service.refresh()
        with st.spinner(UI.loading_text):
            _load_sheets(session, service)
        st.rerun()

    for name, result in session.results.items():
        if result.status is DatasetStatus.UNAVAILABLE:
            st.sidebar.warning(f"{UI.error_text}: {name}")
        elif result.status is DatasetStatus.DISABLED:
            st.sidebar.caption(f"{name}: {result.message}")
        elif result.rejections:
            st.sidebar.caption(f"{name}: {len(result.rejections)} Zeilen übersprungen")


def render_panel(session: MapSession) -> None:
    content = session.machine.panel.content
    if not content.visible:
        st.subheader(UI.region_select_prompt)
        st.caption(UI.region_select_hint)
        return

    st.subheader(content.title)
    if content.chips:
        for column, (label, value) in zip(st.columns(len(content.chips)), content.chips):
            column.metric(label.rstrip(":"), value)
    if content.notes:
        st.write(content.notes)
    st.caption(content.footer)


def main() -> None:
    service = _load_backend()
    session = _get_session(service)
    render_sidebar(session, service)

    col_map, col_panel = st.columns([3, 1], gap="medium")
    with col_panel:
        render_panel(session)
    with col_map:
        map_data = st_folium(
            session.engine.build_map(),
            key=session.clicks.widget_key,
            use_container_width=True,
            height=640,
            returned_objects=["last_active_drawing"],
        )

    feature = (map_data or {}).get("last_active_drawing")
    if session.clicks.is_new(feature):
        if session.engine.dispatch_feature(feature, "click"):
            st.rerun()


main()
