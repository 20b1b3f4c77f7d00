"""
citymaps/map/engine.py

Narrow boundary between the map core and a rendering library.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from citymaps.domain.interaction import StyleSpec
from citymaps.schemas.geometry import Bounds

EventHandler = Callable[[], None]

OVERLAY_PANE = "transportationPane"
REGION_PANE = "districtPane"
MARKER_PANE = "markerPane"

PANE_Z_INDEX = {
    OVERLAY_PANE: 202,
    REGION_PANE: 205,
    MARKER_PANE: 600,
}

FEATURE_ID_KEY = "_feature_id"
LAYER_KEY = "_layer"


@dataclass(frozen=True)
class FeatureHandlers:
    on_enter: EventHandler
    on_leave: EventHandler
    on_click: EventHandler


@runtime_checkable
class RenderingEngine(Protocol):
    """
    Operations the core needs from a map renderer; layers are addressed by name.
    """

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
    ) -> str: ...

    def remove_layer(self, layer: str) -> None: ...

    def set_feature_style(self, layer: str, feature_id: str, style: StyleSpec) -> None: ...

    def bind_feature_handlers(self, layer: str, feature_id: str, handlers: FeatureHandlers) -> None: ...

    def fit_bounds(self, bounds: Bounds) -> None: ...

    def set_layer_visible(self, layer: str, visible: bool) -> None: ...
