"""
citymaps/domain/interaction.py

Interaction state, derived styles and panel content.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class InteractionState:
    """
    Hover, selection and overlay visibility for one map session.
    """

    hovered_region_id: str | None = None
    selected_region_id: str | None = None
    overlay_visible: bool = False

    @property
    def relevant_region_id(self) -> str | None:
        """
        Region whose details the panel shows: hover wins over selection.
        """

        return self.hovered_region_id or self.selected_region_id


@dataclass(frozen=True)
class StyleSpec:
    """
    Stroke and fill values for one rendered feature.
    """

    color: str
    weight: float
    opacity: float
    fill_opacity: float
    dash_array: str = ""
    fill_color: str | None = None

    def as_leaflet(self) -> dict[str, Any]:
        style: dict[str, Any] = {
            "color": self.color,
            "weight": self.weight,
            "opacity": self.opacity,
            "fillOpacity": self.fill_opacity,
            "dashArray": self.dash_array,
        }
        if self.fill_color:
            style["fillColor"] = self.fill_color
        return style


@dataclass(frozen=True)
class PanelContent:
    """
    Snapshot of what the detail panel displays.
    """

    visible: bool
    title: str
    state: str = "empty"
    chips: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    notes: str = ""
    footer: str = ""
    region_id: str | None = None
