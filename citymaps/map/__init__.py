"""
citymaps/map package marker.
"""

from citymaps.map.engine import FeatureHandlers, RenderingEngine
from citymaps.map.folium_engine import ClickReplay, FoliumEngine
from citymaps.map.interaction import InteractionStateMachine
from citymaps.map.layers import RegionLayerController
from citymaps.map.panel import DetailPanel

__all__ = [
    "ClickReplay",
    "DetailPanel",
    "FeatureHandlers",
    "FoliumEngine",
    "InteractionStateMachine",
    "RegionLayerController",
    "RenderingEngine",
]
