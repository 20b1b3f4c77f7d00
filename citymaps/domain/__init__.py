"""
citymaps/domain package marker.
"""

from citymaps.domain.ingestion import DatasetResult, DatasetStatus, RowRejection, SheetTable
from citymaps.domain.interaction import InteractionState, PanelContent, StyleSpec
from citymaps.domain.locations import CategoryCollection, ParsedLocation, TransformReport
from citymaps.domain.statistics import RegionStat

__all__ = [
    "CategoryCollection",
    "DatasetResult",
    "DatasetStatus",
    "InteractionState",
    "PanelContent",
    "ParsedLocation",
    "RegionStat",
    "RowRejection",
    "SheetTable",
    "StyleSpec",
    "TransformReport",
]
