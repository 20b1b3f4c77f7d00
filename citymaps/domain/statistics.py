"""
citymaps/domain/statistics.py

Region statistics joined onto map regions by identifier.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RegionStat:
    """
    External statistics for one region; numeric fields are never NaN.
    """

    id: str
    name: str
    population: float = 0.0
    area: float = 0.0
    derived_count: float = 0.0
    notes: str = ""
