"""
citymaps/connectors package marker.
"""

from citymaps.connectors.base import BaseConnector
from citymaps.connectors.sheets_connector import SheetsConnector

__all__ = [
    "BaseConnector",
    "SheetsConnector",
]
