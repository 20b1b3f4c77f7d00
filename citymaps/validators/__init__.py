"""
citymaps/validators package marker.
"""

from citymaps.validators.row_validator import SheetRowValidator

__all__ = [
    "SheetRowValidator",
]
