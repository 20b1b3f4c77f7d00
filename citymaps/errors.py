"""
citymaps/errors.py

Error taxonomy for the map data pipeline.
"""

from __future__ import annotations


class MapDataError(Exception):
    """Base exception for map data failures."""


class SourceUnavailable(MapDataError):
    """Raised when the tabular source cannot be retrieved or parsed."""


class EmptyDataset(MapDataError):
    """Raised when the tabular source returns fewer than two rows."""


class RowRejected(MapDataError):
    """
    Raised by row validators for one unusable row.

    Never escapes the row transformer or statistics index; callers catch it,
    log it and continue with the batch.
    """

    def __init__(self, message: str, *, row_number: int, column: str | None = None, value: str | None = None) -> None:
        super().__init__(message)
        self.row_number = row_number
        self.column = column
        self.value = value


class LookupMiss(MapDataError, KeyError):
    """Raised when a region id is absent from the statistics index."""

    def __str__(self) -> str:
        return f"No statistics for region id {self.args[0]!r}." if self.args else "No statistics."
