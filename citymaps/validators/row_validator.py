"""
citymaps/validators/row_validator.py

Row-level validation and type parsing for sheet rows.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

from citymaps.errors import RowRejected


class SheetRowValidator:
    """
    Reads and parses cells of one sheet row through a header index.
    """

    def __init__(self, header_index: Mapping[str, int], *, case_sensitive: bool = True) -> None:
        self._header_index = header_index
        self._case_sensitive = case_sensitive

    @classmethod
    def from_header(cls, header: Sequence[str], *, case_sensitive: bool = True) -> "SheetRowValidator":
        """
        Build the header index once; first occurrence of a column name wins.
        """

        index: dict[str, int] = {}
        for position, name in enumerate(header):
            key = name if case_sensitive else name.strip().lower()
            index.setdefault(key, position)
        return cls(index, case_sensitive=case_sensitive)

    def _key(self, column: str) -> str:
        return column if self._case_sensitive else column.strip().lower()

    def has_column(self, column: str) -> bool:
        return self._key(column) in self._header_index

    def cell(self, row: Sequence[str], column: str) -> str:
        """
        Return the trimmed cell text; missing columns and short rows read as blank.
        """

        position = self._header_index.get(self._key(column))
        if position is None or position >= len(row):
            return ""
        value = row[position]
        return value.strip() if isinstance(value, str) else str(value).strip()

    def is_completely_empty_row(self, row: Sequence[str]) -> bool:
        return all(not str(value).strip() for value in row)

    def parse_coordinates(self, value: str, *, row_number: int, column: str) -> tuple[float, float]:
        """
        Parse "lat, lon" into two finite floats.
        """

        tokens = value.split(",")
        if len(tokens) != 2:
            raise RowRejected(
                "Coordinates must contain exactly two comma-separated values.",
                row_number=row_number,
                column=column,
                value=value,
            )
        parsed: list[float] = []
        for token in tokens:
            try:
                number = _parse_decimal(token.strip())
            except ValueError as exc:
                raise RowRejected(
                    "Coordinate is not a number.",
                    row_number=row_number,
                    column=column,
                    value=value,
                ) from exc
            if not math.isfinite(number):
                raise RowRejected(
                    "Coordinate is not finite.",
                    row_number=row_number,
                    column=column,
                    value=value,
                )
            parsed.append(number)
        return parsed[0], parsed[1]

    @staticmethod
    def coerce_number(value: str) -> float:
        """
        Parse a numeric cell; blank, malformed, NaN or infinite values become 0.0.
        """

        if not value:
            return 0.0
        try:
            number = _parse_decimal(value.replace(" ", ""))
        except ValueError:
            return 0.0
        return number if math.isfinite(number) else 0.0


def _parse_decimal(token: str) -> float:
    # float() also accepts digit separators like "52_5".
    if "_" in token:
        raise ValueError(f"Not a plain decimal number: {token!r}")
    return float(token)
