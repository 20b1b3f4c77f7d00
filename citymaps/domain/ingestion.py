"""
citymaps/domain/ingestion.py

Domain models shared by the sheet ingestion flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SheetTable:
    """
    Raw table returned by the sheet source: header row plus data rows.
    """

    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    @classmethod
    def from_values(cls, values: Sequence[Sequence[object]]) -> "SheetTable":
        header = tuple(_cell_text(cell) for cell in values[0]) if values else ()
        rows = tuple(tuple(_cell_text(cell) for cell in row) for row in values[1:])
        return cls(header=header, rows=rows)

    def __len__(self) -> int:
        return len(self.rows) + (1 if self.header else 0)


def _cell_text(cell: object) -> str:
    return "" if cell is None else str(cell)


@dataclass(frozen=True)
class RowRejection:
    """
    One data row that was skipped during transformation.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


class DatasetStatus(str, Enum):
    OK = "ok"
    DISABLED = "disabled"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class DatasetResult(Generic[T]):
    """
    Outcome of loading one dataset; `data` is None unless status is OK.
    """

    name: str
    status: DatasetStatus
    data: T | None = None
    message: str | None = None
    rejections: list[RowRejection] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.status is DatasetStatus.OK
