"""
citymaps/services/statistics_index.py

Join index of external region statistics keyed by region identifier.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Sequence

from citymaps.config import StatisticsColumnSettings
from citymaps.domain.ingestion import RowRejection
from citymaps.domain.statistics import RegionStat
from citymaps.errors import LookupMiss
from citymaps.validators.row_validator import SheetRowValidator

logger = logging.getLogger(__name__)

_INTEGRAL_TEXT = re.compile(r"^([+-]?\d+)\.0*$")


def normalize_region_id(value: object) -> str:
    """
    Normalize a region id so integer feature properties match sheet text.

    Integral floats and integral decimal text (`1.0`, `"1.0"`) fold to `"1"`.
    """

    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    match = _INTEGRAL_TEXT.match(text)
    return match.group(1) if match else text


class StatisticsJoinIndex(Mapping[str, RegionStat]):
    """
    Read-only `id -> RegionStat` lookup, rebuilt wholesale on every refresh.
    """

    def __init__(self, stats: Mapping[str, RegionStat] | None = None) -> None:
        self._stats: Mapping[str, RegionStat] = MappingProxyType(dict(stats or {}))

    @classmethod
    def build(
        cls,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
        columns: StatisticsColumnSettings | None = None,
    ) -> "StatisticsJoinIndex":
        return cls.build_with_report(header, rows, columns).index

    @classmethod
    def build_with_report(
        cls,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
        columns: StatisticsColumnSettings | None = None,
    ) -> "IndexReport":
        columns = columns or StatisticsColumnSettings()
        validator = SheetRowValidator.from_header(header, case_sensitive=False)
        if not validator.has_column(columns.id_column):
            logger.warning("Statistics sheet is missing id column=%s", columns.id_column)

        stats: dict[str, RegionStat] = {}
        rejections: list[RowRejection] = []
        duplicates: list[str] = []
        skipped = 0
        for offset, row in enumerate(rows):
            row_number = offset + 2
            if validator.is_completely_empty_row(row):
                skipped += 1
                continue

            region_id = normalize_region_id(validator.cell(row, columns.id_column))
            if not region_id:
                skipped += 1
                rejections.append(
                    RowRejection(
                        row_number=row_number,
                        message="Region id is missing.",
                        column=columns.id_column,
                    )
                )
                continue

            if region_id in stats:
                duplicates.append(region_id)
                logger.warning(
                    "Duplicate region id in statistics row=%s id=%s; last row wins",
                    row_number,
                    region_id,
                )

            stats[region_id] = RegionStat(
                id=region_id,
                name=validator.cell(row, columns.name_column),
                population=validator.coerce_number(validator.cell(row, columns.population_column)),
                area=validator.coerce_number(validator.cell(row, columns.area_column)),
                derived_count=validator.coerce_number(validator.cell(row, columns.derived_count_column)),
                notes=validator.cell(row, columns.notes_column),
            )

        return IndexReport(
            index=cls(stats),
            rows_processed=len(rows),
            rows_skipped=skipped,
            rejections=rejections,
            duplicate_ids=duplicates,
        )

    def __getitem__(self, region_id: str) -> RegionStat:
        try:
            return self._stats[normalize_region_id(region_id)]
        except KeyError:
            raise LookupMiss(region_id) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._stats)

    def __len__(self) -> int:
        return len(self._stats)

    def __contains__(self, region_id: object) -> bool:
        return normalize_region_id(region_id) in self._stats

    def lookup(self, region_id: object) -> RegionStat | None:
        """
        O(1) lookup; absent ids return None.
        """

        if region_id is None:
            return None
        return self._stats.get(normalize_region_id(region_id))


@dataclass(frozen=True)
class IndexReport:
    index: StatisticsJoinIndex
    rows_processed: int
    rows_skipped: int
    rejections: list[RowRejection] = field(default_factory=list)
    duplicate_ids: list[str] = field(default_factory=list)
