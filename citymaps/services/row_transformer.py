"""
citymaps/services/row_transformer.py

Turns location sheet rows into category-grouped map points.
"""

from __future__ import annotations

import logging
from html import escape
from typing import Sequence

from citymaps.config import LocationColumnSettings
from citymaps.domain.ingestion import RowRejection
from citymaps.domain.locations import CategoryCollection, ParsedLocation, TransformReport
from citymaps.errors import RowRejected
from citymaps.validators.row_validator import SheetRowValidator

logger = logging.getLogger(__name__)

MAX_IMAGES = 2


class RowTransformer:
    """
    Validates location rows and groups them by category.

    Pure over its input: the same header and rows always produce an equal
    collection.
    """

    def __init__(self, columns: LocationColumnSettings | None = None) -> None:
        self._columns = columns or LocationColumnSettings()

    def transform(self, header: Sequence[str], rows: Sequence[Sequence[str]]) -> CategoryCollection:
        return self.transform_with_report(header, rows).collection

    def transform_with_report(
        self,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> TransformReport:
        columns = self._columns
        validator = SheetRowValidator.from_header(header)

        required = (columns.name_column, columns.coordinates_column, columns.category_column)
        missing = [column for column in required if not validator.has_column(column)]
        if missing:
            logger.warning("Location sheet is missing required columns=%s", missing)
            return TransformReport(
                collection=CategoryCollection(),
                rows_processed=len(rows),
                rows_skipped=len(rows),
            )

        locations: list[ParsedLocation] = []
        rejections: list[RowRejection] = []
        skipped = 0
        for offset, row in enumerate(rows):
            row_number = offset + 2
            if validator.is_completely_empty_row(row):
                skipped += 1
                continue

            name = validator.cell(row, columns.name_column)
            raw_coordinates = validator.cell(row, columns.coordinates_column)
            category = validator.cell(row, columns.category_column)
            if not name or not raw_coordinates or not category:
                skipped += 1
                continue

            try:
                coordinates = validator.parse_coordinates(
                    raw_coordinates,
                    row_number=row_number,
                    column=columns.coordinates_column,
                )
            except RowRejected as exc:
                skipped += 1
                rejections.append(
                    RowRejection(
                        row_number=exc.row_number,
                        message=str(exc),
                        column=exc.column,
                        value=exc.value,
                    )
                )
                logger.warning(
                    "Invalid coordinates row=%s name=%s value=%s",
                    row_number,
                    name,
                    raw_coordinates,
                )
                continue

            locations.append(
                ParsedLocation(
                    name=name,
                    category=category,
                    coordinates=coordinates,
                    detail_html=self.compose_detail_html(validator, row, name),
                )
            )

        if rejections:
            logger.info("Location rows rejected count=%s of=%s", len(rejections), len(rows))
        return TransformReport(
            collection=CategoryCollection.from_locations(locations),
            rows_processed=len(rows),
            rows_skipped=skipped,
            rejections=rejections,
        )

    def compose_detail_html(self, validator: SheetRowValidator, row: Sequence[str], name: str) -> str:
        columns = self._columns
        info = [f"<h3>{escape(name)}</h3><br>"]
        for column in columns.visible_columns:
            value = validator.cell(row, column)
            if value:
                info.append(f"{escape(column)}: {escape(value)}<br>")
        if columns.logo_url:
            info.append(f"<br><img src='{escape(columns.logo_url)}' style='width: 10vw;'>")

        images = []
        for column in columns.image_columns[:MAX_IMAGES]:
            url = validator.cell(row, column)
            if url:
                images.append(f"<img src='{escape(url)}' style='width: 15vw; min-width: 200px;'>")

        return (
            "<div class='location-popup'><div class='popup-layout'>"
            f"<div class='popup-info-section'>{''.join(info)}</div>"
            f"<div class='popup-images-section'>{''.join(images)}</div>"
            "</div></div>"
        )
