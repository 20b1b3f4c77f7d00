"""
citymaps/schemas/sheets.py

Wire schema for the Google Sheets `values` endpoint.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SheetValuesResponse(BaseModel):
    """
    Body of `GET /v4/spreadsheets/{id}/values/{range}`; `values[0]` is the header.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    range: str | None = None
    major_dimension: str | None = Field(default=None, alias="majorDimension")
    values: list[list[Any]] = Field(default_factory=list)
