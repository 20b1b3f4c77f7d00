"""
citymaps/connectors/sheets_connector.py

Google Sheets connector returning raw header/data tables.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import requests
from pydantic import ValidationError

from citymaps.config import ExternalHTTPSettings, SheetsSettings
from citymaps.connectors.base import BaseConnector
from citymaps.domain.ingestion import SheetTable
from citymaps.errors import EmptyDataset, SourceUnavailable
from citymaps.schemas.sheets import SheetValuesResponse

logger = logging.getLogger(__name__)


class SheetsConnector(BaseConnector):
    """
    Connector for the Sheets `values` endpoint.

    The API key is sent as a query parameter and never logged.
    """

    def __init__(
        self,
        *,
        settings: SheetsSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        **kwargs,
    ) -> None:
        super().__init__(source="google_sheets", http_settings=http_settings, session=session, **kwargs)
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return self._settings.has_valid_api_key

    def build_url(self, source_id: str, range_: str) -> str:
        return (
            f"{self._settings.base_url.rstrip('/')}/"
            f"{quote(source_id, safe='')}/values/{quote(range_, safe='!:')}"
        )

    def fetch_table(self, source_id: str, range_: str) -> SheetTable:
        if not self.enabled:
            raise SourceUnavailable(f"{self.source}: API key not configured.")

        payload = self._request_json(
            method="GET",
            url=self.build_url(source_id, range_),
            params={"key": self._settings.api_key},
        )
        try:
            parsed = SheetValuesResponse.model_validate(payload)
        except ValidationError as exc:
            logger.error("Unexpected sheet payload shape source_id=%s range=%s", source_id, range_)
            raise SourceUnavailable(f"{self.source}: unexpected payload shape.") from exc

        if len(parsed.values) < 2:
            raise EmptyDataset(f"{self.source}: no data rows in {source_id} {range_}.")

        table = SheetTable.from_values(parsed.values)
        logger.info(
            "Fetched sheet source_id=%s range=%s rows=%s",
            source_id,
            range_,
            len(table.rows),
        )
        return table
