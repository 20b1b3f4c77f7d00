"""
tests/test_sheets_connector.py

Pytest unit tests for SheetsConnector and the BaseConnector retry loop.

All HTTP traffic goes through a scripted FakeSession; backoff sleeps are
recorded instead of performed.
"""

from __future__ import annotations

import pytest
import requests

from citymaps.config import ExternalHTTPSettings, SheetsSettings
from citymaps.connectors.sheets_connector import SheetsConnector
from citymaps.errors import EmptyDataset, SourceUnavailable

from conftest import FakeResponse, FakeSession

VALUES = {
    "range": "Tabellenblatt1!A1:C3",
    "majorDimension": "ROWS",
    "values": [["Name", "Koordinaten", "Werbeträger"], ["Spot1", "52.5,13.4", "Billboard"], ["Spot2", 52]],
}


def _connector(
    session: FakeSession,
    sheets_settings: SheetsSettings,
    http_settings: ExternalHTTPSettings,
    sleeps: list[float] | None = None,
) -> SheetsConnector:
    return SheetsConnector(
        settings=sheets_settings,
        http_settings=http_settings,
        session=session,  # type: ignore[arg-type]
        sleep=(sleeps.append if sleeps is not None else lambda _seconds: None),
    )


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestRequest:
    def test_builds_values_url_and_passes_key_as_param(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings
    ) -> None:
        session = FakeSession(FakeResponse(payload=VALUES))
        connector = _connector(session, sheets_settings, http_settings)

        connector.fetch_table("abc123", "Tabellenblatt1!A:K")

        (call,) = session.calls
        assert call["method"] == "GET"
        assert call["url"] == "https://sheets.googleapis.com/v4/spreadsheets/abc123/values/Tabellenblatt1!A:K"
        assert call["params"] == {"key": "test-key"}
        assert call["timeout"] == http_settings.timeout_seconds

    def test_range_with_spaces_is_quoted(self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings) -> None:
        connector = _connector(FakeSession(), sheets_settings, http_settings)

        assert connector.build_url("abc", "Mein Blatt!A:F").endswith("/abc/values/Mein%20Blatt!A:F")

    def test_returns_header_and_stringified_rows(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings
    ) -> None:
        connector = _connector(FakeSession(FakeResponse(payload=VALUES)), sheets_settings, http_settings)

        table = connector.fetch_table("abc123", "A:K")

        assert table.header == ("Name", "Koordinaten", "Werbeträger")
        assert table.rows == (("Spot1", "52.5,13.4", "Billboard"), ("Spot2", "52"))


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_disabled_without_valid_key_makes_no_request(self, http_settings: ExternalHTTPSettings) -> None:
        session = FakeSession()
        connector = _connector(session, SheetsSettings(api_key="your_google_sheets_api_key_here"), http_settings)

        assert connector.enabled is False
        with pytest.raises(SourceUnavailable):
            connector.fetch_table("abc", "A:K")
        assert session.calls == []

    def test_non_retryable_status_fails_immediately(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings
    ) -> None:
        session = FakeSession(FakeResponse(status_code=404))
        sleeps: list[float] = []
        connector = _connector(session, sheets_settings, http_settings, sleeps)

        with pytest.raises(SourceUnavailable, match="404"):
            connector.fetch_table("abc", "A:K")
        assert len(session.calls) == 1
        assert sleeps == []

    def test_retryable_status_is_retried_with_backoff(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings
    ) -> None:
        session = FakeSession(
            FakeResponse(status_code=503),
            requests.ConnectionError("reset"),
            FakeResponse(payload=VALUES),
        )
        sleeps: list[float] = []
        connector = _connector(session, sheets_settings, http_settings, sleeps)

        table = connector.fetch_table("abc", "A:K")

        assert len(table.rows) == 2
        assert len(session.calls) == 3
        assert sleeps == [0.5, 1.0]

    def test_exhausted_retries_raise_source_unavailable(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings
    ) -> None:
        session = FakeSession(*(requests.Timeout("slow") for _ in range(3)))
        connector = _connector(session, sheets_settings, http_settings, [])

        with pytest.raises(SourceUnavailable, match="after retries"):
            connector.fetch_table("abc", "A:K")
        assert len(session.calls) == 3

    def test_invalid_json_is_source_unavailable(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings
    ) -> None:
        connector = _connector(FakeSession(FakeResponse(invalid_json=True)), sheets_settings, http_settings)

        with pytest.raises(SourceUnavailable):
            connector.fetch_table("abc", "A:K")

    def test_unexpected_payload_shape_is_source_unavailable(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings
    ) -> None:
        connector = _connector(FakeSession(FakeResponse(payload={"values": "nope"})), sheets_settings, http_settings)

        with pytest.raises(SourceUnavailable):
            connector.fetch_table("abc", "A:K")

    @pytest.mark.parametrize("payload", [{"values": [["Name", "Koordinaten"]]}, {"values": []}, {}])
    def test_fewer_than_two_rows_is_empty_dataset(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings, payload: dict
    ) -> None:
        connector = _connector(FakeSession(FakeResponse(payload=payload)), sheets_settings, http_settings)

        with pytest.raises(EmptyDataset):
            connector.fetch_table("abc", "A:K")

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.ChunkedEncodingError("connection broken"),
            requests.exceptions.TooManyRedirects("loop"),
            requests.exceptions.MissingSchema("no scheme"),
        ],
    )
    def test_other_transport_errors_are_source_unavailable(
        self, sheets_settings: SheetsSettings, http_settings: ExternalHTTPSettings, error: Exception
    ) -> None:
        session = FakeSession(error)
        connector = _connector(session, sheets_settings, http_settings, [])

        with pytest.raises(SourceUnavailable, match=type(error).__name__):
            connector.fetch_table("abc", "A:K")
        assert len(session.calls) == 1
