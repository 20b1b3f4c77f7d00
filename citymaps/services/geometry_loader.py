"""
citymaps/services/geometry_loader.py

Reads static GeoJSON region and overlay documents once per process.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import requests
from pydantic import ValidationError

from citymaps.config import ExternalHTTPSettings
from citymaps.errors import SourceUnavailable
from citymaps.schemas.geometry import GeoFeatureCollection

logger = logging.getLogger(__name__)


class GeometryLoader:
    """
    Loads and memoizes FeatureCollections from local paths or HTTP URLs.
    """

    def __init__(
        self,
        *,
        base_dir: Path | None = None,
        http_settings: ExternalHTTPSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._base_dir = base_dir or Path.cwd()
        self._timeout_seconds = (http_settings or ExternalHTTPSettings()).timeout_seconds
        self._session = session
        self._documents: dict[str, GeoFeatureCollection] = {}

    def load(self, source: str) -> GeoFeatureCollection:
        cached = self._documents.get(source)
        if cached is not None:
            return cached

        payload = self._read(source)
        try:
            collection = GeoFeatureCollection.model_validate(payload)
        except ValidationError as exc:
            logger.error("Invalid geometry document source=%s error=%s", source, exc)
            raise SourceUnavailable(f"Geometry document {source} is not a FeatureCollection.") from exc

        self._documents[source] = collection
        logger.info("Loaded geometry source=%s features=%s", source, len(collection.features))
        return collection

    def _read(self, source: str) -> Any:
        if source.startswith(("http://", "https://")):
            try:
                if self._session is not None:
                    return self._fetch(self._session, source)
                with requests.Session() as session:
                    return self._fetch(session, source)
            except (requests.RequestException, ValueError) as exc:
                raise SourceUnavailable(f"Could not load geometry from {source}.") from exc

        path = Path(source)
        if not path.is_absolute():
            path = self._base_dir / path
        try:
            with path.open("r", encoding="utf-8") as fp:
                return json.load(fp)
        except (OSError, json.JSONDecodeError) as exc:
            raise SourceUnavailable(f"Could not read geometry file {path}.") from exc

    def _fetch(self, session: requests.Session, source: str) -> Any:
        response = session.get(source, timeout=self._timeout_seconds)
        response.raise_for_status()
        return response.json()
