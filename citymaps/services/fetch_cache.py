"""
citymaps/services/fetch_cache.py

Time-boxed in-memory cache in front of a table connector.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from citymaps.connectors.base import BaseConnector
from citymaps.domain.ingestion import SheetTable
from citymaps.logging_utils import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    fetched_at: float
    generation: int


def _identity(table: SheetTable) -> Any:
    return table


class TabularFetchCache(Generic[T]):
    """
    Memoizes one transformed table per (source_id, range) for `ttl_seconds`.

    Concurrent cold fetches for the same key are not de-duplicated; each one
    performs its own retrieval and the last write wins. A retrieval that
    completes after `invalidate()` is handed to its caller but never stored.
    """

    def __init__(
        self,
        connector: BaseConnector,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        transform: Callable[[SheetTable], T] | None = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "sheet",
    ) -> None:
        self._connector = connector
        self._ttl_seconds = max(0.0, ttl_seconds)
        self._transform: Callable[[SheetTable], T] = transform or _identity
        self._clock = clock
        self._name = name
        self._entries: dict[tuple[str, str], CacheEntry[T]] = {}
        self._generation = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def generation(self) -> int:
        return self._generation

    def peek(self, source_id: str, range_: str) -> CacheEntry[T] | None:
        """
        Return the valid entry for a key without network I/O.
        """

        key = (source_id, range_)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl_seconds:
            self._entries.pop(key, None)
            return None
        return entry

    def fetch(self, source_id: str, range_: str) -> T:
        """
        Return cached data while valid, otherwise retrieve, transform and store.

        SourceUnavailable and EmptyDataset propagate and leave the cache untouched.
        """

        entry = self.peek(source_id, range_)
        if entry is not None:
            log_event(logger, logging.DEBUG, "sheet_cache_hit", cache=self._name, source_id=source_id, range=range_)
            return entry.data

        generation = self._generation
        log_event(logger, logging.INFO, "sheet_fetch_started", cache=self._name, source_id=source_id, range=range_)
        table = self._connector.fetch_table(source_id, range_)
        data = self._transform(table)

        if generation != self._generation:
            log_event(
                logger,
                logging.INFO,
                "sheet_fetch_discarded",
                cache=self._name,
                source_id=source_id,
                range=range_,
                started_generation=generation,
                current_generation=self._generation,
            )
            return data

        self._entries[(source_id, range_)] = CacheEntry(
            data=data,
            fetched_at=self._clock(),
            generation=generation,
        )
        log_event(logger, logging.INFO, "sheet_fetch_cached", cache=self._name, source_id=source_id, range=range_)
        return data

    def invalidate(self) -> None:
        """
        Drop every entry and retire in-flight retrievals.
        """

        self._entries.clear()
        self._generation += 1
        log_event(logger, logging.INFO, "sheet_cache_invalidated", cache=self._name, generation=self._generation)
