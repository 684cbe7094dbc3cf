"""Persistence port for the catalog plus a process-local implementation."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from enum import Enum
from typing import Any

from movie_catalog.services.models import MovieRecord, normalize_title

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """Raised when the backing store cannot be reached."""


class InsertOutcome(str, Enum):
    OK = "ok"
    DUPLICATE = "duplicate"
    UNAVAILABLE = "unavailable"


class MovieStore(ABC):
    """Storage interface the catalog manager depends on.

    Records are keyed by normalized title. Every method except ``insert``
    raises ``StoreUnavailable`` when the backend is unreachable; ``insert``
    reports that through ``InsertOutcome.UNAVAILABLE`` instead.
    """

    @abstractmethod
    def insert(self, record: MovieRecord) -> InsertOutcome:
        """Store a new record; duplicate keys are reported, not raised."""

    @abstractmethod
    def delete_by_key(self, title: str) -> int:
        """Delete the record with this title and return rows affected."""

    @abstractmethod
    def select_all(self) -> list[MovieRecord]:
        """Return every record ordered by title."""

    @abstractmethod
    def select_by_key(self, title: str) -> MovieRecord | None:
        """Return the record with this title, if any."""

    @abstractmethod
    def update_column(self, title: str, column: str, value: Any) -> int:
        """Set one column on the record with this title and return rows affected."""

    @abstractmethod
    def aggregate_average(
        self,
        column: str = "rating",
        where_column: str = "category",
        where_value: Any = None,
    ) -> float | None:
        """Average ``column`` over rows matching ``where_column == where_value``."""


class InMemoryMovieStore(MovieStore):
    """Dict-backed store guarded by a lock; lives as long as the process."""

    def __init__(self) -> None:
        self._records: dict[str, MovieRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: MovieRecord) -> InsertOutcome:
        key = record.title_key
        with self._lock:
            if key in self._records:
                logger.debug("Duplicate key rejected by memory store: %s", key)
                return InsertOutcome.DUPLICATE
            self._records[key] = record
        return InsertOutcome.OK

    def delete_by_key(self, title: str) -> int:
        with self._lock:
            return 1 if self._records.pop(normalize_title(title), None) else 0

    def select_all(self) -> list[MovieRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda record: record.title)

    def select_by_key(self, title: str) -> MovieRecord | None:
        with self._lock:
            return self._records.get(normalize_title(title))

    def update_column(self, title: str, column: str, value: Any) -> int:
        key = normalize_title(title)
        with self._lock:
            current = self._records.get(key)
            if current is None:
                return 0
            updated = replace(current, **{column: value})
            new_key = updated.title_key
            if new_key != key and new_key in self._records:
                logger.debug("Rename to existing key refused: %s -> %s", key, new_key)
                return 0
            del self._records[key]
            self._records[new_key] = updated
        return 1

    def aggregate_average(
        self,
        column: str = "rating",
        where_column: str = "category",
        where_value: Any = None,
    ) -> float | None:
        with self._lock:
            values = [
                getattr(record, column)
                for record in self._records.values()
                if getattr(record, where_column) == where_value
            ]
        if not values:
            return None
        return sum(values) / len(values)
