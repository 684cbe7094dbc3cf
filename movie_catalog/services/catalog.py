"""Catalog manager: validation, uniqueness and batch import around a ``MovieStore``."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Iterable

from movie_catalog.services.models import (
    FieldUpdate,
    ImportSummary,
    InvalidFieldUpdate,
    MovieField,
    MovieRecord,
    Outcome,
    Rejection,
)
from movie_catalog.services.validation import (
    is_non_blank,
    is_valid_category,
    is_valid_date,
    is_valid_duration,
    is_valid_rating,
)
from movie_catalog.store import InsertOutcome, MovieStore, StoreUnavailable

logger = logging.getLogger(__name__)

UNREADABLE_FILE_MESSAGE = "Unable to read file. Please check the provided path."
BATCH_FIELD_COUNT = 6
_TRIMMED_FIELDS = ("title", "release_date", "attribution")


class CatalogError(Exception):
    """Base exception for catalog failures that cannot be reported as an outcome."""


class BatchImportError(CatalogError):
    """Raised when a batch import cannot run to completion at all."""


_FIELD_RULES: dict[MovieField, tuple[Callable[[Any], bool], str]] = {
    MovieField.TITLE: (is_non_blank, "title must not be blank"),
    MovieField.RELEASE_DATE: (
        is_valid_date,
        "release date must be a real YYYY-MM-DD date between 1900-01-01 and 2025-12-31",
    ),
    MovieField.CATEGORY: (is_valid_category, "category must be a positive integer"),
    MovieField.ATTRIBUTION: (is_non_blank, "attribution must not be blank"),
    MovieField.DURATION_MINUTES: (is_valid_duration, "duration must be between 30 and 300 minutes"),
    MovieField.RATING: (is_valid_rating, "rating must be between 1.0 and 10.0"),
}


def _field_problem(movie_field: MovieField, value: Any) -> str | None:
    check, message = _FIELD_RULES[movie_field]
    return None if check(value) else message


def _record_problem(record: MovieRecord) -> str | None:
    for movie_field in MovieField:
        problem = _field_problem(movie_field, getattr(record, movie_field.value))
        if problem:
            return problem
    return None


def _unavailable(exc: Exception | None = None) -> Outcome:
    if exc is not None:
        logger.warning("Catalog store unavailable: %s", exc)
    return Outcome.rejected(Rejection.UNAVAILABLE, "catalog storage is unavailable")


def parse_batch_line(line: str) -> MovieRecord:
    """Decode ``title,date,category,attribution,duration,rating`` into a record.

    Raises ``ValueError`` for a wrong field count or an unparsable number;
    range checks are left to the catalog.
    """

    parts = [part.strip() for part in line.split(",")]
    if len(parts) != BATCH_FIELD_COUNT:
        raise ValueError(f"expected {BATCH_FIELD_COUNT} fields, got {len(parts)}")
    title, release_date, category, attribution, duration, rating = parts
    try:
        return MovieRecord(
            title=title,
            release_date=release_date,
            category=int(category),
            attribution=attribution,
            duration_minutes=int(duration),
            rating=float(rating),
        )
    except ValueError as exc:
        raise ValueError(f"type error in numeric field ({exc})") from exc


def read_batch_lines(path: str | Path) -> list[str]:
    """Read a UTF-8 batch file; any read failure is one terminal error."""

    try:
        return Path(path).read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read batch file %s: %s", path, exc)
        raise BatchImportError(UNREADABLE_FILE_MESSAGE) from exc


class CatalogManager:
    """Owns the CRUD contract for movie records.

    All rejections come back as ``Outcome`` values. Every check runs before
    the store is written, so a rejected call leaves the catalog untouched.
    """

    def __init__(self, store: MovieStore) -> None:
        self._store = store

    # Reads

    def list_movies(self) -> list[MovieRecord]:
        try:
            return self._store.select_all()
        except StoreUnavailable as exc:
            logger.warning("Listing movies failed, returning empty catalog: %s", exc)
            return []

    def find_by_title(self, title: str) -> MovieRecord | None:
        if not is_non_blank(title):
            return None
        try:
            return self._store.select_by_key(title)
        except StoreUnavailable as exc:
            logger.warning("Lookup of %r failed: %s", title, exc)
            return None

    def average_rating_or_none(self, category: int) -> float | None:
        """Mean rating for ``category``, or ``None`` when there is nothing to average."""

        if not is_valid_category(category):
            return None
        try:
            return self._store.aggregate_average("rating", "category", category)
        except StoreUnavailable as exc:
            logger.warning("Average rating for category %s unavailable: %s", category, exc)
            return None

    def average_rating(self, category: int) -> float:
        average = self.average_rating_or_none(category)
        return average if average is not None else 0.0

    # Mutations

    def create(self, record: MovieRecord) -> Outcome:
        if record is None:
            return Outcome.rejected(Rejection.INVALID, "no record given")
        record = replace(
            record,
            **{
                name: getattr(record, name).strip()
                for name in _TRIMMED_FIELDS
                if isinstance(getattr(record, name), str)
            },
        )
        problem = _record_problem(record)
        if problem:
            logger.info("Rejected movie %r: %s", record.title, problem)
            return Outcome.rejected(Rejection.INVALID, problem)

        record = replace(record, rating=float(record.rating))
        try:
            existing = self._store.select_by_key(record.title)
        except StoreUnavailable as exc:
            return _unavailable(exc)
        if existing is not None:
            logger.info("Rejected duplicate title %r", record.title)
            return Outcome.rejected(Rejection.DUPLICATE, f"title '{record.title}' already exists")

        result = self._store.insert(record)
        if result is InsertOutcome.DUPLICATE:
            return Outcome.rejected(Rejection.DUPLICATE, f"title '{record.title}' already exists")
        if result is InsertOutcome.UNAVAILABLE:
            return _unavailable()
        logger.info("Added movie %r", record.title)
        return Outcome.success()

    def add(
        self,
        title: str,
        release_date: str,
        category: int,
        attribution: str,
        duration_minutes: int,
        rating: float,
    ) -> Outcome:
        return self.create(
            MovieRecord(
                title=title,
                release_date=release_date,
                category=category,
                attribution=attribution,
                duration_minutes=duration_minutes,
                rating=rating,
            )
        )

    def remove_by_title(self, title: str) -> Outcome:
        if not is_non_blank(title):
            return Outcome.rejected(Rejection.NOT_FOUND, "no title given")
        try:
            removed = self._store.delete_by_key(title)
        except StoreUnavailable as exc:
            return _unavailable(exc)
        if not removed:
            return Outcome.rejected(Rejection.NOT_FOUND, f"movie '{title}' was not found")
        logger.info("Removed movie %r", title)
        return Outcome.success()

    def update_field(self, target_title: str, field_name: str, raw_value: Any) -> Outcome:
        """Update one field addressed by name; unknown names and wrong types are rejected."""

        target, failure = self._locate(target_title)
        if failure is not None:
            return failure
        try:
            field_update = FieldUpdate.parse(field_name, raw_value)
        except InvalidFieldUpdate as exc:
            logger.info("Rejected update of %r: %s", target_title, exc)
            return Outcome.rejected(Rejection.INVALID, str(exc))
        return self._apply(target, field_update)

    def apply_update(self, target_title: str, field_update: FieldUpdate) -> Outcome:
        target, failure = self._locate(target_title)
        if failure is not None:
            return failure
        return self._apply(target, field_update)

    def _locate(self, title: str) -> tuple[MovieRecord | None, Outcome | None]:
        if not is_non_blank(title):
            return None, Outcome.rejected(Rejection.NOT_FOUND, "no title given")
        try:
            target = self._store.select_by_key(title)
        except StoreUnavailable as exc:
            return None, _unavailable(exc)
        if target is None:
            return None, Outcome.rejected(Rejection.NOT_FOUND, f"movie '{title}' was not found")
        return target, None

    def _apply(self, target: MovieRecord, field_update: FieldUpdate) -> Outcome:
        movie_field, value = field_update.field, field_update.value
        problem = _field_problem(movie_field, value)
        if problem:
            logger.info("Rejected update of %r: %s", target.title, problem)
            return Outcome.rejected(Rejection.INVALID, problem)

        try:
            if movie_field is MovieField.TITLE:
                other = self._store.select_by_key(value)
                if other is not None and other.title_key != target.title_key:
                    return Outcome.rejected(Rejection.DUPLICATE, f"title '{value}' already exists")
            changed = self._store.update_column(target.title, movie_field.value, value)
        except StoreUnavailable as exc:
            return _unavailable(exc)

        if not changed:
            if movie_field is MovieField.TITLE:
                return Outcome.rejected(Rejection.DUPLICATE, f"title '{value}' already exists")
            return Outcome.rejected(Rejection.NOT_FOUND, f"movie '{target.title}' was not found")
        logger.info("Updated %s of %r", movie_field.value, target.title)
        return Outcome.success()

    # Batch import

    def import_batch(self, lines: Iterable[str]) -> ImportSummary:
        """Add every valid, non-duplicate line; failures never stop the batch.

        Blank lines are skipped. Raises ``BatchImportError`` when the store
        becomes unavailable part-way through, or when ``lines`` itself fails
        to read. Lines added before either failure are kept.
        """

        summary = ImportSummary()
        try:
            for number, line in enumerate(lines, start=1):
                if not line.strip():
                    continue
                try:
                    record = parse_batch_line(line)
                except ValueError as exc:
                    self._fail_line(summary, number, str(exc))
                    continue

                outcome = self.create(record)
                if outcome:
                    summary.added_count += 1
                elif outcome.rejection is Rejection.UNAVAILABLE:
                    raise BatchImportError(
                        f"catalog storage became unavailable at line {number} "
                        f"after {summary.added_count} added"
                    )
                else:
                    self._fail_line(summary, number, outcome.reason or "rejected")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Batch source failed after %s added: %s", summary.added_count, exc)
            raise BatchImportError(UNREADABLE_FILE_MESSAGE) from exc

        logger.info(summary.message)
        return summary

    def import_file(self, path: str | Path) -> ImportSummary:
        return self.import_batch(read_batch_lines(path))

    @staticmethod
    def _fail_line(summary: ImportSummary, number: int, reason: str) -> None:
        logger.info("Skipping batch line %d: %s", number, reason)
        summary.failed_count += 1
        summary.errors.append(f"line {number}: {reason}")
