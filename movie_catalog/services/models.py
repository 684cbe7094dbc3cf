"""Shared dataclasses for the service layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


def normalize_title(title: str) -> str:
    """Return the lookup key for a title (trimmed, case-insensitive)."""

    return title.strip().lower()


@dataclass(frozen=True, slots=True)
class MovieRecord:
    """A single catalog entry. ``title`` is the natural key."""

    title: str
    release_date: str
    category: int
    attribution: str
    duration_minutes: int
    rating: float

    @property
    def title_key(self) -> str:
        return normalize_title(self.title)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class MovieField(str, Enum):
    """Updatable record fields; values double as storage column names."""

    TITLE = "title"
    RELEASE_DATE = "release_date"
    CATEGORY = "category"
    ATTRIBUTION = "attribution"
    DURATION_MINUTES = "duration_minutes"
    RATING = "rating"

    @classmethod
    def lookup(cls, name: str) -> MovieField | None:
        """Resolve a field name case-insensitively, accepting legacy aliases."""

        if not isinstance(name, str):
            return None
        key = name.strip().lower().replace("_", "")
        return _FIELD_ALIASES.get(key)


_FIELD_ALIASES: dict[str, MovieField] = {
    "title": MovieField.TITLE,
    "releasedate": MovieField.RELEASE_DATE,
    "category": MovieField.CATEGORY,
    "phase": MovieField.CATEGORY,
    "attribution": MovieField.ATTRIBUTION,
    "director": MovieField.ATTRIBUTION,
    "durationminutes": MovieField.DURATION_MINUTES,
    "runningtimemin": MovieField.DURATION_MINUTES,
    "rating": MovieField.RATING,
    "imdbrating": MovieField.RATING,
}

_TEXT_FIELDS = {MovieField.TITLE, MovieField.RELEASE_DATE, MovieField.ATTRIBUTION}
_INT_FIELDS = {MovieField.CATEGORY, MovieField.DURATION_MINUTES}


class InvalidFieldUpdate(ValueError):
    """Raised when a field/value pair cannot form a valid update."""


@dataclass(frozen=True, slots=True)
class FieldUpdate:
    """A typed single-field change: the field tag plus a value of its type."""

    field: MovieField
    value: str | int | float

    def __post_init__(self) -> None:
        value = self.value
        if self.field in _TEXT_FIELDS:
            if not isinstance(value, str):
                raise InvalidFieldUpdate(f"{self.field.value} expects text, got {type(value).__name__}")
            object.__setattr__(self, "value", value.strip())
        elif self.field in _INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidFieldUpdate(f"{self.field.value} expects an integer, got {type(value).__name__}")
        elif not isinstance(value, float):
            raise InvalidFieldUpdate(f"{self.field.value} expects a real number, got {type(value).__name__}")

    @classmethod
    def parse(cls, field_name: str, value: Any) -> FieldUpdate:
        movie_field = MovieField.lookup(field_name)
        if movie_field is None:
            raise InvalidFieldUpdate(f"unknown field '{field_name}'")
        return cls(movie_field, value)


class Rejection(str, Enum):
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of a catalog mutation. Truthy on success."""

    ok: bool
    rejection: Rejection | None = None
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> Outcome:
        return cls(ok=True)

    @classmethod
    def rejected(cls, rejection: Rejection, reason: str) -> Outcome:
        return cls(ok=False, rejection=rejection, reason=reason)


@dataclass(slots=True)
class ImportSummary:
    """Counts (and per-line diagnostics) from one batch import."""

    added_count: int = 0
    failed_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Batch Load Complete: {self.added_count} added, {self.failed_count} failed."
