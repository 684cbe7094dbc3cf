"""SQLAlchemy ORM models.

This module defines the "movies" table backing the catalog. ``title_key``
holds the normalized title so the uniqueness rule is also enforced by the
database itself.
"""

from __future__ import annotations

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from movie_catalog.services.models import MovieRecord


class Base(DeclarativeBase):
    pass


class Movie(Base):
    """Persisted form of a ``MovieRecord``."""

    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    title_key: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    release_date: Mapped[str] = mapped_column(String(10))
    category: Mapped[int] = mapped_column(Integer, index=True)
    attribution: Mapped[str] = mapped_column(String(255))
    duration_minutes: Mapped[int] = mapped_column(Integer)
    rating: Mapped[float] = mapped_column(Float)

    @classmethod
    def from_record(cls, record: MovieRecord) -> Movie:
        return cls(
            title=record.title,
            title_key=record.title_key,
            release_date=record.release_date,
            category=record.category,
            attribution=record.attribution,
            duration_minutes=record.duration_minutes,
            rating=record.rating,
        )

    def to_record(self) -> MovieRecord:
        return MovieRecord(
            title=self.title,
            release_date=self.release_date,
            category=self.category,
            attribution=self.attribution,
            duration_minutes=self.duration_minutes,
            rating=self.rating,
        )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"Movie(id={self.id}, title={self.title}, category={self.category})"
