"""Database session management and the relational movie store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from movie_catalog.core.config import get_settings
from movie_catalog.models import Base, Movie
from movie_catalog.services.models import MovieRecord, normalize_title
from movie_catalog.store import InsertOutcome, MovieStore, StoreUnavailable

logger = logging.getLogger(__name__)


def _database_url() -> str:
    """Return the SQLAlchemy URL from settings (defaults to local SQLite)."""
    return get_settings().database_url


engine = create_engine(_database_url(), future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

_COLUMNS = {
    "title": Movie.title,
    "release_date": Movie.release_date,
    "category": Movie.category,
    "attribution": Movie.attribution,
    "duration_minutes": Movie.duration_minutes,
    "rating": Movie.rating,
}


def init_models(bind=None) -> None:
    """Create tables if they do not exist."""
    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def session_scope(factory: sessionmaker | None = None) -> Iterator[Session]:
    """Yield a session that commits on success and always closes."""

    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _column(name: str):
    try:
        return _COLUMNS[name]
    except KeyError:
        raise ValueError(f"unknown column '{name}'") from None


class SqlMovieStore(MovieStore):
    """``MovieStore`` backed by the ``movies`` table; one session per call."""

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def insert(self, record: MovieRecord) -> InsertOutcome:
        try:
            with session_scope(self._session_factory) as session:
                session.add(Movie.from_record(record))
                session.flush()
        except IntegrityError:
            logger.info("Database rejected duplicate title: %s", record.title)
            return InsertOutcome.DUPLICATE
        except SQLAlchemyError as exc:
            logger.warning("Insert failed, database unavailable: %s", exc)
            return InsertOutcome.UNAVAILABLE
        return InsertOutcome.OK

    def delete_by_key(self, title: str) -> int:
        query = delete(Movie).where(Movie.title_key == normalize_title(title))
        try:
            with session_scope(self._session_factory) as session:
                return session.execute(query).rowcount
        except SQLAlchemyError as exc:
            raise _unavailable("delete", exc) from exc

    def select_all(self) -> list[MovieRecord]:
        query = select(Movie).order_by(Movie.title)
        try:
            with session_scope(self._session_factory) as session:
                return [movie.to_record() for movie in session.execute(query).scalars()]
        except SQLAlchemyError as exc:
            raise _unavailable("select", exc) from exc

    def select_by_key(self, title: str) -> MovieRecord | None:
        query = select(Movie).where(Movie.title_key == normalize_title(title))
        try:
            with session_scope(self._session_factory) as session:
                movie = session.execute(query).scalar_one_or_none()
                return movie.to_record() if movie else None
        except SQLAlchemyError as exc:
            raise _unavailable("select", exc) from exc

    def update_column(self, title: str, column: str, value: Any) -> int:
        _column(column)
        values: dict[str, Any] = {column: value}
        if column == "title":
            values["title_key"] = normalize_title(value)
        query = (
            update(Movie)
            .where(Movie.title_key == normalize_title(title))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            with session_scope(self._session_factory) as session:
                return session.execute(query).rowcount
        except IntegrityError:
            logger.info("Database refused rename of %s to existing title %s", title, value)
            return 0
        except SQLAlchemyError as exc:
            raise _unavailable("update", exc) from exc

    def aggregate_average(
        self,
        column: str = "rating",
        where_column: str = "category",
        where_value: Any = None,
    ) -> float | None:
        query = select(func.avg(_column(column))).where(_column(where_column) == where_value)
        try:
            with session_scope(self._session_factory) as session:
                average = session.execute(query).scalar()
        except SQLAlchemyError as exc:
            raise _unavailable("aggregate", exc) from exc
        return float(average) if average is not None else None


def _unavailable(operation: str, exc: SQLAlchemyError) -> StoreUnavailable:
    logger.warning("Database %s failed: %s", operation, exc)
    return StoreUnavailable(f"database {operation} failed: {exc}")
