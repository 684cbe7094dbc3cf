"""FastAPI entrypoint exposing the movie catalog."""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, status
from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr

from movie_catalog.core.config import get_settings
from movie_catalog.core.logging_config import configure_logging
from movie_catalog.db import SqlMovieStore, init_models
from movie_catalog.services.catalog import BatchImportError, CatalogManager, read_batch_lines
from movie_catalog.services.models import (
    ImportSummary,
    MovieField,
    MovieRecord,
    Outcome,
    Rejection,
)
from movie_catalog.store import InMemoryMovieStore


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Configure logging + ensure database tables before serving."""

    configure_logging()
    if get_settings().catalog_backend == "sql":
        init_models()
    yield


app = FastAPI(title="Movie Catalog", lifespan=lifespan)


@lru_cache(maxsize=1)
def get_catalog() -> CatalogManager:
    """Return the process-wide catalog for the configured backend."""

    if get_settings().catalog_backend == "memory":
        return CatalogManager(InMemoryMovieStore())
    return CatalogManager(SqlMovieStore())


class MovieBody(BaseModel):
    title: str = Field(..., description="Unique movie title (case-insensitive)")
    release_date: str = Field(..., description="Release date as YYYY-MM-DD")
    category: int = Field(..., description="Positive grouping key, e.g. a franchise phase")
    attribution: str = Field(..., description="Director or other credited name")
    duration_minutes: int
    rating: float


class FieldUpdateRequest(BaseModel):
    field: str = Field(..., description="Field to change, e.g. rating or releaseDate")
    value: StrictStr | StrictInt | StrictFloat


class AverageRatingResponse(BaseModel):
    category: int
    average: float
    has_data: bool


class ImportRequest(BaseModel):
    lines: list[str]


class ImportFileRequest(BaseModel):
    path: str = Field(..., description="Server-side path of a UTF-8 batch file")


class ImportResponse(BaseModel):
    added_count: int
    failed_count: int
    message: str
    errors: list[str] = []


_REJECTION_STATUS = {
    Rejection.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    Rejection.DUPLICATE: status.HTTP_409_CONFLICT,
    Rejection.INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    Rejection.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.get("/movies", response_model=list[MovieBody])
def list_movies(catalog: CatalogManager = Depends(get_catalog)) -> list[MovieBody]:
    return [_record_to_body(record) for record in catalog.list_movies()]


@app.get("/movies/{title}", response_model=MovieBody)
def get_movie(title: str, catalog: CatalogManager = Depends(get_catalog)) -> MovieBody:
    record = catalog.find_by_title(title)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"movie '{title}' was not found",
        )
    return _record_to_body(record)


@app.post("/movies", response_model=MovieBody, status_code=status.HTTP_201_CREATED)
def create_movie(payload: MovieBody, catalog: CatalogManager = Depends(get_catalog)) -> MovieBody:
    record = MovieRecord(**payload.model_dump())
    _raise_for_outcome(catalog.create(record))
    return _record_to_body(catalog.find_by_title(record.title) or record)


@app.patch("/movies/{title}", response_model=MovieBody)
def update_movie(
    title: str,
    payload: FieldUpdateRequest,
    catalog: CatalogManager = Depends(get_catalog),
) -> MovieBody:
    """Change a single field of the movie currently titled ``title``."""

    _raise_for_outcome(catalog.update_field(title, payload.field, payload.value))
    current_title = title
    if MovieField.lookup(payload.field) is MovieField.TITLE:
        current_title = str(payload.value)
    record = catalog.find_by_title(current_title)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="updated movie could not be reloaded",
        )
    return _record_to_body(record)


@app.delete("/movies/{title}", status_code=status.HTTP_204_NO_CONTENT)
def delete_movie(title: str, catalog: CatalogManager = Depends(get_catalog)) -> None:
    _raise_for_outcome(catalog.remove_by_title(title))


@app.get("/categories/{category}/average-rating", response_model=AverageRatingResponse)
def get_average_rating(
    category: int,
    catalog: CatalogManager = Depends(get_catalog),
) -> AverageRatingResponse:
    average = catalog.average_rating_or_none(category)
    return AverageRatingResponse(
        category=category,
        average=average if average is not None else 0.0,
        has_data=average is not None,
    )


@app.post("/movies/import", response_model=ImportResponse)
def import_movies(
    payload: ImportRequest,
    catalog: CatalogManager = Depends(get_catalog),
) -> ImportResponse:
    try:
        summary = catalog.import_batch(payload.lines)
    except BatchImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return _summary_to_response(summary)


@app.post("/movies/import-file", response_model=ImportResponse)
def import_movies_from_file(
    payload: ImportFileRequest,
    catalog: CatalogManager = Depends(get_catalog),
) -> ImportResponse:
    """Import a batch file readable by the server process."""

    path = payload.path.strip()
    if not path:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="path must not be empty",
        )
    try:
        lines = read_batch_lines(path)
    except BatchImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    try:
        summary = catalog.import_batch(lines)
    except BatchImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return _summary_to_response(summary)


def _raise_for_outcome(outcome: Outcome) -> None:
    if outcome:
        return
    raise HTTPException(
        status_code=_REJECTION_STATUS.get(outcome.rejection, status.HTTP_400_BAD_REQUEST),
        detail=outcome.reason,
    )


def _record_to_body(record: MovieRecord) -> MovieBody:
    return MovieBody(**record.to_dict())


def _summary_to_response(summary: ImportSummary) -> ImportResponse:
    return ImportResponse(
        added_count=summary.added_count,
        failed_count=summary.failed_count,
        message=summary.message,
        errors=list(summary.errors),
    )
