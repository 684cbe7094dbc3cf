import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from movie_catalog.db import SqlMovieStore, init_models, session_scope
from movie_catalog.models import Movie
from movie_catalog.services.catalog import BatchImportError, CatalogManager
from movie_catalog.services.models import MovieRecord, Rejection
from movie_catalog.store import InsertOutcome, StoreUnavailable


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'movies.db'}", future=True)
    init_models(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlMovieStore(session_factory)


@pytest.fixture
def catalog(store):
    return CatalogManager(store)


@pytest.fixture
def unreachable_store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'movies.db'}", future=True)
    yield SqlMovieStore(sessionmaker(bind=engine, future=True))
    engine.dispose()


def _record(title="Iron Man", **overrides):
    values = {
        "title": title,
        "release_date": "2008-05-02",
        "category": 1,
        "attribution": "Jon Favreau",
        "duration_minutes": 126,
        "rating": 7.9,
    }
    values.update(overrides)
    return MovieRecord(**values)


def test_insert_and_select_round_trip(store):
    assert store.insert(_record()) is InsertOutcome.OK
    assert store.select_by_key(" IRON MAN ") == _record()
    assert store.select_all() == [_record()]


def test_unique_constraint_reports_duplicate(store):
    assert store.insert(_record()) is InsertOutcome.OK
    assert store.insert(_record("iron man", rating=5.0)) is InsertOutcome.DUPLICATE
    assert len(store.select_all()) == 1


def test_title_key_column_is_normalized(store, session_factory):
    store.insert(_record("  The Avengers "))
    with session_scope(session_factory) as session:
        movie = session.query(Movie).one()
        assert movie.title_key == "the avengers"


def test_update_column_rename_keeps_key_in_sync(store):
    store.insert(_record())
    assert store.update_column("iron man", "title", "Iron Man Returns") == 1
    assert store.select_by_key("Iron Man") is None
    assert store.select_by_key("iron man returns").title == "Iron Man Returns"


def test_update_column_into_existing_key_changes_nothing(store):
    store.insert(_record())
    store.insert(_record("Thor"))
    assert store.update_column("Thor", "title", "IRON MAN") == 0
    assert store.select_by_key("Thor") is not None


def test_update_column_rejects_unknown_column(store):
    store.insert(_record())
    with pytest.raises(ValueError):
        store.update_column("Iron Man", "budget", 100)


def test_delete_by_key(store):
    store.insert(_record())
    assert store.delete_by_key("IRON MAN") == 1
    assert store.delete_by_key("Iron Man") == 0


def test_aggregate_average(store):
    store.insert(_record("A", category=2, rating=7.0))
    store.insert(_record("B", category=2, rating=9.0))
    assert store.aggregate_average("rating", "category", 2) == pytest.approx(8.0)
    assert store.aggregate_average("rating", "category", 3) is None


def test_catalog_scenarios_on_sql_backend(catalog):
    assert catalog.add("Iron Man", "2008-05-02", 1, "Jon Favreau", 126, 7.9)
    assert catalog.add("Iron Man", "2010-01-01", 1, "X", 100, 6.0).rejection is Rejection.DUPLICATE
    assert not catalog.update_field("Iron Man", "rating", 11.0)
    assert catalog.find_by_title("iron man").rating == pytest.approx(7.9)
    assert catalog.update_field("Iron Man", "runningTimeMin", 127)
    assert catalog.find_by_title("Iron Man").duration_minutes == 127
    assert not catalog.remove_by_title("nonexistent")
    assert len(catalog.list_movies()) == 1


def test_catalog_batch_import_on_sql_backend(catalog):
    summary = catalog.import_batch(
        [
            "A,2000-01-01,1,D,100,7.0",
            "B,bad-date,1,D,100,7.0",
            "A,2000-01-01,1,D,100,7.0",
        ]
    )
    assert (summary.added_count, summary.failed_count) == (1, 2)
    assert catalog.average_rating(1) == pytest.approx(7.0)
    assert catalog.average_rating(99) == 0.0


def test_unreachable_database_raises_store_unavailable(unreachable_store):
    with pytest.raises(StoreUnavailable):
        unreachable_store.select_all()
    assert unreachable_store.insert(_record()) is InsertOutcome.UNAVAILABLE


def test_catalog_on_unreachable_database(unreachable_store):
    catalog = CatalogManager(unreachable_store)
    assert catalog.list_movies() == []
    assert catalog.find_by_title("Iron Man") is None
    assert catalog.average_rating(1) == 0.0
    assert catalog.create(_record()).rejection is Rejection.UNAVAILABLE
    with pytest.raises(BatchImportError):
        catalog.import_batch(["A,2000-01-01,1,D,100,7.0"])


def test_movies_table_holds_only_record_columns():
    assert [column.name for column in Movie.__table__.columns] == [
        "id",
        "title",
        "title_key",
        "release_date",
        "category",
        "attribution",
        "duration_minutes",
        "rating",
    ]
