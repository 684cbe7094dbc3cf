import pytest

from movie_catalog.services import validation


@pytest.mark.parametrize(
    "text",
    ["2008-05-02", "1900-01-01", "2025-12-31", "2000-02-29", "2024-02-29"],
)
def test_is_valid_date_accepts_real_dates_in_range(text):
    assert validation.is_valid_date(text)


@pytest.mark.parametrize(
    "text",
    [
        "1899-12-31",
        "2026-01-01",
        "1900-02-29",  # century, not a leap year
        "2023-02-29",
        "2020-04-31",
        "2020-13-01",
        "2020-00-10",
        "2020-01-00",
        "01-01-2020",
        "2020-1-01",
        "2020/01/01",
        " 2020-01-01",
        "bad-date",
        "",
        None,
        20200101,
    ],
)
def test_is_valid_date_rejects_bad_input(text):
    assert not validation.is_valid_date(text)


def test_is_leap_year_rules():
    assert validation.is_leap_year(2000)
    assert validation.is_leap_year(2024)
    assert not validation.is_leap_year(1900)
    assert not validation.is_leap_year(2023)


def test_duration_bounds_are_inclusive():
    assert validation.is_valid_duration(30)
    assert validation.is_valid_duration(300)
    assert not validation.is_valid_duration(29)
    assert not validation.is_valid_duration(301)
    assert not validation.is_valid_duration(120.0)
    assert not validation.is_valid_duration("120")
    assert not validation.is_valid_duration(True)


def test_rating_bounds_are_inclusive():
    assert validation.is_valid_rating(1.0)
    assert validation.is_valid_rating(10.0)
    assert validation.is_valid_rating(7)
    assert not validation.is_valid_rating(0.99)
    assert not validation.is_valid_rating(10.01)
    assert not validation.is_valid_rating(float("nan"))
    assert not validation.is_valid_rating("7.5")
    assert not validation.is_valid_rating(None)


def test_category_must_be_positive_integer():
    assert validation.is_valid_category(1)
    assert validation.is_valid_category(99)
    assert not validation.is_valid_category(0)
    assert not validation.is_valid_category(-3)
    assert not validation.is_valid_category(1.5)
    assert not validation.is_valid_category(True)


def test_is_non_blank():
    assert validation.is_non_blank("Jon Favreau")
    assert not validation.is_non_blank("")
    assert not validation.is_non_blank("   \t")
    assert not validation.is_non_blank(None)
    assert not validation.is_non_blank(42)
