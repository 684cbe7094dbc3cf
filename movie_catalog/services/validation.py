"""Field validators for movie records.

Every predicate returns a plain ``bool`` and never raises; callers decide
which field failed and how to report it.
"""

from __future__ import annotations

import math
import re
from typing import Any

MIN_YEAR = 1900
MAX_YEAR = 2025
MIN_DURATION = 30
MAX_DURATION = 300
MIN_RATING = 1.0
MAX_RATING = 10.0

_DATE_PATTERN = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)
_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def is_valid_date(text: Any) -> bool:
    """Accept a real ``YYYY-MM-DD`` date between 1900-01-01 and 2025-12-31."""

    if not isinstance(text, str):
        return False
    match = _DATE_PATTERN.fullmatch(text)
    if match is None:
        return False
    year, month, day = (int(part) for part in match.groups())
    if year < MIN_YEAR or year > MAX_YEAR:
        return False
    if month < 1 or month > 12:
        return False
    days = _DAYS_IN_MONTH[month - 1]
    if month == 2 and is_leap_year(year):
        days = 29
    return 1 <= day <= days


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_duration(minutes: Any) -> bool:
    return _is_int(minutes) and MIN_DURATION <= minutes <= MAX_DURATION


def is_valid_rating(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if math.isnan(value):
        return False
    return MIN_RATING <= value <= MAX_RATING


def is_valid_category(value: Any) -> bool:
    return _is_int(value) and value > 0


def is_non_blank(text: Any) -> bool:
    return isinstance(text, str) and bool(text.strip())
