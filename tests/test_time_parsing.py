from datetime import datetime

import pytest

from ptk.timeline import ParseError
from ptk.utils.helpers import parse_tags, parse_time

NOW = datetime(2024, 3, 6, 12, 34, 56)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2023-12-31T23:59:58", datetime(2023, 12, 31, 23, 59, 58)),
        ("2023-12-31 23:59", datetime(2023, 12, 31, 23, 59)),
        ("02-14T08:15", datetime(2024, 2, 14, 8, 15)),
        ("02-14 08:15:30", datetime(2024, 2, 14, 8, 15, 30)),
        ("9:05", datetime(2024, 3, 6, 9, 5)),
        ("17:45:10", datetime(2024, 3, 6, 17, 45, 10)),
    ],
)
def test_parse_time_accepts_known_formats(text: str, expected: datetime) -> None:
    assert parse_time(text, NOW) == expected


def test_parse_time_accepts_leap_day_without_year() -> None:
    now = datetime(2028, 3, 1, 12, 0, 0)

    assert parse_time("02-29 10:00", now) == datetime(2028, 2, 29, 10, 0)
    with pytest.raises(ParseError):
        parse_time("02-29 10:00", NOW.replace(year=2025))


def test_parse_time_rejects_garbage() -> None:
    with pytest.raises(ParseError):
        parse_time("next tuesday", NOW)


def test_parse_tags_splits_commas() -> None:
    assert parse_tags(["a,b", " c ", ""]) == ["a", "b", "c"]
    assert parse_tags(None) == []
