from datetime import date, time

import pytest
from timeslots.domain.errors import ValidationError
from timeslots.domain.intervals import (
    dates_between,
    is_date_in_past,
    normalize_time,
    overlaps,
    time_grid,
    validate_order,
    validate_time_format,
)


@pytest.mark.parametrize("value", ["00:00", "09:30", "23:59"])
def test_accepts_canonical_times(value: str) -> None:
    assert validate_time_format(value) is True


@pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "12:00:00", "", "noon", None, 930])
def test_rejects_non_canonical_times(value: object) -> None:
    assert validate_time_format(value) is False


def test_normalize_pads_and_drops_seconds() -> None:
    assert normalize_time("9:05") == "09:05"
    assert normalize_time("18:45:59") == "18:45"
    assert normalize_time(" 07:00 ") == "07:00"
    assert normalize_time(time(6, 3)) == "06:03"


def test_normalize_rejects_garbage_with_field_name() -> None:
    with pytest.raises(ValidationError) as excinfo:
        normalize_time("25:00", field="end_time")
    assert excinfo.value.field == "end_time"


def test_validate_order() -> None:
    assert validate_order("09:00", "09:01") is True
    assert validate_order("10:00", "10:00") is False
    assert validate_order("11:00", "10:00") is False
    assert validate_order("bad", "10:00") is False


def test_touching_is_not_overlapping() -> None:
    assert overlaps("09:00", "10:00", "10:00", "11:00") is False
    assert overlaps("10:00", "11:00", "09:00", "10:00") is False


def test_partial_overlap_detected() -> None:
    assert overlaps("09:00", "10:30", "10:00", "11:00") is True


def test_containment_detected() -> None:
    assert overlaps("09:00", "12:00", "10:00", "11:00") is True
    assert overlaps("10:00", "11:00", "09:00", "12:00") is True


def test_overlap_is_symmetric() -> None:
    points = ["08:00", "09:00", "09:30", "10:00", "11:00"]
    intervals = [(a, b) for a in points for b in points if a < b]
    for a in intervals:
        for b in intervals:
            assert overlaps(*a, *b) == overlaps(*b, *a)


def test_time_grid_excludes_end() -> None:
    assert time_grid("09:00", "11:00") == ["09:00", "09:30", "10:00", "10:30"]
    assert time_grid("22:00", "23:00", step_minutes=20) == ["22:00", "22:20", "22:40"]


def test_dates_between_is_inclusive() -> None:
    days = list(dates_between(date(2025, 2, 27), date(2025, 3, 1)))
    assert days == [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1)]
    assert list(dates_between(date(2025, 3, 2), date(2025, 3, 1))) == []


def test_is_date_in_past() -> None:
    assert is_date_in_past(date(2025, 1, 1), today=date(2025, 1, 2)) is True
    assert is_date_in_past(date(2025, 1, 2), today=date(2025, 1, 2)) is False
