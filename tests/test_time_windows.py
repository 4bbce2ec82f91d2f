"""Tests for periodOfTime window resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from facetscope.explore.errors import InvalidFilterValue
from facetscope.explore.time_windows import first_of_next_month, next_monday, resolve_time_window

MONDAY = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)


def test_this_week_on_a_monday_runs_to_next_monday():
    window = resolve_time_window("thisWeek", MONDAY)

    assert window.start == MONDAY
    assert window.end == datetime(2024, 3, 11, tzinfo=timezone.utc)
    assert window.contains(MONDAY)
    assert window.contains(datetime(2024, 3, 10, 23, 59, 59, tzinfo=timezone.utc))
    assert not window.contains(datetime(2024, 3, 11, tzinfo=timezone.utc))
    assert not window.contains(MONDAY - timedelta(seconds=1))


def test_past_includes_now():
    window = resolve_time_window("past", MONDAY)

    assert window.start is None
    assert window.end_inclusive is True
    assert window.contains(MONDAY)
    assert not window.contains(MONDAY + timedelta(microseconds=1))


def test_upcoming_is_open_ended():
    window = resolve_time_window("upcoming", MONDAY)

    assert window.end is None
    assert window.contains(MONDAY)
    assert window.contains(datetime(2030, 1, 1, tzinfo=timezone.utc))


def test_next_week():
    window = resolve_time_window("nextWeek", MONDAY)

    assert window.start == datetime(2024, 3, 11, tzinfo=timezone.utc)
    assert window.end == datetime(2024, 3, 18, tzinfo=timezone.utc)


def test_next_monday_from_sunday_is_next_day():
    sunday = datetime(2024, 3, 10, 22, 0, tzinfo=timezone.utc)
    assert next_monday(sunday) == datetime(2024, 3, 11, tzinfo=timezone.utc)


def test_month_windows():
    this_month = resolve_time_window("thisMonth", MONDAY)
    next_month = resolve_time_window("nextMonth", MONDAY)

    assert this_month.start == MONDAY
    assert this_month.end == datetime(2024, 4, 1, tzinfo=timezone.utc)
    assert next_month.start == datetime(2024, 4, 1, tzinfo=timezone.utc)
    assert next_month.end == datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_next_month_rolls_over_the_year():
    december = datetime(2024, 12, 15, 8, 0, tzinfo=timezone.utc)
    window = resolve_time_window("nextMonth", december)

    assert first_of_next_month(december) == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert window.end == datetime(2025, 2, 1, tzinfo=timezone.utc)


def test_naive_anchor_is_treated_as_utc():
    window = resolve_time_window("thisWeek", datetime(2024, 3, 4, 10, 0))
    assert window.start == MONDAY


@pytest.mark.parametrize("period", ["", "tomorrow", "THISWEEK"])
def test_unknown_window_rejected(period):
    with pytest.raises(InvalidFilterValue) as excinfo:
        resolve_time_window(period, MONDAY)
    assert excinfo.value.dimension == "periodOfTime"
