"""Unit tests for query-string parsing and vocabulary validation."""

from datetime import datetime, timezone

import pytest

from facetscope.explore.entities import EVENTS, PROFILES
from facetscope.explore.errors import InvalidFilterValue, InvalidSortOrPage
from facetscope.explore.filters import SortSpec, parse_filter_selection, parse_page, parse_sort

NOW = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)

VOCABULARIES = {
    "event_type": ["online", "hybrid", "onsite"],
    "focus": ["coding", "education"],
    "event_target_group": ["students"],
    "area": ["berlin", "bayern"],
    "offer": ["mentoring"],
}


class RecordingLookup:
    def __init__(self):
        self.requested = []

    def __call__(self, vocabulary):
        self.requested.append(vocabulary)
        return VOCABULARIES.get(vocabulary, [])


def test_multi_values_deduplicated_in_request_order():
    lookup = RecordingLookup()
    selection = parse_filter_selection(
        EVENTS,
        "filter[type]=online&filter[type]=hybrid&filter[type]=online&filter[focus]=coding",
        lookup,
        now=NOW,
    )

    assert selection.selected("type") == ("online", "hybrid")
    assert selection.selected("focus") == ("coding",)
    assert selection.selected("area") == ()
    assert selection.constrained_dimensions == ("type", "focus")


def test_vocabularies_looked_up_only_for_requested_dimensions():
    lookup = RecordingLookup()
    parse_filter_selection(EVENTS, "filter[focus]=coding", lookup, now=NOW)
    assert lookup.requested == ["focus"]


def test_unknown_slug_rejected():
    with pytest.raises(InvalidFilterValue) as excinfo:
        parse_filter_selection(EVENTS, "filter[type]=online&filter[type]=webinar", RecordingLookup(), now=NOW)
    assert excinfo.value.value == "webinar"
    assert excinfo.value.dimension == "type"


def test_slug_from_another_vocabulary_rejected():
    with pytest.raises(InvalidFilterValue):
        parse_filter_selection(EVENTS, "filter[type]=coding", RecordingLookup(), now=NOW)


def test_empty_value_rejected():
    with pytest.raises(InvalidFilterValue):
        parse_filter_selection(EVENTS, "filter[type]=", RecordingLookup(), now=NOW)


def test_unknown_dimensions_and_keys_ignored():
    lookup = RecordingLookup()
    selection = parse_filter_selection(
        EVENTS,
        [("filter[color]", "red"), ("utm_source", "mail"), ("filter[type]", "online")],
        lookup,
        now=NOW,
    )

    assert dict(selection.values) == {"type": ("online",)}
    assert lookup.requested == ["event_type"]


def test_period_defaults_to_upcoming_for_events_only():
    events = parse_filter_selection(EVENTS, "", RecordingLookup(), now=NOW)
    profiles = parse_filter_selection(PROFILES, "filter[periodOfTime]=past", RecordingLookup(), now=NOW)

    assert events.period.period == "upcoming"
    assert events.period.start == NOW
    assert profiles.period is None


def test_period_window_parsed():
    selection = parse_filter_selection(EVENTS, "filter[periodOfTime]=thisWeek", RecordingLookup(), now=NOW)
    assert selection.period.end == datetime(2024, 3, 11, tzinfo=timezone.utc)


def test_sort_and_page_defaults():
    selection = parse_filter_selection(PROFILES, "", RecordingLookup())

    assert selection.sort == SortSpec("firstName", "asc")
    assert selection.page == 1
    assert selection.items_per_page == 12
    assert selection.search is None


def test_last_scalar_value_wins():
    selection = parse_filter_selection(PROFILES, "page=2&page=3&search=+ber+", RecordingLookup())

    assert selection.page == 3
    assert selection.search == "ber"


def test_selection_is_immutable():
    selection = parse_filter_selection(EVENTS, "filter[type]=online", RecordingLookup(), now=NOW)

    with pytest.raises(TypeError):
        selection.values["type"] = ("hybrid",)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("name", SortSpec("name", "asc")),
        ("name-desc", SortSpec("name", "desc")),
        ("startTime-asc", SortSpec("startTime", "asc")),
    ],
)
def test_parse_sort(value, expected):
    assert parse_sort(value, EVENTS) == expected


@pytest.mark.parametrize("value", ["firstName-asc", "name-up", "name-", "", "-asc"])
def test_parse_sort_rejects(value):
    with pytest.raises(InvalidSortOrPage):
        parse_sort(value, EVENTS)


@pytest.mark.parametrize(
    "value",
    ["0", "-1", "abc", "1.5", "", "\u00b2", "\u0661", "\uff13", "99999999999999999999999", "9" * 5000],
)
def test_parse_page_rejects(value):
    with pytest.raises(InvalidSortOrPage):
        parse_page(value)


def test_parse_page_accepts_positive_integer():
    assert parse_page("4") == 4
    assert parse_page(None) == 1


def test_parse_page_bounded_by_largest_take():
    largest = (2**63 - 1) // 12

    assert parse_page(str(largest), items_per_page=12) == largest
    with pytest.raises(InvalidSortOrPage):
        parse_page(str(largest + 1), items_per_page=12)
