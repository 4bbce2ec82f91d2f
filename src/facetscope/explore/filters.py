"""Parse untrusted explore query strings into a FilterSelection.

This is the single vocabulary gate: every selected slug is checked against
its dimension's current vocabulary before any count or page query runs.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl

from ..utils.logging import get_logger
from ..utils.time import utc_now
from .entities import SORT_DIRECTIONS, EntityConfig
from .errors import InvalidFilterValue, InvalidSortOrPage
from .time_windows import DEFAULT_PERIOD, TimeWindow, resolve_time_window

logger = get_logger(__name__)

FILTER_KEY = re.compile(r"^filter\[([A-Za-z]+)\]$")
PAGE_NUMBER = re.compile(r"[0-9]+")
MAX_TAKE = 2**63 - 1

RawParams = Union[str, Iterable[Tuple[str, str]]]
SlugLookup = Callable[[str], Iterable[str]]


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: str = "asc"

    def __str__(self) -> str:
        return f"{self.field}-{self.direction}"


@dataclass(frozen=True)
class FilterSelection:
    """Validated, immutable filter state for one explore request."""
    entity_type: str
    sort: SortSpec
    page: int = 1
    items_per_page: int = 12
    values: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    period: Optional[TimeWindow] = None
    search: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def selected(self, dimension: str) -> Tuple[str, ...]:
        return self.values.get(dimension, ())

    @property
    def constrained_dimensions(self) -> Tuple[str, ...]:
        return tuple(key for key, slugs in self.values.items() if slugs)


def parse_query_string(raw_params: RawParams) -> List[Tuple[str, str]]:
    """Normalize a query string or (key, value) pairs into a list of pairs."""
    if isinstance(raw_params, str):
        return parse_qsl(raw_params.lstrip("?"), keep_blank_values=True)
    return [(str(key), str(value)) for key, value in raw_params]


def parse_sort(value: Optional[str], config: EntityConfig) -> SortSpec:
    """
    Parse ``<field>-<direction>``; a bare field sorts ascending.

    Raises:
        InvalidSortOrPage: If the field is not sortable or the direction unknown
    """
    raw = config.default_sort if value is None else value
    sort_field, separator, direction = raw.partition("-")
    if not separator:
        direction = "asc"
    if sort_field not in config.sort_fields or direction not in SORT_DIRECTIONS:
        raise InvalidSortOrPage("sortBy", raw)
    return SortSpec(sort_field, direction)


def parse_page(value: Optional[str], items_per_page: int = 1) -> int:
    """
    Parse a positive page number, defaulting to 1.

    The page is bounded so that ``items_per_page * page`` still fits a
    64-bit SQL LIMIT.

    Raises:
        InvalidSortOrPage: Not ASCII digits, zero, or past the bound
    """
    if value is None:
        return 1
    text = value.strip()
    if not PAGE_NUMBER.fullmatch(text) or len(text) > len(str(MAX_TAKE)):
        raise InvalidSortOrPage("page", value)
    page = int(text)
    if page < 1 or page > MAX_TAKE // items_per_page:
        raise InvalidSortOrPage("page", value)
    return page


def _dedupe(values: Sequence[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def parse_filter_selection(
    config: EntityConfig,
    raw_params: RawParams,
    lookup_slugs: SlugLookup,
    now: Optional[datetime] = None,
) -> FilterSelection:
    """
    Validate query parameters for an entity type.

    Vocabularies are looked up lazily, only for dimensions present in the
    request. Unknown dimensions and unrelated keys are ignored.

    Args:
        config: Entity configuration
        raw_params: Query string or (key, value) pairs
        lookup_slugs: Returns the current slugs of a vocabulary
        now: Anchor for time windows (defaults to current UTC time)

    Returns:
        FilterSelection

    Raises:
        InvalidFilterValue: Empty or unknown slug, or unknown time window
        InvalidSortOrPage: Bad sortBy or page
    """
    requested: Dict[str, List[str]] = {}
    scalars: Dict[str, str] = {}
    for key, value in parse_query_string(raw_params):
        match = FILTER_KEY.match(key)
        if match:
            requested.setdefault(match.group(1), []).append(value)
        elif key in ("sortBy", "page", "search"):
            scalars[key] = value

    values: Dict[str, Tuple[str, ...]] = {}
    for dimension in config.multi_dimensions:
        raw = requested.get(dimension.key)
        if not raw:
            continue
        slugs = _dedupe(raw)
        for slug in slugs:
            if not slug.strip():
                logger.warning("Rejected empty filter[%s] for %s", dimension.key, config.entity_type)
                raise InvalidFilterValue(dimension.key, slug, "empty value")
        vocabulary = set(lookup_slugs(dimension.vocabulary))
        unknown = [slug for slug in slugs if slug not in vocabulary]
        if unknown:
            logger.warning(
                "Rejected filter[%s]=%r for %s: not in vocabulary %s",
                dimension.key,
                unknown[0],
                config.entity_type,
                dimension.vocabulary,
            )
            raise InvalidFilterValue(dimension.key, unknown[0])
        values[dimension.key] = slugs

    period = None
    range_dimension = config.range_dimension
    if range_dimension is not None:
        raw = requested.get(range_dimension.key)
        period_name = raw[-1] if raw else DEFAULT_PERIOD
        period = resolve_time_window(period_name, now or utc_now())

    search = (scalars.get("search") or "").strip() or None

    selection = FilterSelection(
        entity_type=config.entity_type,
        sort=parse_sort(scalars.get("sortBy"), config),
        page=parse_page(scalars.get("page"), config.items_per_page),
        items_per_page=config.items_per_page,
        values=values,
        period=period,
        search=search,
    )
    logger.debug(
        "Parsed %s selection: values=%s period=%s sort=%s page=%d",
        config.entity_type,
        dict(selection.values),
        period.period if period else None,
        selection.sort,
        selection.page,
    )
    return selection
