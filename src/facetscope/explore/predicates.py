"""Immutable predicate trees for explore queries.

Builders here are pure; database.predicate_sql compiles a tree into a
SQLAlchemy clause. The same tree drives the total count, the facet counts and
the page fetch of a request.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple, Union

from .entities import EntityConfig
from .filters import FilterSelection


@dataclass(frozen=True)
class AnyOf:
    """Record is tagged with at least one of ``slugs`` in ``dimension``."""
    dimension: str
    slugs: Tuple[str, ...]


@dataclass(frozen=True)
class TimeRange:
    field: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    end_inclusive: bool = False


@dataclass(frozen=True)
class Published:
    pass


@dataclass(frozen=True)
class FieldVisible:
    """The record's visibility flag for ``field`` is true."""
    field: str


@dataclass(frozen=True)
class Not:
    operand: "Predicate"


@dataclass(frozen=True)
class And:
    operands: Tuple["Predicate", ...]


@dataclass(frozen=True)
class Or:
    operands: Tuple["Predicate", ...]


Predicate = Union[AnyOf, TimeRange, Published, FieldVisible, Not, And, Or]


def and_(*operands: Predicate) -> Predicate:
    flat: List[Predicate] = []
    for operand in operands:
        if isinstance(operand, And):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if len(flat) == 1:
        return flat[0]
    return And(tuple(flat))


def or_(*operands: Predicate) -> Predicate:
    flat: List[Predicate] = []
    for operand in operands:
        if isinstance(operand, Or):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if len(flat) == 1:
        return flat[0]
    return Or(tuple(flat))


def filter_predicates(selection: FilterSelection, config: EntityConfig) -> List[Predicate]:
    """OR within each selected dimension, one entry per dimension, plus the time window."""
    parts: List[Predicate] = []
    for dimension in config.multi_dimensions:
        slugs = selection.selected(dimension.key)
        if slugs:
            parts.append(AnyOf(dimension.key, slugs))
    range_dimension = config.range_dimension
    if range_dimension is not None and selection.period is not None:
        window = selection.period
        parts.append(TimeRange(range_dimension.column, window.start, window.end, window.end_inclusive))
    return parts


def constrained_visibility_fields(selection: FilterSelection, config: EntityConfig) -> Tuple[str, ...]:
    """Visibility flags an anonymous viewer needs for the active constraints."""
    fields = [
        dimension.visibility_field
        for dimension in config.multi_dimensions
        if selection.selected(dimension.key)
    ]
    range_dimension = config.range_dimension
    if range_dimension is not None and selection.period is not None:
        fields.append(range_dimension.visibility_field)
    return tuple(fields)


def build_predicate(
    selection: FilterSelection,
    config: EntityConfig,
    visibility_required: bool,
) -> Predicate:
    """
    Build the predicate for results, totals and facet counts.

    Args:
        selection: Validated filter selection
        config: Entity configuration
        visibility_required: True for anonymous viewers; requires every
            constrained dimension to be publicly visible on the record

    Returns:
        Predicate tree
    """
    parts = filter_predicates(selection, config)
    parts.append(Published())
    if visibility_required:
        parts.extend(FieldVisible(f) for f in constrained_visibility_fields(selection, config))
    return and_(*parts)


def build_hidden_predicate(selection: FilterSelection, config: EntityConfig) -> Optional[Predicate]:
    """
    Records matching the filters that an anonymous viewer cannot see.

    Returns None when no dimension is constrained, since then visibility does
    not restrict the result set.
    """
    fields = constrained_visibility_fields(selection, config)
    if not fields:
        return None
    parts = filter_predicates(selection, config)
    parts.append(Published())
    parts.append(or_(*(Not(FieldVisible(f)) for f in fields)))
    return and_(*parts)
