"""Compile explore predicate trees into parameterized SQLAlchemy clauses."""

from typing import TYPE_CHECKING

from sqlalchemy import and_, not_, or_, select
from sqlalchemy.sql.elements import ColumnElement

from ..explore.predicates import AnyOf, And, FieldVisible, Not, Or, Predicate, Published, TimeRange
from ..utils.time import to_naive_utc
from .schema import FacetIndexEntry

if TYPE_CHECKING:
    from ..explore.entities import EntityConfig


def visibility_column(config: "EntityConfig", field: str):
    columns = config.visibility_model.__table__.c
    if field not in columns:
        raise ValueError(f"{config.entity_type}: no visibility flag {field!r}")
    return columns[field]


def visibility_key_column(config: "EntityConfig"):
    return list(config.visibility_model.__table__.primary_key.columns)[0]


def tagged_ids(config: "EntityConfig", dimension: str, slugs):
    """Subquery of record ids tagged with any of ``slugs`` in ``dimension``."""
    return select(FacetIndexEntry.entity_id).where(
        FacetIndexEntry.entity_type == config.entity_type,
        FacetIndexEntry.dimension == dimension,
        FacetIndexEntry.slug.in_(list(slugs)),
    )


def compile_predicate(predicate: Predicate, config: "EntityConfig") -> ColumnElement:
    """
    Translate a predicate tree into a WHERE clause over ``config.model``.

    All values are bound parameters. A record without a visibility row fails
    every FieldVisible check.

    Raises:
        ValueError: If a node references an unknown field or is not a predicate
    """
    model = config.model
    if isinstance(predicate, AnyOf):
        return model.id.in_(tagged_ids(config, predicate.dimension, predicate.slugs))
    if isinstance(predicate, TimeRange):
        columns = model.__table__.c
        if predicate.field not in columns:
            raise ValueError(f"{config.entity_type}: unknown time column {predicate.field!r}")
        column = columns[predicate.field]
        clauses = []
        if predicate.start is not None:
            clauses.append(column >= to_naive_utc(predicate.start))
        if predicate.end is not None:
            end = to_naive_utc(predicate.end)
            clauses.append(column <= end if predicate.end_inclusive else column < end)
        return and_(*clauses) if clauses else column.is_not(None)
    if isinstance(predicate, Published):
        return model.published.is_(True)
    if isinstance(predicate, FieldVisible):
        return model.visibility.has(visibility_column(config, predicate.field).is_(True))
    if isinstance(predicate, Not):
        return not_(compile_predicate(predicate.operand, config))
    if isinstance(predicate, And):
        return and_(*(compile_predicate(p, config) for p in predicate.operands))
    if isinstance(predicate, Or):
        return or_(*(compile_predicate(p, config) for p in predicate.operands))
    raise ValueError(f"Unsupported predicate: {predicate!r}")
