"""Repository functions for explore counts and page fetches."""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, List, Tuple

from sqlalchemy import and_, distinct, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..explore.errors import StoreUnavailable
from ..explore.filters import SortSpec
from ..explore.predicates import Predicate
from ..utils.logging import get_logger
from .predicate_sql import compile_predicate, visibility_column, visibility_key_column
from .schema import FacetIndexEntry, Organization

if TYPE_CHECKING:
    from ..explore.entities import EntityConfig

logger = get_logger(__name__)


@contextmanager
def store_errors(operation: str, error_cls: type = StoreUnavailable) -> Iterator[None]:
    """Re-raise driver errors as ``error_cls`` with the original as __cause__."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store failure during %s", operation, exc_info=True)
        raise error_cls(f"{operation} failed: {exc.__class__.__name__}") from exc


def count_matching(session: Session, config: "EntityConfig", predicate: Predicate) -> int:
    """Count records of the entity type matching ``predicate``."""
    clause = compile_predicate(predicate, config)
    with store_errors(f"{config.entity_type} count"):
        total = session.query(func.count(config.model.id)).filter(clause).scalar()
    return int(total or 0)


def count_facets(
    session: Session,
    config: "EntityConfig",
    predicate: Predicate,
    visibility_required: bool,
) -> Dict[Tuple[str, str], int]:
    """
    Count matching records per (dimension, slug) in one aggregation query.

    Args:
        session: SQLAlchemy session
        config: Entity configuration
        predicate: Active predicate (same as for results)
        visibility_required: For anonymous viewers a record only counts under
            a dimension whose visibility flag is true on that record

    Returns:
        Mapping of (dimension, slug) to distinct record count
    """
    matching_ids = select(config.model.id).where(compile_predicate(predicate, config))
    query = session.query(
        FacetIndexEntry.dimension,
        FacetIndexEntry.slug,
        func.count(distinct(FacetIndexEntry.entity_id)),
    ).filter(
        FacetIndexEntry.entity_type == config.entity_type,
        FacetIndexEntry.entity_id.in_(matching_ids),
    )
    if visibility_required:
        query = query.join(
            config.visibility_model,
            visibility_key_column(config) == FacetIndexEntry.entity_id,
        ).filter(
            or_(
                *(
                    and_(
                        FacetIndexEntry.dimension == dimension.key,
                        visibility_column(config, dimension.visibility_field).is_(True),
                    )
                    for dimension in config.multi_dimensions
                )
            )
        )
    query = query.group_by(FacetIndexEntry.dimension, FacetIndexEntry.slug)
    with store_errors(f"{config.entity_type} facet count"):
        rows = query.all()
    counts = {(dimension, slug): int(count) for dimension, slug, count in rows}
    logger.debug("Counted %d facet values for %s", len(counts), config.entity_type)
    return counts


def fetch_page(
    session: Session,
    config: "EntityConfig",
    predicate: Predicate,
    sort: SortSpec,
    take: int,
) -> List:
    """
    Load the first ``take`` matching rows, ordered by the sort column then id.

    Terms, visibility and related organizations (with their visibility) are
    eager loaded so projection does not issue further queries.
    """
    model = config.model
    column = model.__table__.c[config.sort_fields[sort.field]]
    order = column.desc() if sort.direction == "desc" else column.asc()
    options = [selectinload(model.terms), selectinload(model.visibility)]
    options.extend(
        selectinload(relation).selectinload(Organization.visibility) for relation in config.related
    )
    query = (
        session.query(model)
        .filter(compile_predicate(predicate, config))
        .options(*options)
        .order_by(order, model.id.asc())
        .limit(take)
    )
    with store_errors(f"{config.entity_type} page fetch"):
        rows = query.all()
    logger.debug("Fetched %d %s rows (take=%d, sort=%s)", len(rows), config.entity_type, take, sort)
    return rows
