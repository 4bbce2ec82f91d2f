"""Repository functions for facet vocabularies and the facet index."""

from typing import TYPE_CHECKING, Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from ..explore.errors import VocabularyLookupFailed
from ..explore.models import VocabularyTerm
from ..utils.logging import get_logger
from .explore_repo import store_errors
from .schema import FacetIndexEntry, FacetTerm

if TYPE_CHECKING:
    from ..explore.entities import EntityConfig

logger = get_logger(__name__)

AREA_VOCABULARY = "area"


def _to_vocabulary_term(row: FacetTerm) -> VocabularyTerm:
    return VocabularyTerm(slug=row.slug, title=row.title, area_type=row.area_type)


def list_vocabulary(session: Session, vocabulary: str) -> List[VocabularyTerm]:
    """
    Load every term of a vocabulary, ordered by title.

    Raises:
        VocabularyLookupFailed: If the store cannot be read
    """
    with store_errors(f"vocabulary lookup ({vocabulary})", VocabularyLookupFailed):
        rows = (
            session.query(FacetTerm)
            .filter(FacetTerm.vocabulary == vocabulary)
            .order_by(FacetTerm.title.asc(), FacetTerm.slug.asc())
            .all()
        )
    return [_to_vocabulary_term(row) for row in rows]


def list_vocabulary_slugs(session: Session, vocabulary: str) -> List[str]:
    return [term.slug for term in list_vocabulary(session, vocabulary)]


def search_areas(session: Session, search: Optional[str]) -> List[VocabularyTerm]:
    """
    Area terms whose title contains ``search`` (case-insensitive).

    Matching is a substring test after Unicode case folding; SQLite's
    lower() only folds ASCII. An empty search returns every area.
    """
    with store_errors("area search", VocabularyLookupFailed):
        rows = (
            session.query(FacetTerm)
            .filter(FacetTerm.vocabulary == AREA_VOCABULARY)
            .order_by(FacetTerm.title.asc(), FacetTerm.slug.asc())
            .all()
        )
    if search:
        needle = search.casefold()
        rows = [row for row in rows if needle in row.title.casefold()]
    return [_to_vocabulary_term(row) for row in rows]


def rebuild_facet_index(
    session: Session,
    config: "EntityConfig",
    entity_ids: Optional[Iterable[str]] = None,
) -> int:
    """
    Rewrite facet_index rows for an entity type from its term relations.

    Terms from vocabularies that are not a multi-valued dimension of the
    entity type are skipped. Flushes but does not commit.

    Args:
        session: SQLAlchemy session
        config: Entity configuration
        entity_ids: Limit the rebuild to these records (default: all)

    Returns:
        Number of index entries written
    """
    dimension_by_vocabulary = {d.vocabulary: d.key for d in config.multi_dimensions}
    ids = list(entity_ids) if entity_ids is not None else None
    written = 0
    records = 0
    with store_errors(f"{config.entity_type} facet index rebuild"):
        stale = session.query(FacetIndexEntry).filter(FacetIndexEntry.entity_type == config.entity_type)
        rows_query = session.query(config.model).options(selectinload(config.model.terms))
        if ids is not None:
            stale = stale.filter(FacetIndexEntry.entity_id.in_(ids))
            rows_query = rows_query.filter(config.model.id.in_(ids))
        stale.delete(synchronize_session="fetch")

        for row in rows_query.order_by(config.model.id).all():
            records += 1
            for term in row.terms:
                dimension = dimension_by_vocabulary.get(term.vocabulary)
                if dimension is None:
                    continue
                session.add(
                    FacetIndexEntry(
                        entity_type=config.entity_type,
                        entity_id=row.id,
                        dimension=dimension,
                        slug=term.slug,
                    )
                )
                written += 1
        session.flush()

    logger.info(
        "Rebuilt facet index for %s: %d entries across %d records",
        config.entity_type,
        written,
        records,
    )
    return written
