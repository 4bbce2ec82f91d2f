"""Explore API: canonical query surface for explore listings."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from ..database.explore_repo import count_facets, count_matching, fetch_page
from ..database.facet_index_repo import list_vocabulary, search_areas
from ..explore.enhancers import ANONYMOUS, PassthroughEnhancer, ResultEnhancer, Viewer
from ..explore.entities import AREA_DIMENSION, get_entity_config
from ..explore.facets import (
    FacetCountTable,
    build_area_options,
    build_facet_options,
    build_selected_areas,
    build_selected_facets,
)
from ..explore.filters import RawParams, parse_filter_selection
from ..explore.models import ExploreResponse, FacetOption, SelectedFacet, VocabularyTerm
from ..explore.pagination import build_result_page, effective_sort, take_for
from ..explore.predicates import build_hidden_predicate, build_predicate
from ..explore.visibility import apply_visibility
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = get_logger(__name__)


class _VocabularyCache:
    """Request-scoped vocabulary lookups; each vocabulary is read at most once."""

    def __init__(self, session: "Session") -> None:
        self._session = session
        self._terms: Dict[str, List[VocabularyTerm]] = {}

    def terms(self, vocabulary: str) -> List[VocabularyTerm]:
        if vocabulary not in self._terms:
            self._terms[vocabulary] = list_vocabulary(self._session, vocabulary)
        return self._terms[vocabulary]

    def slugs(self, vocabulary: str) -> List[str]:
        return [term.slug for term in self.terms(vocabulary)]


def explore(
    session: "Session",
    entity_type: str,
    query: RawParams,
    viewer: Viewer = ANONYMOUS,
    *,
    now: Optional[datetime] = None,
    settings: Optional[Mapping[str, Mapping[str, Any]]] = None,
    enhancer: Optional[ResultEnhancer] = None,
) -> ExploreResponse:
    """
    Run one explore request: validate, count, page, redact, enhance.

    All queries run sequentially on ``session``. Filter validation completes
    before any count or page query is issued.

    Args:
        session: SQLAlchemy session; all queries share its transaction snapshot
        entity_type: events, profiles, organizations or projects
        query: Query string or (key, value) pairs
        viewer: Resolved viewer; anonymous by default
        now: Anchor for time windows (default: current UTC time)
        settings: Per-entity overrides from config.loader.get_explore_settings
        enhancer: ResultEnhancer applied to redacted items

    Returns:
        ExploreResponse

    Raises:
        UnknownEntityType: Unregistered entity type
        InvalidFilterValue: Unknown or empty slug, or unknown time window
        InvalidSortOrPage: Bad sortBy or page
        StoreUnavailable: The store failed (including vocabulary lookups)
    """
    config = get_entity_config(entity_type, settings)
    vocabulary = _VocabularyCache(session)
    selection = parse_filter_selection(config, query, vocabulary.slugs, now=now)

    visibility_required = not viewer.is_authenticated
    predicate = build_predicate(selection, config, visibility_required)

    total = count_matching(session, config, predicate)
    table = FacetCountTable(count_facets(session, config, predicate, visibility_required))
    rows = fetch_page(session, config, predicate, effective_sort(selection, config), take_for(selection))

    items = [apply_visibility(config.project(row), viewer.is_authenticated) for row in rows]
    items = (enhancer or PassthroughEnhancer()).enhance(items, viewer)

    hidden = 0
    if visibility_required:
        hidden_predicate = build_hidden_predicate(selection, config)
        if hidden_predicate is not None:
            hidden = count_matching(session, config, hidden_predicate)

    facets: Dict[str, List[FacetOption]] = {}
    selected: Dict[str, List[SelectedFacet]] = {}
    for dimension in config.multi_dimensions:
        if dimension.key == AREA_DIMENSION:
            continue
        terms = vocabulary.terms(dimension.vocabulary)
        facets[dimension.key] = build_facet_options(dimension.key, terms, table, selection)
        selected[dimension.key] = build_selected_facets(dimension.key, terms, table, selection)

    area_dimension = config.dimension(AREA_DIMENSION)
    areas = {}
    selected_areas = []
    if area_dimension is not None:
        found = search_areas(session, selection.search)
        areas = build_area_options(AREA_DIMENSION, found, table, selection)
        if selection.selected(AREA_DIMENSION):
            selected_areas = build_selected_areas(
                AREA_DIMENSION,
                vocabulary.terms(area_dimension.vocabulary),
                found,
                table,
                selection,
            )

    logger.debug(
        "Explore %s: total=%d returned=%d hidden=%d logged_in=%s",
        entity_type,
        total,
        len(items),
        hidden,
        viewer.is_authenticated,
    )
    return ExploreResponse(
        entity_type=config.entity_type,
        is_logged_in=viewer.is_authenticated,
        result=build_result_page(items, selection, total),
        hidden_by_visibility_count=hidden,
        facets=facets,
        selected=selected,
        areas=areas,
        selected_areas=selected_areas,
        period_of_time=selection.period.period if selection.period else None,
        sort_by=str(selection.sort),
        search=selection.search,
    )
