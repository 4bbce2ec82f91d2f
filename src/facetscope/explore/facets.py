"""Facet count table and the option lists built from it."""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .filters import FilterSelection
from .models import AreaOption, FacetOption, SelectedArea, SelectedFacet, VocabularyTerm

AREA_TYPES = ("global", "country", "state", "district")


class FacetCountTable:
    """Request-scoped (dimension, slug) -> matching record count; absent means 0."""

    def __init__(self, counts: Optional[Mapping[Tuple[str, str], int]] = None) -> None:
        self._counts: Dict[Tuple[str, str], int] = dict(counts or {})

    def count(self, dimension: str, slug: str) -> int:
        return self._counts.get((dimension, slug), 0)

    def for_dimension(self, dimension: str) -> Dict[str, int]:
        return {slug: count for (dim, slug), count in self._counts.items() if dim == dimension}

    def __len__(self) -> int:
        return len(self._counts)


def build_facet_options(
    dimension: str,
    terms: Sequence[VocabularyTerm],
    table: FacetCountTable,
    selection: FilterSelection,
) -> List[FacetOption]:
    """One option per vocabulary term, in vocabulary order."""
    checked = set(selection.selected(dimension))
    return [
        FacetOption(
            slug=term.slug,
            title=term.title,
            count=table.count(dimension, term.slug),
            is_checked=term.slug in checked,
        )
        for term in terms
    ]


def build_selected_facets(
    dimension: str,
    terms: Sequence[VocabularyTerm],
    table: FacetCountTable,
    selection: FilterSelection,
) -> List[SelectedFacet]:
    """Selected values resolved to display titles, in request order."""
    titles = {term.slug: term.title for term in terms}
    return [
        SelectedFacet(slug=slug, title=titles[slug], count=table.count(dimension, slug))
        for slug in selection.selected(dimension)
        if slug in titles
    ]


def build_area_options(
    dimension: str,
    search_results: Iterable[VocabularyTerm],
    table: FacetCountTable,
    selection: FilterSelection,
) -> Dict[str, List[AreaOption]]:
    """Area search results grouped by area_type (global, country, state, district first)."""
    checked = set(selection.selected(dimension))
    grouped: Dict[str, List[AreaOption]] = {area_type: [] for area_type in AREA_TYPES}
    for term in search_results:
        area_type = term.area_type or "global"
        grouped.setdefault(area_type, []).append(
            AreaOption(
                slug=term.slug,
                title=term.title,
                area_type=term.area_type,
                count=table.count(dimension, term.slug),
                is_checked=term.slug in checked,
            )
        )
    return grouped


def build_selected_areas(
    dimension: str,
    terms: Sequence[VocabularyTerm],
    search_results: Iterable[VocabularyTerm],
    table: FacetCountTable,
    selection: FilterSelection,
) -> List[SelectedArea]:
    titles = {term.slug: term.title for term in terms}
    in_results = {term.slug for term in search_results}
    return [
        SelectedArea(
            slug=slug,
            title=titles[slug],
            count=table.count(dimension, slug),
            is_in_search_results=slug in in_results,
        )
        for slug in selection.selected(dimension)
        if slug in titles
    ]
