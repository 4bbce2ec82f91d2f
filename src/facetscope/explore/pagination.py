"""Page/take accumulation for explore listings."""

from typing import List

from .entities import EntityConfig
from .filters import FilterSelection, SortSpec
from .models import ExploreItem, ResultPage


def take_for(selection: FilterSelection) -> int:
    """Listings load every page up to the requested one, always from offset 0."""
    return selection.items_per_page * selection.page


def effective_sort(selection: FilterSelection, config: EntityConfig) -> SortSpec:
    """Sorting by the time window's column in the past window is always newest first."""
    sort = selection.sort
    range_dimension = config.range_dimension
    if (
        range_dimension is not None
        and selection.period is not None
        and selection.period.period == "past"
        and config.sort_fields[sort.field] == range_dimension.column
    ):
        return SortSpec(sort.field, "desc")
    return sort


def build_result_page(items: List[ExploreItem], selection: FilterSelection, total: int) -> ResultPage:
    return ResultPage(
        items=items,
        page_number=selection.page,
        items_per_page=selection.items_per_page,
        total_matching_count=total,
    )
