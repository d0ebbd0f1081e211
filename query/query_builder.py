"""
Product query generation for the Catalog Admin Console.

This module turns the listing selections (filters, sort, page) into the
canonical Query snapshot and the request mapping sent to the transport.
Everything here is pure: no I/O and no hidden state, so identical selections
always produce equal queries.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .state.models import FilterState, PageState, QueryParams, SortField, SortOrder, SortSpec


@dataclass(frozen=True)
class Query:
    """
    Immutable snapshot of a product listing request.

    Equality is structural, which is what the controller relies on to skip
    fetching a query it has already issued.
    """
    filters: FilterState
    sort: Optional[SortSpec]
    pagination: PageState

    def to_params(self) -> QueryParams:
        """
        Render the request mapping.

        Empty filter sets are left out entirely (the backend reads a missing key
        as "no constraint"). Ids are sorted so the mapping is deterministic.
        """
        params: QueryParams = {}

        if self.filters.brand_ids:
            params['brand'] = sorted(self.filters.brand_ids)

        if self.filters.category_ids:
            params['category'] = sorted(self.filters.category_ids)

        if self.sort is not None:
            params['sort'] = {'sort': self.sort.field.value, 'order': self.sort.order.value}

        params['pagination'] = {
            'page': self.pagination.page_number,
            'limit': self.pagination.page_size,
        }
        return params


def build_query(filters: FilterState, sort: Optional[SortSpec], pagination: PageState) -> Query:
    """
    Build the canonical query for the given selections.

    Args:
        filters: Selected brand and category ids
        sort: Active sort, or None for the backend's default order
        pagination: Requested page

    Returns:
        Query snapshot
    """
    return Query(filters=filters, sort=sort, pagination=pagination)


# Sort options offered by the listing

@dataclass(frozen=True)
class SortOption:
    name: str
    spec: SortSpec


SORT_OPTIONS: Tuple[SortOption, ...] = (
    SortOption("Price: low to high", SortSpec(SortField.PRICE, SortOrder.ASC)),
    SortOption("Price: high to low", SortSpec(SortField.PRICE, SortOrder.DESC)),
)


def sort_option(name: str) -> Optional[SortSpec]:
    """Look up a sort option by its label (case-insensitive); None if unknown."""
    for option in SORT_OPTIONS:
        if option.name.lower() == name.strip().lower():
            return option.spec
    return None


# Pagination math

def page_count(total_count: int, page_size: int) -> int:
    """Number of pages needed to show total_count items."""
    if total_count <= 0:
        return 0
    return math.ceil(total_count / page_size)


def page_bounds(page_number: int, page_size: int, total_count: int) -> Tuple[int, int]:
    """
    1-based inclusive item numbers shown on a page.

    Page 3 of 23 items at 10 per page is (21, 23). An empty result or a page
    past the end gives (0, 0).
    """
    first = (page_number - 1) * page_size + 1
    if total_count <= 0 or first > total_count:
        return 0, 0
    return first, min(page_number * page_size, total_count)


def clamp_page(page_number: int, total_count: int, page_size: int) -> int:
    """Clamp a page number into the range allowed by the last known total."""
    return max(1, min(page_number, max(page_count(total_count, page_size), 1)))
