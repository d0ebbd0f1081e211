"""
Selectors - read-only views of an admin session for the view layer.

The view never reads slices or the controller directly; it renders from these
derived values.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from query.query_builder import page_bounds, page_count
from query.state.models import Brand, Category, FilterState, PageState, Product, ResourceStatus, SortSpec
from resource_slices import ResourceSlice

if TYPE_CHECKING:
    from session_manager import AdminSession


@dataclass(frozen=True)
class ResourceFlags:
    """Status of one resource as the view needs it."""
    status: ResourceStatus
    is_loading: bool
    error: Optional[str]


@dataclass(frozen=True)
class ListingView:
    """Everything needed to render the admin product listing."""
    products: List[Product]
    total_results: int
    page_count: int
    showing: Tuple[int, int]
    filters: FilterState
    sort: Optional[SortSpec]
    page: PageState
    is_filter_open: bool
    products_flags: ResourceFlags
    brands_flags: ResourceFlags
    categories_flags: ResourceFlags
    brands: List[Brand]
    categories: List[Category]


def select_resource_flags(resource: ResourceSlice) -> ResourceFlags:
    error = resource.error
    return ResourceFlags(
        status=resource.status,
        is_loading=resource.is_loading,
        error=str(error) if error is not None else None,
    )


def select_products(session: 'AdminSession') -> List[Product]:
    return list(session.products.data)


def select_total_results(session: 'AdminSession') -> int:
    return session.products.total_count


def _displayed_page(session: 'AdminSession') -> PageState:
    # While a new page loads, the range should describe the rows still shown
    query = session.products.query
    return query.pagination if query is not None else session.controller.page


def select_page_count(session: 'AdminSession') -> int:
    return page_count(session.products.total_count, session.controller.page.page_size)


def select_showing_range(session: 'AdminSession') -> Tuple[int, int]:
    page = _displayed_page(session)
    return page_bounds(page.page_number, page.page_size, session.products.total_count)


def select_showing_text(session: 'AdminSession') -> str:
    first, last = select_showing_range(session)
    return f"Showing {first} to {last} of {session.products.total_count} results"


def select_listing_view(session: 'AdminSession') -> ListingView:
    """Snapshot of the whole listing."""
    controller = session.controller
    return ListingView(
        products=select_products(session),
        total_results=select_total_results(session),
        page_count=select_page_count(session),
        showing=select_showing_range(session),
        filters=controller.filters,
        sort=controller.sort,
        page=controller.page,
        is_filter_open=session.products.is_filter_open,
        products_flags=select_resource_flags(session.products),
        brands_flags=select_resource_flags(session.brands),
        categories_flags=select_resource_flags(session.categories),
        brands=list(session.brands.data),
        categories=list(session.categories.data),
    )
