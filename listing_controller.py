"""
ListingController - owner of the product listing's filter, sort and page state.

Every intent from the view (toggle a brand, change the sort, go to a page)
goes through the controller. The controller rebuilds the canonical query and
asks the products slice to fetch it, following one explicit rule:

    on state change -> recompute query -> fetch only if it differs from the
    last issued query

Changes made in the same event-loop tick are coalesced: they schedule a single
flush, so a burst of intents costs one request for the final state.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set, Union

from core.config import ListingConfig
from core.exceptions import ValidationError
from query.query_builder import Query, build_query
from query.state.models import FilterState, Id, PageState, SortSpec
from resource_slices import ProductsSlice
from transport import ProductTransport

# Configure logging
logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _require_id(value: Any, name: str) -> Id:
    if value is None or str(value).strip() == '':
        raise ValidationError(f"{name} cannot be empty", field=name)
    return str(value)


class ListingController:
    """Filter/sort/pagination state controller for the product listing."""

    def __init__(self, products: ProductsSlice, transport: ProductTransport,
                 config: Optional[ListingConfig] = None):
        self.config = config or ListingConfig()
        self.products = products
        self.transport = transport

        self._filters = FilterState()
        self._sort: Optional[SortSpec] = None
        self._page = PageState(page_number=1, page_size=self.config.page_size)

        # Nothing has been fetched yet, so the initial state is pending
        self._dirty = True
        self._last_issued: Optional[Query] = None
        self._flush_handle: Optional[asyncio.Handle] = None
        self._inflight: Set[asyncio.Task] = set()

    # Current state

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def sort(self) -> Optional[SortSpec]:
        return self._sort

    @property
    def page(self) -> PageState:
        return self._page

    @property
    def last_issued_query(self) -> Optional[Query]:
        return self._last_issued

    @property
    def has_pending_changes(self) -> bool:
        return self._dirty

    def current_query(self) -> Query:
        return build_query(self._filters, self._sort, self._page)

    # Intents

    def toggle_brand(self, brand_id: Id) -> None:
        brand_id = _require_id(brand_id, 'brand_id')
        self._update(filters=self._filters.toggled_brand(brand_id))

    def toggle_category(self, category_id: Id) -> None:
        category_id = _require_id(category_id, 'category_id')
        self._update(filters=self._filters.toggled_category(category_id))

    def set_category_exclusive(self, category_id: Id) -> None:
        """Replace the category selection with a single category."""
        category_id = _require_id(category_id, 'category_id')
        self._update(filters=self._filters.with_exclusive_category(category_id))

    def reset_filters(self) -> None:
        self._update(filters=self._filters.cleared())

    def set_sort(self, sort: Union[SortSpec, Dict[str, Any], None]) -> None:
        """
        Replace the active sort.

        Args:
            sort: SortSpec, a {'sort'|'field', 'order'} mapping, or None to clear

        Raises:
            ValidationError: If the sort field or order is not supported
        """
        if isinstance(sort, dict):
            sort = SortSpec.from_dict(sort)
        elif sort is not None and not isinstance(sort, SortSpec):
            raise ValidationError("Sort must be a SortSpec, a mapping or None", field='sort', value=sort)
        self._update(sort=sort)

    def set_page(self, page_number: int) -> None:
        """
        Go to a page.

        Pages past the last known total are accepted; the caller clamps using
        the total from the products slice if it wants to.

        Raises:
            ValidationError: If page_number is not an integer >= 1
        """
        self._update(page=self._page.with_page(page_number))

    def _update(self, filters: Optional[FilterState] = None, sort: Any = _UNSET,
                page: Optional[PageState] = None) -> None:
        selection_changed = False

        if filters is not None and filters != self._filters:
            self._filters = filters
            selection_changed = True

        if sort is not _UNSET and sort != self._sort:
            self._sort = sort
            selection_changed = True

        if page is not None:
            new_page = page
        elif selection_changed and self.config.reset_page_on_filter_change:
            # A new selection can have fewer pages than the current page number
            new_page = self._page.with_page(1)
        else:
            new_page = self._page

        page_changed = new_page != self._page
        self._page = new_page

        if selection_changed or page_changed:
            self._invalidate()

    # Fetch scheduling

    def _invalidate(self) -> None:
        self._dirty = True
        if self._flush_handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; change will be fetched on the next flush")
            return
        self._flush_handle = loop.call_soon(self.flush)

    def flush(self) -> Optional[asyncio.Task]:
        """
        Issue the fetch for pending changes now.

        Must be called with a running event loop.

        Returns:
            The fetch task, or None if nothing changed since the last fetch
        """
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

        if not self._dirty:
            return None
        self._dirty = False

        query = self.current_query()
        if query == self._last_issued:
            logger.debug("Listing query unchanged since last fetch, skipping")
            return None
        return self._issue(query)

    def _issue(self, query: Query) -> asyncio.Task:
        self._last_issued = query
        logger.info(f"Fetching products with {query.to_params()}")

        task = asyncio.get_running_loop().create_task(
            self.products.load_page(self.transport.fetch_products, query)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def settle(self) -> None:
        """Flush pending changes and wait until no fetch is in flight."""
        self.flush()
        while self._inflight:
            await asyncio.gather(*list(self._inflight))

    async def refresh(self) -> bool:
        """
        Fetch the current query again even if it has not changed.

        Returns:
            True if the result was applied to the products slice
        """
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        self._dirty = False
        return await self._issue(self.current_query())

    def close(self) -> None:
        """Drop any scheduled flush; in-flight fetches are left to resolve."""
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
