"""
Asynchronous resource slices.

A slice holds one resource's data together with its lifecycle status
(idle, loading, succeeded, failed) and last error. Slices only change through
their transition methods; each fetch gets a request token and only the most
recently issued token may resolve, so a slow early response can never
overwrite a newer one.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, Tuple, TypeVar

from core.exceptions import TransportError
from query.query_builder import Query
from query.state.models import Id, Product, ProductPage, ResourceState, ResourceStatus

# Configure logging
logger = logging.getLogger(__name__)

T = TypeVar('T')


def _frozen(payload: Any) -> Any:
    # Lists are stored as tuples so the data handed to readers is read-only
    return tuple(payload) if isinstance(payload, list) else payload


class ResourceSlice(Generic[T]):
    """Lifecycle state of a single asynchronous resource."""

    def __init__(self, name: str, initial_data: T, timeout_seconds: Optional[float] = None):
        self.name = name
        self.timeout_seconds = timeout_seconds
        self._state: ResourceState[T] = ResourceState(data=_frozen(initial_data))
        self._latest_token = 0

    @property
    def state(self) -> ResourceState[T]:
        return self._state

    @property
    def status(self) -> ResourceStatus:
        return self._state.status

    @property
    def data(self) -> T:
        return self._state.data

    @property
    def error(self) -> Optional[Exception]:
        return self._state.error

    @property
    def is_loading(self) -> bool:
        return self._state.status == ResourceStatus.LOADING

    def is_current(self, token: int) -> bool:
        """Whether token belongs to the most recently issued request"""
        return token == self._latest_token

    def fetch_begin(self) -> int:
        """
        Start a request and return its token.

        Previous data stays available while loading; only the error is cleared.
        """
        self._latest_token += 1
        self._state = dataclasses.replace(self._state, status=ResourceStatus.LOADING, error=None)
        logger.debug(f"{self.name}: request {self._latest_token} started")
        return self._latest_token

    def fetch_succeeded(self, token: int, payload: Any) -> bool:
        """Apply a payload if token is still current. Returns whether it was applied."""
        if not self.is_current(token):
            logger.debug(f"{self.name}: discarding result of superseded request {token}")
            return False
        self._state = ResourceState(data=self._apply(payload), status=ResourceStatus.SUCCEEDED)
        logger.debug(f"{self.name}: request {token} succeeded")
        return True

    def fetch_failed(self, token: int, error: Exception) -> bool:
        """Record a failure if token is still current; data is left untouched."""
        if not self.is_current(token):
            logger.debug(f"{self.name}: discarding failure of superseded request {token}")
            return False
        self._state = dataclasses.replace(self._state, status=ResourceStatus.FAILED, error=error)
        logger.warning(f"{self.name}: request {token} failed: {error}")
        return True

    def _apply(self, payload: Any) -> T:
        """Turn a fetched payload into the data the slice holds"""
        return _frozen(payload)

    async def load(self, fetcher: Callable[..., Awaitable[Any]], *args: Any) -> bool:
        """
        Run one fetch through the full lifecycle.

        Args:
            fetcher: Transport coroutine function
            *args: Arguments passed to fetcher

        Returns:
            True if the outcome was applied, False if a newer request superseded it
        """
        return await self._run(self.fetch_begin(), fetcher, *args)

    async def _run(self, token: int, fetcher: Callable[..., Awaitable[Any]], *args: Any) -> bool:
        operation = f"{self.name}.fetch"
        try:
            if self.timeout_seconds:
                payload = await asyncio.wait_for(fetcher(*args), self.timeout_seconds)
            else:
                payload = await fetcher(*args)
        except asyncio.TimeoutError:
            error = TransportError(
                f"{self.name} request timed out after {self.timeout_seconds}s",
                operation=operation
            )
            return self.fetch_failed(token, error)
        except TransportError as e:
            return self.fetch_failed(token, e)
        except Exception as e:
            logger.exception(f"{self.name}: unexpected error in request {token}")
            error = TransportError(f"{self.name} request failed: {e!r}", operation=operation)
            error.__cause__ = e
            return self.fetch_failed(token, error)
        return self.fetch_succeeded(token, payload)


class ProductsSlice(ResourceSlice[Tuple[Product, ...]]):
    """
    Products slice: the current page of products plus its total match count.

    Also carries the filter panel flag, which the view toggles independently
    of the query.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        super().__init__('products', (), timeout_seconds)
        self.total_count = 0
        self.is_filter_open = False
        # Query that produced the data currently held
        self.query: Optional[Query] = None
        self._requested_query: Optional[Query] = None

    def _apply(self, payload: ProductPage) -> Tuple[Product, ...]:
        self.total_count = payload.total_count
        self.query = self._requested_query
        return tuple(payload.items)

    async def load_page(self, fetch_products: Callable[[Query], Awaitable[ProductPage]], query: Query) -> bool:
        """Fetch the page described by query"""
        token = self.fetch_begin()
        # Only the latest token can apply, so only the latest query needs keeping
        self._requested_query = query
        return await self._run(token, fetch_products, query)

    def toggle_filters(self) -> bool:
        self.is_filter_open = not self.is_filter_open
        return self.is_filter_open

    def find(self, product_id: Id) -> Optional[Product]:
        for product in self._state.data:
            if product.id == product_id:
                return product
        return None

    def patch_deleted_flag(self, product_id: Id, is_deleted: bool) -> bool:
        """
        Set is_deleted on a locally held product.

        This targeted single-field patch is the only write to the slice outside
        the fetch transitions; it exists so a confirmed soft delete or restore
        shows without refetching the page. Returns False if the product is not
        on the current page.
        """
        items = list(self._state.data)
        for index, product in enumerate(items):
            if product.id == product_id:
                items[index] = dataclasses.replace(product, is_deleted=is_deleted)
                self._state = dataclasses.replace(self._state, data=tuple(items))
                logger.debug(f"products: patched {product_id} is_deleted={is_deleted}")
                return True
        return False
