"""
Transport implementations for the product listing.

Every resource the admin console shows is read or changed through the narrow
ProductTransport contract. Two implementations are provided: an httpx client
for the real backend and an in-memory catalog for local runs and tests.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from core.config import ApiConfig
from core.exceptions import TransportError
from query.query_builder import Query
from query.state.models import Brand, Category, Id, Product, ProductPage, QueryParams

# Configure logging
logger = logging.getLogger(__name__)

TOTAL_COUNT_HEADER = 'X-Total-Count'


class ProductTransport(ABC):
    """Abstract contract between the listing and the backend."""

    @abstractmethod
    async def fetch_products(self, query: Query) -> ProductPage:
        """Fetch one page of products matching the query"""
        pass

    @abstractmethod
    async def fetch_brands(self) -> List[Brand]:
        """Fetch every brand"""
        pass

    @abstractmethod
    async def fetch_categories(self) -> List[Category]:
        """Fetch every category"""
        pass

    @abstractmethod
    async def delete_product(self, product_id: Id) -> Optional[Product]:
        """Soft-delete a product; repeating it is a successful no-op"""
        pass

    @abstractmethod
    async def restore_product(self, product_id: Id) -> Optional[Product]:
        """Undo a soft delete; repeating it is a successful no-op"""
        pass

    async def aclose(self) -> None:
        """Release any held connections"""
        return None


def query_to_request_params(params: QueryParams) -> List[Tuple[str, Any]]:
    """
    Flatten the request mapping into query-string pairs.

    Multi-valued filters are repeated keys (brand=a&brand=b).
    """
    pairs: List[Tuple[str, Any]] = []
    pairs.extend(('brand', brand_id) for brand_id in params.get('brand', []))
    pairs.extend(('category', category_id) for category_id in params.get('category', []))

    pagination = params.get('pagination')
    if pagination:
        pairs.append(('page', pagination['page']))
        pairs.append(('limit', pagination['limit']))

    sort = params.get('sort')
    if sort:
        pairs.append(('sort', sort['sort']))
        pairs.append(('order', sort['order']))

    return pairs


class HttpProductTransport(ProductTransport):
    """
    httpx-based transport for the admin REST API.

    The client keeps cookies between calls, so a session cookie set at login
    travels with every listing request.
    """

    def __init__(self, config: Optional[ApiConfig] = None,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or ApiConfig()
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            headers={'Accept': 'application/json'},
            transport=http_transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, operation: str,
                       params: Optional[Sequence[Tuple[str, Any]]] = None) -> httpx.Response:
        logger.debug(f"{operation} {method} {path} params={params}")
        try:
            response = await self._client.request(method, path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"{operation} failed with HTTP {status}")
            raise TransportError(
                f"{operation} failed with HTTP {status}",
                operation=operation, url=str(e.request.url), status_code=status
            ) from e
        except httpx.TimeoutException as e:
            logger.warning(f"{operation} timed out")
            raise TransportError(f"{operation} timed out", operation=operation, url=path) from e
        except httpx.HTTPError as e:
            logger.warning(f"{operation} failed: {e}")
            raise TransportError(f"{operation} failed: {e}", operation=operation, url=path) from e
        return response

    @staticmethod
    def _json(response: httpx.Response, operation: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{operation} returned a body that is not JSON",
                operation=operation, url=str(response.request.url), status_code=response.status_code
            ) from e

    @staticmethod
    def _records(payload: Any, operation: str, parse) -> List[Any]:
        if not isinstance(payload, list):
            raise TransportError(f"{operation} returned {type(payload).__name__}, expected a list",
                                 operation=operation)
        for record in payload:
            if not isinstance(record, dict):
                raise TransportError(f"{operation} returned a {type(record).__name__} record, expected an object",
                                     operation=operation)
        try:
            return [parse(record) for record in payload]
        except (AttributeError, TypeError, ValueError) as e:
            raise TransportError(f"{operation} returned a malformed record: {e}", operation=operation) from e

    async def fetch_products(self, query: Query) -> ProductPage:
        operation = 'products.fetch'
        response = await self._request(
            'GET', '/products', operation, params=query_to_request_params(query.to_params())
        )
        items = self._records(self._json(response, operation), operation, Product.from_dict)

        header = response.headers.get(TOTAL_COUNT_HEADER)
        try:
            total_count = int(header) if header is not None else len(items)
        except ValueError:
            logger.warning(f"Ignoring non-numeric {TOTAL_COUNT_HEADER} header: {header!r}")
            total_count = len(items)

        return ProductPage(items=items, total_count=total_count)

    async def fetch_brands(self) -> List[Brand]:
        operation = 'brands.fetch'
        response = await self._request('GET', '/brands', operation)
        return self._records(self._json(response, operation), operation, Brand.from_dict)

    async def fetch_categories(self) -> List[Category]:
        operation = 'categories.fetch'
        response = await self._request('GET', '/categories', operation)
        return self._records(self._json(response, operation), operation, Category.from_dict)

    async def _mutate(self, method: str, path: str, operation: str) -> Optional[Product]:
        response = await self._request(method, path, operation)
        payload = self._json(response, operation)
        if not isinstance(payload, dict):
            return None
        try:
            return Product.from_dict(payload)
        except (TypeError, ValueError):
            # The mutation went through; an odd body does not undo it
            logger.debug(f"{operation} returned an unparseable product body")
            return None

    async def delete_product(self, product_id: Id) -> Optional[Product]:
        return await self._mutate('DELETE', f'/products/{product_id}', 'products.delete')

    async def restore_product(self, product_id: Id) -> Optional[Product]:
        return await self._mutate('PATCH', f'/products/undelete/{product_id}', 'products.restore')


class InMemoryProductTransport(ProductTransport):
    """
    In-memory catalog that filters, sorts and pages like the backend.

    Product records are plain dicts in backend form ('_id', 'brand', 'category',
    'isDeleted', ...). Failures can be injected per operation, and every issued
    listing request is recorded.
    """

    def __init__(self, products: Optional[List[Dict[str, Any]]] = None,
                 brands: Optional[List[Dict[str, Any]]] = None,
                 categories: Optional[List[Dict[str, Any]]] = None,
                 latency: float = 0.0):
        self._products: Dict[Id, Dict[str, Any]] = {}
        for record in products or []:
            self._products[str(record.get('_id', record.get('id')))] = dict(record)
        self._brands = [dict(b) for b in brands or []]
        self._categories = [dict(c) for c in categories or []]
        self.latency = latency
        self.issued_queries: List[QueryParams] = []
        self._failures: Dict[str, TransportError] = {}

    def fail_next(self, operation: str, error: Optional[TransportError] = None) -> None:
        """Make the next call of an operation ('products.fetch', 'products.delete', ...) fail."""
        self._failures[operation] = error or TransportError(f"{operation} failed", operation=operation)

    async def _call(self, operation: str) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    @staticmethod
    def _ref_id(value: Any) -> Optional[str]:
        if isinstance(value, dict):
            value = value.get('_id', value.get('id'))
        return None if value is None else str(value)

    async def fetch_products(self, query: Query) -> ProductPage:
        params = query.to_params()
        self.issued_queries.append(params)
        await self._call('products.fetch')

        records = list(self._products.values())
        if 'brand' in params:
            wanted = set(params['brand'])
            records = [r for r in records if self._ref_id(r.get('brand')) in wanted]
        if 'category' in params:
            wanted = set(params['category'])
            records = [r for r in records if self._ref_id(r.get('category')) in wanted]
        if 'sort' in params:
            sort = params['sort']
            records.sort(key=lambda r: r.get(sort['sort'], 0), reverse=sort['order'] == 'desc')

        pagination = params['pagination']
        start = (pagination['page'] - 1) * pagination['limit']
        page = records[start:start + pagination['limit']]
        return ProductPage(items=[Product.from_dict(r) for r in page], total_count=len(records))

    async def fetch_brands(self) -> List[Brand]:
        await self._call('brands.fetch')
        return [Brand.from_dict(b) for b in self._brands]

    async def fetch_categories(self) -> List[Category]:
        await self._call('categories.fetch')
        return [Category.from_dict(c) for c in self._categories]

    async def _set_deleted(self, product_id: Id, operation: str, deleted: bool) -> Product:
        await self._call(operation)
        record = self._products.get(product_id)
        if record is None:
            raise TransportError(f"Product {product_id} not found", operation=operation, status_code=404)
        record['isDeleted'] = deleted
        return Product.from_dict(record)

    async def delete_product(self, product_id: Id) -> Optional[Product]:
        return await self._set_deleted(product_id, 'products.delete', True)

    async def restore_product(self, product_id: Id) -> Optional[Product]:
        return await self._set_deleted(product_id, 'products.restore', False)
