"""
State models for the product listing.

This module defines the typed value objects the listing is built from: the
filter, sort and page selections owned by the controller, the catalog records
returned by the backend, and the lifecycle state of each asynchronous resource.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Generic, List, Optional, TypeVar

from typing_extensions import TypedDict

from core.exceptions import ValidationError

Id = str

T = TypeVar('T')


# Selection state

class SortField(str, Enum):
    """Fields the product listing can be sorted by."""
    PRICE = "price"


class SortOrder(str, Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"


def _toggle(ids: FrozenSet[Id], item: Id) -> FrozenSet[Id]:
    return ids - {item} if item in ids else ids | {item}


@dataclass(frozen=True)
class FilterState:
    """
    Selected brand and category ids.

    Immutable: every change returns a new FilterState, so a toggle is applied
    entirely or not at all.
    """
    brand_ids: FrozenSet[Id] = frozenset()
    category_ids: FrozenSet[Id] = frozenset()

    def __post_init__(self):
        # Accept any iterable of ids, store frozensets
        object.__setattr__(self, 'brand_ids', frozenset(self.brand_ids))
        object.__setattr__(self, 'category_ids', frozenset(self.category_ids))

    @property
    def is_empty(self) -> bool:
        return not self.brand_ids and not self.category_ids

    def toggled_brand(self, brand_id: Id) -> 'FilterState':
        return FilterState(_toggle(self.brand_ids, brand_id), self.category_ids)

    def toggled_category(self, category_id: Id) -> 'FilterState':
        return FilterState(self.brand_ids, _toggle(self.category_ids, category_id))

    def with_exclusive_category(self, category_id: Id) -> 'FilterState':
        return FilterState(self.brand_ids, frozenset({category_id}))

    def cleared(self) -> 'FilterState':
        return FilterState()


@dataclass(frozen=True)
class SortSpec:
    """A single active sort. The absence of a sort is represented by None."""
    field: SortField
    order: SortOrder = SortOrder.ASC

    def __post_init__(self):
        try:
            object.__setattr__(self, 'field', SortField(self.field))
        except ValueError:
            raise ValidationError("Unsupported sort field", field='sort.field', value=self.field)
        try:
            object.__setattr__(self, 'order', SortOrder(self.order))
        except ValueError:
            raise ValidationError("Unsupported sort order", field='sort.order', value=self.order)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SortSpec':
        """Create from either the wire shape ({'sort', 'order'}) or {'field', 'order'}."""
        sort_field = data.get('field', data.get('sort'))
        if sort_field is None:
            raise ValidationError("Sort definition has no field", field='sort')
        return cls(field=sort_field, order=data.get('order', SortOrder.ASC))


@dataclass(frozen=True)
class PageState:
    """Requested page; page_number is 1-based."""
    page_number: int = 1
    page_size: int = 10

    def __post_init__(self):
        _require_positive_int(self.page_number, 'page_number')
        _require_positive_int(self.page_size, 'page_size')

    def with_page(self, page_number: int) -> 'PageState':
        return PageState(page_number=page_number, page_size=self.page_size)


def _require_positive_int(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be an integer >= 1", field=name, value=value)


# Wire shape sent to the transport

class SortParams(TypedDict):
    sort: str
    order: str


class PaginationParams(TypedDict):
    page: int
    limit: int


class QueryParams(TypedDict, total=False):
    """Request mapping; brand, category and sort are omitted when unset."""
    brand: List[Id]
    category: List[Id]
    sort: SortParams
    pagination: PaginationParams


# Catalog records

def _record_id(data: Dict[str, Any]) -> Id:
    record_id = data.get('_id', data.get('id'))
    if record_id is None:
        raise ValueError(f"Record has no id: {data!r}")
    return str(record_id)


@dataclass(frozen=True)
class Brand:
    id: Id
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Brand':
        return cls(id=_record_id(data), name=str(data.get('name', '')))


@dataclass(frozen=True)
class Category:
    id: Id
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(id=_record_id(data), name=str(data.get('name', '')))


@dataclass(frozen=True)
class Product:
    """Read-only projection of a product as listed for admins."""
    id: Id
    title: str
    thumbnail: str
    price: float
    brand: Brand
    is_deleted: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """
        Create a Product from a backend record.

        The brand may be populated ({'_id', 'name'}) or a bare id.
        """
        brand_data = data.get('brand') or {}
        if isinstance(brand_data, dict):
            brand = Brand.from_dict(brand_data) if brand_data else Brand(id='', name='')
        else:
            brand = Brand(id=str(brand_data), name='')

        return cls(
            id=_record_id(data),
            title=str(data.get('title', '')),
            thumbnail=str(data.get('thumbnail', '')),
            price=float(data.get('price', 0)),
            brand=brand,
            is_deleted=bool(data.get('isDeleted', data.get('is_deleted', False))),
        )


@dataclass(frozen=True)
class ProductPage:
    """One page of products plus the total number of matches."""
    items: List[Product] = field(default_factory=list)
    total_count: int = 0


# Async resource lifecycle

class ResourceStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ResourceState(Generic[T]):
    """
    Data, lifecycle status and last error of one asynchronous resource.

    Frozen: a slice replaces its state on every transition, so a snapshot
    handed to a reader never changes underneath it.
    """
    data: T
    status: ResourceStatus = ResourceStatus.IDLE
    error: Optional[Exception] = None
