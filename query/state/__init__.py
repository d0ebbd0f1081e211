"""
State package for the product listing.

This package provides the typed value objects the listing controller, the
resource slices and the transport exchange.
"""

from .models import (
    Id,
    SortField,
    SortOrder,
    FilterState,
    SortSpec,
    PageState,
    QueryParams,
    Brand,
    Category,
    Product,
    ProductPage,
    ResourceStatus,
    ResourceState,
)

__all__ = [
    'Id',
    'SortField',
    'SortOrder',
    'FilterState',
    'SortSpec',
    'PageState',
    'QueryParams',
    'Brand',
    'Category',
    'Product',
    'ProductPage',
    'ResourceStatus',
    'ResourceState',
]
