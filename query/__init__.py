"""
Query generation module for the Catalog Admin Console.

This module provides the listing query snapshot, its request mapping, the
sort option catalogue and pagination helpers.
"""

from .query_builder import (
    Query,
    build_query,
    SortOption,
    SORT_OPTIONS,
    sort_option,
    page_count,
    page_bounds,
    clamp_page,
)

__all__ = [
    'Query',
    'build_query',
    'SortOption',
    'SORT_OPTIONS',
    'sort_option',
    'page_count',
    'page_bounds',
    'clamp_page',
]

# Version info
__version__ = "1.0.0"
