"""
Tests for listing query generation and pagination math.
"""

import os
import random
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import ValidationError
from query.query_builder import (
    SORT_OPTIONS,
    build_query,
    clamp_page,
    page_bounds,
    page_count,
    sort_option,
)
from query.state.models import FilterState, PageState, SortField, SortOrder, SortSpec


class TestBuildQuery:
    """Test the canonical query and its request mapping"""

    def test_initial_state_only_has_pagination(self):
        """Empty filters and no sort produce just the pagination key"""
        query = build_query(FilterState(), None, PageState(1, 10))
        assert query.to_params() == {'pagination': {'page': 1, 'limit': 10}}

    def test_brand_and_sort(self):
        """Selected brand and price sort appear in the mapping"""
        query = build_query(
            FilterState(brand_ids={'b1'}),
            SortSpec(SortField.PRICE, SortOrder.ASC),
            PageState(1, 10),
        )
        assert query.to_params() == {
            'brand': ['b1'],
            'sort': {'sort': 'price', 'order': 'asc'},
            'pagination': {'page': 1, 'limit': 10},
        }

    def test_empty_sets_never_appear(self):
        """A brand filter alone does not produce an empty category key"""
        params = build_query(FilterState(brand_ids={'b2'}), None, PageState()).to_params()
        assert 'category' not in params
        assert 'sort' not in params

    def test_ids_are_sorted(self):
        """Membership order does not leak into the request"""
        filters = FilterState(brand_ids=['b3', 'b1', 'b2'], category_ids=['c2', 'c1'])
        params = build_query(filters, None, PageState()).to_params()
        assert params['brand'] == ['b1', 'b2', 'b3']
        assert params['category'] == ['c1', 'c2']

    def test_deterministic_for_equal_inputs(self):
        """Equal selections give equal queries and identical mappings"""
        ids = ['b1', 'b2', 'b3', 'b4']
        shuffled = ids[:]
        random.Random(7).shuffle(shuffled)

        first = build_query(FilterState(brand_ids=ids), SortSpec('price', 'desc'), PageState(2, 10))
        second = build_query(FilterState(brand_ids=shuffled), SortSpec('price', 'desc'), PageState(2, 10))

        assert first == second
        assert hash(first) == hash(second)
        assert first.to_params() == second.to_params()

    def test_different_page_is_a_different_query(self):
        first = build_query(FilterState(), None, PageState(1, 10))
        second = build_query(FilterState(), None, PageState(2, 10))
        assert first != second


class TestStateModels:
    """Test the selection value objects"""

    def test_toggle_parity(self):
        """Membership after a toggle sequence equals the parity of toggles per id"""
        rng = random.Random(42)
        ids = ['a', 'b', 'c', 'd']
        calls = [rng.choice(ids) for _ in range(101)]

        filters = FilterState()
        for brand_id in calls:
            filters = filters.toggled_brand(brand_id)

        expected = {i for i in ids if calls.count(i) % 2 == 1}
        assert filters.brand_ids == expected

    def test_double_toggle_restores_original(self):
        original = FilterState(brand_ids={'b1'}, category_ids={'c1'})
        assert original.toggled_category('c2').toggled_category('c2') == original

    def test_exclusive_category_replaces_selection(self):
        filters = FilterState(brand_ids={'b1'}, category_ids={'c1', 'c2'})
        exclusive = filters.with_exclusive_category('c3')
        assert exclusive.category_ids == {'c3'}
        assert exclusive.brand_ids == {'b1'}

    def test_sort_spec_accepts_strings(self):
        spec = SortSpec('price', 'desc')
        assert spec.field is SortField.PRICE
        assert spec.order is SortOrder.DESC

    def test_sort_spec_from_wire_shape(self):
        assert SortSpec.from_dict({'sort': 'price', 'order': 'asc'}) == SortSpec(SortField.PRICE)

    @pytest.mark.parametrize('field_value, order_value', [('rating', 'asc'), ('price', 'up')])
    def test_sort_spec_rejects_unknown_values(self, field_value, order_value):
        with pytest.raises(ValidationError):
            SortSpec(field_value, order_value)

    @pytest.mark.parametrize('page_number', [0, -1, 1.5, True, '2'])
    def test_page_state_rejects_invalid_page(self, page_number):
        with pytest.raises(ValidationError):
            PageState(page_number=page_number)


class TestSortOptions:
    """Test the sort option catalogue"""

    def test_options_cover_both_directions(self):
        assert [o.spec.order for o in SORT_OPTIONS] == [SortOrder.ASC, SortOrder.DESC]

    def test_lookup_by_label(self):
        assert sort_option('price: high to low') == SortSpec(SortField.PRICE, SortOrder.DESC)
        assert sort_option('Newest first') is None


class TestPagination:
    """Test pagination math"""

    def test_last_partial_page(self):
        """23 results at 10 per page: 3 pages, page 3 shows items 21 to 23"""
        assert page_count(23, 10) == 3
        assert page_bounds(3, 10, 23) == (21, 23)

    def test_full_page(self):
        assert page_bounds(1, 10, 23) == (1, 10)

    def test_empty_and_out_of_range(self):
        assert page_count(0, 10) == 0
        assert page_bounds(1, 10, 0) == (0, 0)
        assert page_bounds(4, 10, 23) == (0, 0)

    def test_clamp_page(self):
        assert clamp_page(9, 23, 10) == 3
        assert clamp_page(2, 23, 10) == 2
        assert clamp_page(5, 0, 10) == 1
