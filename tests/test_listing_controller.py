"""
Tests for the ListingController: intents, fetch coalescing and ordering.
"""

import asyncio
import os
import random
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import ListingConfig
from core.exceptions import TransportError, ValidationError
from listing_controller import ListingController
from query.state.models import FilterState, ResourceStatus, SortField, SortOrder, SortSpec
from resource_slices import ProductsSlice

PRICE_ASC = SortSpec(SortField.PRICE, SortOrder.ASC)


def make_controller(transport, **listing_overrides):
    return ListingController(ProductsSlice(), transport, ListingConfig(**listing_overrides))


class TestControllerState:
    """Test intents without an event loop"""

    def test_initial_state(self, catalog_transport):
        controller = make_controller(catalog_transport)
        assert controller.filters == FilterState()
        assert controller.sort is None
        assert controller.page.page_number == 1
        assert controller.page.page_size == 10
        assert controller.has_pending_changes
        assert controller.current_query().to_params() == {'pagination': {'page': 1, 'limit': 10}}

    def test_toggle_parity(self, catalog_transport):
        """Membership equals the parity of toggle calls per id"""
        controller = make_controller(catalog_transport)
        rng = random.Random(3)
        brand_calls = [rng.choice(['b1', 'b2', 'b3']) for _ in range(40)]
        category_calls = [rng.choice(['c1', 'c2']) for _ in range(41)]

        for brand_id in brand_calls:
            controller.toggle_brand(brand_id)
        for category_id in category_calls:
            controller.toggle_category(category_id)

        assert controller.filters.brand_ids == {b for b in set(brand_calls) if brand_calls.count(b) % 2}
        assert controller.filters.category_ids == {c for c in set(category_calls) if category_calls.count(c) % 2}

    def test_scenario_brand_then_sort(self, catalog_transport):
        controller = make_controller(catalog_transport)
        controller.toggle_brand('b1')
        controller.set_sort({'field': 'price', 'order': 'asc'})

        assert controller.current_query().to_params() == {
            'brand': ['b1'],
            'sort': {'sort': 'price', 'order': 'asc'},
            'pagination': {'page': 1, 'limit': 10},
        }

    def test_set_category_exclusive_and_reset(self, catalog_transport):
        controller = make_controller(catalog_transport)
        controller.toggle_category('c1')
        controller.toggle_category('c2')
        controller.toggle_brand('b1')

        controller.set_category_exclusive('c3')
        assert controller.filters.category_ids == {'c3'}
        assert controller.filters.brand_ids == {'b1'}

        controller.reset_filters()
        assert controller.filters.is_empty

    def test_set_sort_none_clears(self, catalog_transport):
        controller = make_controller(catalog_transport)
        controller.set_sort(PRICE_ASC)
        controller.set_sort(None)
        assert controller.sort is None
        assert 'sort' not in controller.current_query().to_params()

    @pytest.mark.parametrize('bad_sort', ['price', 3, {'sort': 'rating'}])
    def test_set_sort_rejects_bad_input(self, catalog_transport, bad_sort):
        controller = make_controller(catalog_transport)
        with pytest.raises(ValidationError):
            controller.set_sort(bad_sort)
        assert controller.sort is None

    @pytest.mark.parametrize('bad_page', [0, -2, 2.0, None])
    def test_set_page_rejects_bad_input(self, catalog_transport, bad_page):
        controller = make_controller(catalog_transport)
        with pytest.raises(ValidationError):
            controller.set_page(bad_page)
        assert controller.page.page_number == 1

    def test_set_page_beyond_total_is_accepted(self, catalog_transport):
        controller = make_controller(catalog_transport)
        controller.set_page(99)
        assert controller.page.page_number == 99

    @pytest.mark.parametrize('bad_id', ['', '  ', None])
    def test_empty_ids_rejected(self, catalog_transport, bad_id):
        controller = make_controller(catalog_transport)
        with pytest.raises(ValidationError):
            controller.toggle_brand(bad_id)
        assert controller.filters.is_empty

    def test_filter_change_resets_page(self, catalog_transport):
        controller = make_controller(catalog_transport)
        controller.set_page(3)
        controller.toggle_brand('b1')
        assert controller.page.page_number == 1

        controller.set_page(2)
        controller.set_sort(PRICE_ASC)
        assert controller.page.page_number == 1

    def test_page_kept_when_reset_disabled(self, catalog_transport):
        controller = make_controller(catalog_transport, reset_page_on_filter_change=False)
        controller.set_page(3)
        controller.toggle_brand('b1')
        assert controller.page.page_number == 3

    def test_no_op_update_keeps_page(self, catalog_transport):
        """Re-selecting the active sort is not a change and does not reset the page"""
        controller = make_controller(catalog_transport)
        controller.set_sort(PRICE_ASC)
        controller.set_page(2)
        controller.set_sort(SortSpec('price', 'asc'))
        assert controller.page.page_number == 2


class TestControllerFetching:
    """Test when fetches are issued"""

    def test_changes_in_one_tick_coalesce(self, catalog_transport):
        async def scenario():
            controller = make_controller(catalog_transport)
            controller.toggle_brand('b1')
            controller.toggle_brand('b2')
            controller.set_sort(PRICE_ASC)
            await controller.settle()
            return controller

        controller = asyncio.run(scenario())

        assert catalog_transport.issued_queries == [{
            'brand': ['b1', 'b2'],
            'sort': {'sort': 'price', 'order': 'asc'},
            'pagination': {'page': 1, 'limit': 10},
        }]
        assert controller.products.status == ResourceStatus.SUCCEEDED
        assert controller.products.total_count == 16

    def test_changes_in_separate_ticks_fetch_each(self, catalog_transport):
        async def scenario():
            controller = make_controller(catalog_transport)
            await controller.settle()
            controller.toggle_brand('b1')
            await asyncio.sleep(0)
            controller.set_page(2)
            await controller.settle()

        asyncio.run(scenario())

        assert [q['pagination']['page'] for q in catalog_transport.issued_queries] == [1, 1, 2]
        assert catalog_transport.issued_queries[1]['brand'] == ['b1']

    def test_no_fetch_when_query_unchanged(self, catalog_transport):
        async def scenario():
            controller = make_controller(catalog_transport)
            await controller.settle()
            controller.toggle_brand('b1')
            controller.toggle_brand('b1')
            await controller.settle()
            assert controller.flush() is None

        asyncio.run(scenario())
        assert len(catalog_transport.issued_queries) == 1

    def test_refresh_reissues_same_query(self, catalog_transport):
        async def scenario():
            controller = make_controller(catalog_transport)
            await controller.settle()
            return await controller.refresh()

        assert asyncio.run(scenario()) is True
        assert len(catalog_transport.issued_queries) == 2
        assert catalog_transport.issued_queries[0] == catalog_transport.issued_queries[1]

    def test_last_request_wins(self, gated_transport):
        """An earlier query resolving last does not overwrite the newer result"""
        async def scenario():
            controller = make_controller(gated_transport)
            controller.toggle_brand('b1')
            await gated_transport.wait_for_requests(1)

            controller.toggle_brand('b1')
            controller.toggle_brand('b3')
            await gated_transport.wait_for_requests(2)

            gated_transport.gates[1].set()
            gated_transport.gates[0].set()
            await controller.settle()
            return controller

        controller = asyncio.run(scenario())

        assert controller.products.status == ResourceStatus.SUCCEEDED
        assert {p.brand.id for p in controller.products.data} == {'b3'}
        assert controller.products.query == controller.current_query()

    def test_failed_fetch_keeps_data_then_recovers(self, catalog_transport):
        async def scenario():
            controller = make_controller(catalog_transport)
            await controller.settle()
            first_page = list(controller.products.data)

            catalog_transport.fail_next('products.fetch', TransportError('503 from upstream', status_code=503))
            controller.set_page(2)
            await controller.settle()
            failed = (controller.products.status, list(controller.products.data), controller.products.error)

            controller.set_page(3)
            await controller.settle()
            return controller, first_page, failed

        controller, first_page, (status, data, error) = asyncio.run(scenario())

        assert status == ResourceStatus.FAILED
        assert data == first_page
        assert isinstance(error, TransportError)

        assert controller.products.status == ResourceStatus.SUCCEEDED
        assert controller.products.error is None
        assert [p.id for p in controller.products.data] == ['p21', 'p22', 'p23']

    def test_close_drops_scheduled_flush(self, catalog_transport):
        async def scenario():
            controller = make_controller(catalog_transport)
            controller.toggle_brand('b2')
            controller.close()
            await asyncio.sleep(0)

        asyncio.run(scenario())
        assert catalog_transport.issued_queries == []
