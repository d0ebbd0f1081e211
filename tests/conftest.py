"""
Shared fixtures: a small catalog and transports built on it.
"""

import asyncio
import os
import sys
from typing import List

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Config
from query.query_builder import Query
from query.state.models import ProductPage
from transport import InMemoryProductTransport

BRANDS = [
    {'_id': 'b1', 'name': 'Herschel'},
    {'_id': 'b2', 'name': 'Fjallraven'},
    {'_id': 'b3', 'name': 'Osprey'},
]

CATEGORIES = [
    {'_id': 'c1', 'name': 'Backpacks'},
    {'_id': 'c2', 'name': 'Totes'},
    {'_id': 'c3', 'name': 'Travel Bags'},
]


def make_products(count: int = 23) -> List[dict]:
    """Products p01..pNN cycling through brands and categories, prices ascending with id."""
    products = []
    for i in range(1, count + 1):
        brand = BRANDS[(i - 1) % len(BRANDS)]
        products.append({
            '_id': f'p{i:02d}',
            'title': f'Bag {i}',
            'thumbnail': f'https://cdn.example.com/p{i:02d}.jpg',
            'price': 10.0 * i,
            'brand': dict(brand),
            'category': CATEGORIES[(i - 1) % len(CATEGORIES)]['_id'],
            'isDeleted': False,
        })
    return products


class GatedTransport(InMemoryProductTransport):
    """In-memory transport whose product fetches wait until the test opens their gate."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.gates: List[asyncio.Event] = []
        self.gated_queries: List[Query] = []

    async def fetch_products(self, query: Query) -> ProductPage:
        gate = asyncio.Event()
        self.gates.append(gate)
        self.gated_queries.append(query)
        await gate.wait()
        return await super().fetch_products(query)

    async def wait_for_requests(self, count: int) -> None:
        while len(self.gates) < count:
            await asyncio.sleep(0)


@pytest.fixture
def catalog_transport():
    return InMemoryProductTransport(products=make_products(), brands=BRANDS, categories=CATEGORIES)


@pytest.fixture
def gated_transport():
    return GatedTransport(products=make_products(), brands=BRANDS, categories=CATEGORIES)


@pytest.fixture
def config(tmp_path, monkeypatch):
    """A Config backed by a throwaway TOML file with no environment overrides."""
    monkeypatch.delenv('ADMIN_API_BASE_URL', raising=False)
    return Config(config_file_path=str(tmp_path / 'config.toml'))
