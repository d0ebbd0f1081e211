"""
Admin session wiring.

An AdminSession owns everything one admin listing view needs: the three
resource slices, the listing controller and the mutation coordinator, all
sharing one transport. Sessions hold no module-level state, so several can
run side by side in one process.
"""

import asyncio
import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from config_manager import get_config
from core.config import Config
from core.exceptions import ValidationError
from listing_controller import ListingController
from mutation_coordinator import MutationCoordinator, MutationResult
from query.state.models import Brand, Category, Id
from resource_slices import ProductsSlice, ResourceSlice
from transport import HttpProductTransport, ProductTransport

# Configure logging
logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a unique session ID"""
    return str(uuid.uuid4())


def find_category_by_name(categories: Sequence[Category], name: str) -> Optional[Category]:
    """Case-insensitive category lookup by display name"""
    wanted = name.strip().lower()
    for category in categories:
        if category.name.lower() == wanted:
            return category
    return None


class AdminSession:
    """State and collaborators of one admin product listing."""

    def __init__(self, transport: ProductTransport, config: Optional[Config] = None,
                 session_id: Optional[str] = None, owns_transport: bool = False):
        self.config = config or get_config()
        self.session_id = session_id or generate_session_id()
        self.transport = transport
        self._owns_transport = owns_transport

        timeout = self.config.api.timeout_seconds
        self.products = ProductsSlice(timeout_seconds=timeout)
        self.brands: ResourceSlice[Tuple[Brand, ...]] = ResourceSlice('brands', (), timeout_seconds=timeout)
        self.categories: ResourceSlice[Tuple[Category, ...]] = ResourceSlice('categories', (), timeout_seconds=timeout)

        self.controller = ListingController(self.products, transport, self.config.listing)
        self.mutations = MutationCoordinator(self.products, transport)

        logger.info(f"Admin session {self.session_id[:8]} created")

    async def start(self) -> None:
        """
        Mount the listing.

        Brands and categories are loaded once here; the first product page is
        fetched alongside them.
        """
        self.controller.flush()
        await asyncio.gather(
            self.brands.load(self.transport.fetch_brands),
            self.categories.load(self.transport.fetch_categories),
        )
        await self.controller.settle()

    async def close(self) -> None:
        """Unmount the listing and release the transport if this session created it."""
        self.controller.close()
        if self._owns_transport:
            await self.transport.aclose()
        logger.info(f"Admin session {self.session_id[:8]} closed")

    async def __aenter__(self) -> 'AdminSession':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Filter panel

    def toggle_filters(self) -> bool:
        """Open or close the filter panel; the query is unaffected."""
        return self.products.toggle_filters()

    def quick_filter_names(self) -> List[str]:
        return list(self.config.listing.quick_filter_categories)

    def quick_filter(self, category_name: str) -> None:
        """
        Show only one category, chosen by name.

        Raises:
            ValidationError: If no loaded category has that name
        """
        category = find_category_by_name(self.categories.data, category_name)
        if category is None:
            raise ValidationError("Unknown category", field='category', value=category_name)
        self.controller.set_category_exclusive(category.id)

    # Mutations

    async def soft_delete(self, product_id: Id) -> MutationResult:
        return await self.mutations.soft_delete(product_id)

    async def restore(self, product_id: Id) -> MutationResult:
        return await self.mutations.restore(product_id)


def create_admin_session(config: Optional[Config] = None,
                         transport: Optional[ProductTransport] = None) -> AdminSession:
    """
    Create a session, talking HTTP to the configured API unless a transport is given.
    """
    config = config or get_config()
    if transport is not None:
        return AdminSession(transport, config)
    return AdminSession(HttpProductTransport(config.api), config, owns_transport=True)
