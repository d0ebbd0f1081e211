"""
Soft-delete and restore of listed products.

A mutation is sent to the backend first; only a confirmed mutation is
reflected locally, by patching the is_deleted flag of the product on the
current page. The page is not refetched.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.exceptions import TransportError
from query.state.models import Id, Product
from resource_slices import ProductsSlice
from transport import ProductTransport

# Configure logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a delete or restore."""
    product_id: Id
    ok: bool
    # Whether a product on the current page was updated
    patched: bool = False
    error: Optional[TransportError] = None
    product: Optional[Product] = None


class MutationCoordinator:
    """Runs soft-delete/restore against the backend and patches the products slice."""

    def __init__(self, products: ProductsSlice, transport: ProductTransport):
        self.products = products
        self.transport = transport

    async def soft_delete(self, product_id: Id) -> MutationResult:
        return await self._mutate(product_id, is_deleted=True)

    async def restore(self, product_id: Id) -> MutationResult:
        return await self._mutate(product_id, is_deleted=False)

    async def _mutate(self, product_id: Id, is_deleted: bool) -> MutationResult:
        action = 'delete' if is_deleted else 'restore'
        call = self.transport.delete_product if is_deleted else self.transport.restore_product

        try:
            server_product = await call(product_id)
        except TransportError as e:
            logger.warning(f"Could not {action} product {product_id}: {e}")
            return MutationResult(product_id=product_id, ok=False, error=e)

        patched = self.products.patch_deleted_flag(product_id, is_deleted)
        logger.info(f"Product {product_id} {action}d" + ("" if patched else " (not on current page)"))
        return MutationResult(
            product_id=product_id,
            ok=True,
            patched=patched,
            product=self.products.find(product_id) or server_product,
        )
