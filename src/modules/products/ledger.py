"""Stock Ledger: per-product available quantity and reservation feasibility.

The ledger answers "is there enough stock?" and applies signed stock
deltas.  It performs no ordering or all-or-nothing logic of its own:
the order lifecycle checks every requested product first and only then
decrements, all inside one transaction.

Every read goes through ``get_for_update`` so the row stays locked until
the caller's transaction ends, and every write is an ``F()`` update, so
two orders touching the same product serialise on that row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union
from uuid import UUID

import structlog
from django.db import transaction

from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

ProductId = Union[UUID, str]


class StockLedger:
    """Tracks available quantity per product.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, product_repository: IProductRepository) -> None:
        self._repo = product_repository

    @transaction.atomic
    def has_sufficient_stock(self, product_id: ProductId, quantity: int) -> bool:
        """Return whether the current stock of *product_id* covers *quantity*.

        Locks the product row for the rest of the enclosing transaction.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = self._repo.get_for_update(str(product_id))
        if product is None:
            raise ProductNotFound(product_id)
        sufficient = product.stock_quantity >= quantity
        logger.debug(
            "stock.checked",
            product_id=str(product_id),
            requested=quantity,
            available=product.stock_quantity,
            sufficient=sufficient,
        )
        return sufficient

    @transaction.atomic
    def decrement(self, product_id: ProductId, quantity: int) -> int:
        """Reserve *quantity* units; returns the remaining stock.

        Callers must have checked ``has_sufficient_stock`` in the same
        transaction.

        Raises:
            ProductNotFound: the product does not exist.
        """
        remaining = self._apply(product_id, -quantity)
        logger.info(
            "stock.reserved",
            product_id=str(product_id),
            quantity=quantity,
            remaining=remaining,
        )
        return remaining

    @transaction.atomic
    def increment(self, product_id: ProductId, quantity: int) -> int:
        """Restore *quantity* units; returns the new stock.

        Raises:
            ProductNotFound: the product does not exist.
        """
        restored = self._apply(product_id, quantity)
        logger.info(
            "stock.restored",
            product_id=str(product_id),
            quantity=quantity,
            restored_stock=restored,
        )
        return restored

    def _apply(self, product_id: ProductId, delta: int) -> int:
        new_quantity = self._repo.adjust_stock(str(product_id), delta)
        if new_quantity is None:
            raise ProductNotFound(product_id)
        return new_quantity
