"""Product repository interface.

Extends ``IRepository[Product]`` with the row-locking and stock
adjustment primitives the Stock Ledger is built on.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction; the lock is held until it
        commits or rolls back.  Returns ``None`` if the product does not exist.
        """

    @abstractmethod
    def adjust_stock(self, id: str, delta: int) -> Optional[int]:
        """Atomically add *delta* (may be negative) to the product stock.

        Returns the new stock quantity, or ``None`` if the product does not
        exist.
        """
