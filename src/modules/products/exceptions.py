"""Product domain exceptions.

Raised by the Stock Ledger.  The order lifecycle translates them into
order rejections; nothing in the ledger swallows them.
"""

from __future__ import annotations


class ProductNotFound(Exception):
    """The requested product does not exist."""

    def __init__(self, product_id: object) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found.")
