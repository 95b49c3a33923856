"""Order lifecycle rejections.

Every business-rule violation of the order lifecycle is one of a closed
set of ``ErrorKind`` values, carried by a single ``OrderRejected``
exception.  Raising (rather than returning) lets ``transaction.atomic``
roll back whatever the operation had already touched.  The API layer
maps the kind to an HTTP status.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_CUSTOMER_ID = "INVALID_CUSTOMER_ID"
    INVALID_PRODUCT_ID = "INVALID_PRODUCT_ID"
    INVALID_PRODUCTS = "INVALID_PRODUCTS"
    NOT_ENOUGH_STOCK = "NOT_ENOUGH_STOCK"
    INVALID_ORDER_ID = "INVALID_ORDER_ID"
    ORDER_CANCELED = "ORDER_CANCELED"
    ORDER_ALREADY_DELIVERED = "ORDER_ALREADY_DELIVERED"
    ORDER_NOT_DELIVERED_YET = "ORDER_NOT_DELIVERED_YET"
    INVALID_OPERATION = "INVALID_OPERATION"


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_CUSTOMER_ID: "The customer id is invalid.",
    ErrorKind.INVALID_PRODUCT_ID: "The product id is invalid.",
    ErrorKind.INVALID_PRODUCTS: "The requested products are invalid.",
    ErrorKind.NOT_ENOUGH_STOCK: "There is not enough stock for the requested products.",
    ErrorKind.INVALID_ORDER_ID: "The order id is invalid.",
    ErrorKind.ORDER_CANCELED: "The order has been canceled.",
    ErrorKind.ORDER_ALREADY_DELIVERED: "The order has already been delivered.",
    ErrorKind.ORDER_NOT_DELIVERED_YET: (
        "The order cannot be returned because it has not been delivered."
    ),
    ErrorKind.INVALID_OPERATION: "The user is not allowed to perform this operation.",
}


class OrderRejected(Exception):
    """An order operation was rejected; ``kind`` says why."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"OrderRejected({self.kind.value}, {self.message!r})"
