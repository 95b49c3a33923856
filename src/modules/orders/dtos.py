"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``PlaceOrderDTO``: a stock reservation request (product id -> quantity)
  plus the identity of the customer placing it.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from modules.orders.exceptions import ErrorKind, OrderRejected


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for order placement requests.

    ``items`` maps each product id to the requested quantity, so product
    ids are unique by construction.  Emptiness and non-positive quantities
    are rejected by the service as ``INVALID_PRODUCTS``.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: Dict[UUID, int]
    notes: Optional[str] = ""


def translate_place_order_request(
    customer_id: Any, products: Mapping[Any, Any], notes: str = ""
) -> PlaceOrderDTO:
    """Turn a raw placement request into a ``PlaceOrderDTO``.

    Raises:
        OrderRejected: ``INVALID_CUSTOMER_ID`` for a malformed customer id,
            ``INVALID_PRODUCTS`` for malformed product ids or quantities.
    """
    try:
        customer_uuid = UUID(str(customer_id))
    except (TypeError, ValueError):
        raise OrderRejected(ErrorKind.INVALID_CUSTOMER_ID) from None
    try:
        return PlaceOrderDTO(
            customer_id=customer_uuid, items=dict(products), notes=notes or ""
        )
    except PydanticValidationError as exc:
        raise OrderRejected(
            ErrorKind.INVALID_PRODUCTS,
            f"The requested products are invalid: {exc.error_count()} error(s).",
        ) from exc
