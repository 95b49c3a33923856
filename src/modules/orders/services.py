"""Order lifecycle service layer (Use Cases).

Owns the order state machine: placement (with stock reservation),
delivery, cancellation and return (with stock restoration).  Every
command is one unit of work -- the service defines the
``transaction.atomic`` boundary around the whole
read-guard-mutate sequence, so a rejection rolls back any stock already
touched.

Rules enforced:
- Placement: the customer must exist and be active; every requested
  product must exist and have enough stock, checked for *all* items
  before any decrement (no partial reservation).
- Deliver: rejected on canceled orders; no ownership check.
- Cancel: rejected once delivered; only the order owner may cancel.
- Return: only delivered, non-canceled orders; restores exactly the
  quantity captured on each item.
- Guard order: order id presence/existence, then state, then ownership.
- Every state change is recorded in the history and emits an outbox event.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Union
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.constants import OrderAction, OrderState
from modules.orders.events import (
    OrderCanceled,
    OrderDelivered,
    OrderPlaced,
    OrderReturned,
)
from modules.orders.exceptions import ErrorKind, OrderRejected
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.accounts.repositories.interfaces import IAccountRepository
    from modules.orders.dtos import PlaceOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.ledger import StockLedger
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

Identifier = Union[UUID, str, None]

_TRANSITION_EVENTS = {
    OrderState.DELIVERED: OrderDelivered,
    OrderState.CANCELED: OrderCanceled,
    OrderState.RETURNED: OrderReturned,
}


def _same_identity(left: Identifier, right: Identifier) -> bool:
    """Compare two ids by UUID value, whatever their representation."""
    if left is None or right is None:
        return False
    try:
        return UUID(str(left)) == UUID(str(right))
    except ValueError:
        return False


class OrderLifecycleService:
    """Application service for the order lifecycle.

    Receives repositories and the stock ledger via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        account_repository: IAccountRepository,
        stock_ledger: StockLedger,
    ) -> None:
        self._order_repo = order_repository
        self._account_repo = account_repository
        self._ledger = stock_ledger

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(self, dto: PlaceOrderDTO) -> Order:
        """Create a new order and reserve its stock.

        Steps:
        1. Validate the customer exists and is active.
        2. Validate the reservation request is non-empty with positive
           quantities.
        3. For every product (sorted by id to avoid deadlocks), lock the
           row and check feasibility.  Any failure aborts before a single
           unit is decremented.
        4. Decrement stock per item, persist order + items, record history.

        Raises:
            OrderRejected: ``INVALID_CUSTOMER_ID``, ``INVALID_PRODUCTS``,
                ``INVALID_PRODUCT_ID`` or ``NOT_ENOUGH_STOCK``.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        log.info("order.placement_started", item_count=len(dto.items))

        # 1. Validate customer
        customer = self._account_repo.get_by_id(str(dto.customer_id))
        if customer is None or not customer.is_active:
            log.warning("order.invalid_customer")
            raise OrderRejected(
                ErrorKind.INVALID_CUSTOMER_ID,
                f"Customer {dto.customer_id} does not exist or is inactive.",
            )

        # 2. Validate the reservation request shape
        if not dto.items:
            raise OrderRejected(
                ErrorKind.INVALID_PRODUCTS, "An order needs at least one product."
            )
        invalid = [str(pid) for pid, qty in dto.items.items() if qty < 1]
        if invalid:
            raise OrderRejected(
                ErrorKind.INVALID_PRODUCTS,
                f"Quantities must be at least 1 (products: {', '.join(invalid)}).",
            )

        # 3. Check every product before touching any stock
        requested = sorted(dto.items.items(), key=lambda entry: str(entry[0]))
        for product_id, quantity in requested:
            try:
                sufficient = self._ledger.has_sufficient_stock(product_id, quantity)
            except ProductNotFound as exc:
                log.warning("order.unknown_product", product_id=str(product_id))
                raise OrderRejected(ErrorKind.INVALID_PRODUCT_ID, str(exc)) from exc
            if not sufficient:
                log.warning(
                    "order.not_enough_stock",
                    product_id=str(product_id),
                    requested=quantity,
                )
                raise OrderRejected(
                    ErrorKind.NOT_ENOUGH_STOCK,
                    f"Not enough stock for product {product_id}: "
                    f"requested {quantity}.",
                )

        # 4. Commit: decrement, persist, record
        for product_id, quantity in requested:
            self._ledger.decrement(product_id, quantity)

        order = self._order_repo.create(
            {
                "customer_id": customer.id,
                "items": [
                    {"product_id": product_id, "quantity": quantity}
                    for product_id, quantity in requested
                ],
                "notes": dto.notes or "",
            }
        )
        order.add_domain_event(OrderPlaced(aggregate_id=order.id))
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            new_state=OrderState.PENDING,
            actor_id=customer.id,
            notes="Order placed",
        )

        log.info("order.placed", order_id=str(order.id))
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def deliver_order(
        self, order_id: Identifier, actor_id: Identifier = None, notes: str = ""
    ) -> Order:
        """Mark an order as delivered.

        Role checks (expeditor only) happen before this call; any caller
        reaching here may deliver any non-canceled order.

        Raises:
            OrderRejected: ``INVALID_ORDER_ID`` or ``ORDER_CANCELED``.  Delivering
                a delivered or returned order is an accepted no-op.
        """
        order = self._lock_order(order_id)
        target = self._resolve(order, OrderAction.DELIVER)
        return self._transition(order, target, actor_id, notes or "Order delivered")

    @transaction.atomic
    def cancel_order(
        self, order_id: Identifier, requester_id: Identifier, notes: str = ""
    ) -> Order:
        """Cancel an order on behalf of its owner.

        No stock is released: a cancellation only flags the order.

        Raises:
            OrderRejected: ``INVALID_ORDER_ID``, ``ORDER_ALREADY_DELIVERED``,
                or ``INVALID_OPERATION`` when the requester is not the owner.
        """
        order = self._lock_order(order_id)
        target = self._resolve(order, OrderAction.CANCEL)

        if not _same_identity(order.customer_id, requester_id):
            logger.warning(
                "order.cancel_not_owner",
                order_id=str(order.id),
                requester_id=str(requester_id),
            )
            raise OrderRejected(
                ErrorKind.INVALID_OPERATION, "Only the order owner may cancel it."
            )

        return self._transition(
            order, target, requester_id, notes or "Order canceled"
        )

    @transaction.atomic
    def return_order(
        self, order_id: Identifier, requester_id: Identifier = None, notes: str = ""
    ) -> Order:
        """Return a delivered order and restore its stock.

        Each item's captured quantity goes back to its product, in product
        id order, inside the same transaction as the state change.

        Raises:
            OrderRejected: ``INVALID_ORDER_ID``, ``ORDER_NOT_DELIVERED_YET``,
                ``ORDER_CANCELED``, or ``INVALID_OPERATION`` for an order
                that was already returned.
        """
        order = self._lock_order(order_id)
        target = self._resolve(order, OrderAction.RETURN)

        for item in sorted(order.items.all(), key=lambda i: str(i.product_id)):
            self._ledger.increment(item.product_id, item.quantity)

        return self._transition(
            order, target, requester_id, notes or "Order returned"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Identifier) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderRejected: ``INVALID_ORDER_ID`` if the order does not exist.
        """
        if order_id is None:
            raise OrderRejected(ErrorKind.INVALID_ORDER_ID)
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderRejected(
                ErrorKind.INVALID_ORDER_ID, f"Order {order_id} not found."
            )
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Return orders matching *filters* as an unevaluated queryset.

        Ordering and pagination are left to the caller.
        """
        queryset = self._order_repo.queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_order(self, order_id: Identifier) -> Order:
        if order_id is None:
            raise OrderRejected(ErrorKind.INVALID_ORDER_ID, "Order id is required.")
        order = self._order_repo.get_for_update(str(order_id))
        if order is None:
            raise OrderRejected(
                ErrorKind.INVALID_ORDER_ID, f"Order {order_id} not found."
            )
        return order

    @staticmethod
    def _resolve(order: Order, action: str) -> str:
        try:
            return order.resolve_transition(action)
        except OrderRejected as exc:
            logger.warning(
                "order.transition_rejected",
                order_id=str(order.id),
                state=order.state,
                action=str(action),
                kind=exc.kind.value,
            )
            raise

    def _transition(
        self, order: Order, target: str, actor_id: Identifier, notes: str
    ) -> Order:
        log = logger.bind(order_id=str(order.id), old_state=order.state, new_state=target)

        if order.state == target:
            log.info("order.transition_noop")
            return self._order_repo.get_by_id(str(order.id)) or order

        old_state = order.state
        order.state = target
        event: DomainEvent = _TRANSITION_EVENTS[target](aggregate_id=order.id)
        order.add_domain_event(event)
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            new_state=target,
            old_state=old_state,
            actor_id=self._known_actor(actor_id),
            notes=notes,
        )

        log.info("order.state_changed")
        return self._order_repo.get_by_id(str(order.id)) or order

    def _known_actor(self, actor_id: Identifier) -> Optional[UUID]:
        if actor_id is None:
            return None
        account = self._account_repo.get_by_id(str(actor_id))
        return account.id if account is not None else None
