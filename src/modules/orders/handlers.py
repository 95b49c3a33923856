"""Event handlers for Orders domain events.

Subscribed to the in-process bus in ``OrdersConfig.ready``; the outbox
relay feeds them.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCanceled,
    OrderDelivered,
    OrderPlaced,
    OrderReturned,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info("order.event.placed", order_id=str(event.aggregate_id))


class OrderDeliveredHandler(IEventHandler[OrderDelivered]):
    def handle(self, event: OrderDelivered) -> None:
        logger.info("order.event.delivered", order_id=str(event.aggregate_id))


class OrderCanceledHandler(IEventHandler[OrderCanceled]):
    def handle(self, event: OrderCanceled) -> None:
        logger.info("order.event.canceled", order_id=str(event.aggregate_id))


class OrderReturnedHandler(IEventHandler[OrderReturned]):
    def handle(self, event: OrderReturned) -> None:
        logger.info("order.event.returned", order_id=str(event.aggregate_id))


order_placed_handler = OrderPlacedHandler()
order_delivered_handler = OrderDeliveredHandler()
order_canceled_handler = OrderCanceledHandler()
order_returned_handler = OrderReturnedHandler()
