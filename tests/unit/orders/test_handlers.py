"""Unit tests for Orders event handlers and in-memory bus."""

from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from modules.orders.events import (
    OrderCanceled,
    OrderDelivered,
    OrderPlaced,
    OrderReturned,
)
from modules.orders.handlers import (
    OrderCanceledHandler,
    OrderDeliveredHandler,
    OrderPlacedHandler,
    OrderReturnedHandler,
)
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "handler_class, event_class, log_event",
    [
        (OrderPlacedHandler, OrderPlaced, "order.event.placed"),
        (OrderDeliveredHandler, OrderDelivered, "order.event.delivered"),
        (OrderCanceledHandler, OrderCanceled, "order.event.canceled"),
        (OrderReturnedHandler, OrderReturned, "order.event.returned"),
    ],
)
def test_handler_logs_event(caplog, handler_class, event_class, log_event):
    order_id = uuid4()

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler_class().handle(event_class(aggregate_id=order_id))

    messages = [record.getMessage() for record in caplog.records]
    assert any(log_event in m and str(order_id) in m for m in messages)


def test_in_memory_event_bus_routes_events():
    bus = InMemoryEventBus()
    received = []

    class RecordingHandler:
        def handle(self, event):
            received.append(event)

    handler = RecordingHandler()
    bus.subscribe(OrderDelivered, handler)

    delivered = OrderDelivered(aggregate_id=uuid4())
    bus.publish(delivered)
    bus.publish(OrderCanceled(aggregate_id=uuid4()))

    assert received == [delivered]


def test_subscribing_twice_delivers_once():
    bus = InMemoryEventBus()
    received = []

    class RecordingHandler:
        def handle(self, event):
            received.append(event)

    handler = RecordingHandler()
    bus.subscribe(OrderPlaced, handler)
    bus.subscribe(OrderPlaced, handler)

    bus.publish(OrderPlaced(aggregate_id=uuid4()))

    assert len(received) == 1
