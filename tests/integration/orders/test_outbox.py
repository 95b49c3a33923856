"""Integration tests for the outbox: rows written by the lifecycle and
relayed to the order event handlers."""

from __future__ import annotations

import logging

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.core.tasks import publish_outbox_events
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.exceptions import OrderRejected

pytestmark = pytest.mark.integration


@pytest.fixture()
def customer(make_account):
    return make_account()


@pytest.fixture()
def product(make_product):
    return make_product(stock=5, sku="OUTBOX-1")


@pytest.fixture()
def order(service, customer, product):
    return service.place_order(
        PlaceOrderDTO(customer_id=customer.id, items={product.id: 1}, notes="Outbox")
    )


def test_full_lifecycle_writes_one_event_per_transition(service, customer, order):
    service.deliver_order(order.id)
    service.deliver_order(order.id)
    service.return_order(order.id, customer.id)

    events = OutboxEvent.objects.filter(aggregate_id=str(order.id))
    assert sorted(e.event_type for e in events) == [
        "OrderDelivered",
        "OrderPlaced",
        "OrderReturned",
    ]
    assert all(e.status == EventStatus.PENDING for e in events)
    assert all(e.payload["aggregate_id"] == str(order.id) for e in events)


def test_rejected_transition_writes_no_event(service, order):
    with pytest.raises(OrderRejected):
        service.return_order(order.id)

    assert OutboxEvent.objects.filter(aggregate_id=str(order.id)).count() == 1


def test_relay_reaches_order_handlers(service, customer, order, caplog):
    service.cancel_order(order.id, customer.id)

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        result = publish_outbox_events()

    assert result == {"published": 2, "failed": 0}
    messages = [record.getMessage() for record in caplog.records]
    assert any("order.event.placed" in m for m in messages)
    assert any("order.event.canceled" in m for m in messages)
    assert not OutboxEvent.objects.pending().exists()
