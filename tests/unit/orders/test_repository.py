"""Unit tests for OrderDjangoRepository.

Covers:
- Aggregate creation (Order + OrderItems).
- Reads with eager loading, Null Object returns for bad ids.
- save() flushing domain events to the outbox.
- History rows.
"""

from __future__ import annotations

import uuid

import pytest

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderState
from modules.orders.events import OrderDelivered
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.repositories.interfaces import IOrderRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


@pytest.fixture()
def customer(make_account):
    return make_account()


@pytest.fixture()
def order(repo, customer, make_product):
    first = make_product(stock=5)
    second = make_product(stock=5)
    return repo.create(
        {
            "customer_id": customer.id,
            "items": [
                {"product_id": first.id, "quantity": 1},
                {"product_id": second.id, "quantity": 4},
            ],
            "notes": "repo",
        }
    )


def test_is_instance_of_interface(repo):
    assert isinstance(repo, IOrderRepository)


class TestCreate:
    def test_creates_order_with_items(self, order):
        assert order.state == OrderState.PENDING
        assert order.notes == "repo"
        assert sorted(item.quantity for item in order.items.all()) == [1, 4]

    def test_create_does_not_touch_stock(self, order):
        for item in order.items.select_related("product"):
            assert item.product.stock_quantity == 5


class TestRead:
    def test_get_by_id(self, repo, order):
        assert repo.get_by_id(str(order.id)) == order

    def test_get_for_update(self, repo, order):
        locked = repo.get_for_update(str(order.id))
        assert locked == order
        assert len(locked.items.all()) == 2

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", str(uuid.uuid4())])
    def test_bad_ids_return_none(self, repo, bad_id):
        assert repo.get_by_id(bad_id) is None
        assert repo.get_for_update(bad_id) is None

    def test_list_with_filters(self, repo, order, make_account):
        assert repo.list({"state": OrderState.PENDING}) == [order]
        assert repo.list({"customer_id": make_account().id}) == []


class TestSave:
    def test_flushes_domain_events_to_outbox(self, repo, order):
        order.state = OrderState.DELIVERED
        order.add_domain_event(OrderDelivered(aggregate_id=order.id))

        repo.save(order)

        outbox = OutboxEvent.objects.get(aggregate_id=str(order.id))
        assert outbox.event_type == "OrderDelivered"
        assert outbox.topic == "orders"
        assert outbox.payload["aggregate_id"] == str(order.id)
        assert order.domain_events == []

    def test_save_without_events_writes_nothing(self, repo, order):
        repo.save(order)
        assert OutboxEvent.objects.count() == 0


def test_add_history(repo, order, customer):
    history = repo.add_history(
        order_id=order.id,
        new_state=OrderState.CANCELED,
        old_state=OrderState.PENDING,
        actor_id=customer.id,
        notes="by owner",
    )

    assert history.order_id == order.id
    assert history.actor_id == customer.id
    assert list(order.state_history.all()) == [history]
