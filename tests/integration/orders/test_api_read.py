"""Integration tests for Order list and retrieve endpoints.

Covers:
- Clients only see their own orders; expeditors and admins see all.
- Filters (state, customer) and pagination.
- Retrieve with items and history; 404 for unknown, malformed or
  foreign ids.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.accounts.models import AccountRole
from modules.orders.dtos import PlaceOrderDTO

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def alice(make_account):
    return make_account(role=AccountRole.CLIENT)


@pytest.fixture()
def bob(make_account):
    return make_account(role=AccountRole.CLIENT)


@pytest.fixture()
def expeditor(make_account):
    return make_account(role=AccountRole.EXPEDITOR)


@pytest.fixture()
def product(make_product):
    return make_product(stock=100, sku="READ-1")


@pytest.fixture()
def orders(service, alice, bob, product):
    def place(account):
        return service.place_order(
            PlaceOrderDTO(customer_id=account.id, items={product.id: 1})
        )

    alice_orders = [place(alice), place(alice)]
    bob_orders = [place(bob)]
    service.deliver_order(alice_orders[0].id)
    return {"alice": alice_orders, "bob": bob_orders}


def _ids(response):
    return {row["id"] for row in response.json()["results"]}


class TestListOrders:
    def test_client_sees_own_orders(self, client_for, alice, orders):
        response = client_for(alice).get(URL)

        assert response.status_code == 200
        assert _ids(response) == {str(o.id) for o in orders["alice"]}

    def test_expeditor_sees_all_orders(self, client_for, expeditor, orders):
        response = client_for(expeditor).get(URL)

        assert response.json()["count"] == 3

    def test_filter_by_state(self, client_for, expeditor, orders):
        response = client_for(expeditor).get(URL, {"state": "DELIVERED"})

        assert _ids(response) == {str(orders["alice"][0].id)}

    def test_filter_by_customer(self, client_for, expeditor, bob, orders):
        response = client_for(expeditor).get(URL, {"customer": str(bob.id)})

        assert _ids(response) == {str(orders["bob"][0].id)}

    def test_client_cannot_widen_scope_with_filter(self, client_for, alice, bob, orders):
        response = client_for(alice).get(URL, {"customer": str(bob.id)})

        assert response.json()["count"] == 0

    def test_pagination(self, client_for, expeditor, orders):
        response = client_for(expeditor).get(URL, {"page_size": 2})

        data = response.json()
        assert data["count"] == 3
        assert len(data["results"]) == 2
        assert data["next"] is not None

    def test_user_without_account_sees_nothing(self, api_client, django_user_model, orders):
        user = django_user_model.objects.create_user(username="nobody", password="pw123456")
        api_client.force_authenticate(user=user)

        response = api_client.get(URL)

        assert response.json()["count"] == 0

    def test_requires_authentication(self, api_client):
        assert api_client.get(URL).status_code == 401


class TestRetrieveOrder:
    def test_owner_retrieves_with_items_and_history(self, client_for, alice, orders):
        order = orders["alice"][0]

        response = client_for(alice).get(f"{URL}{order.id}/")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(order.id)
        assert data["delivered"] is True
        assert data["items"][0]["product_sku"] == "READ-1"
        assert {h["new_state"] for h in data["state_history"]} == {"PENDING", "DELIVERED"}

    def test_expeditor_retrieves_any_order(self, client_for, expeditor, orders):
        order = orders["bob"][0]
        assert client_for(expeditor).get(f"{URL}{order.id}/").status_code == 200

    def test_foreign_order_is_404_for_client(self, client_for, alice, orders):
        order = orders["bob"][0]

        response = client_for(alice).get(f"{URL}{order.id}/")

        assert response.status_code == 404
        assert response.json()["code"] == "INVALID_ORDER_ID"

    @pytest.mark.parametrize("order_id", [str(uuid4()), "not-a-uuid"])
    def test_unknown_or_malformed_id_is_404(self, client_for, expeditor, order_id):
        response = client_for(expeditor).get(f"{URL}{order_id}/")
        assert response.status_code == 404
