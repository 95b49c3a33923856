"""Tests for the ``seed_data`` management command."""

from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import call_command

from modules.accounts.models import Account, AccountRole
from modules.orders.models import Order
from modules.products.models import Product

pytestmark = pytest.mark.unit


def _seed(**options) -> str:
    out = StringIO()
    call_command("seed_data", stdout=out, **options)
    return out.getvalue()


def test_seeds_accounts_for_every_role():
    _seed(orders=0)

    roles = set(Account.objects.values_list("role", flat=True))
    assert roles == {AccountRole.ADMIN, AccountRole.CLIENT, AccountRole.EXPEDITOR}
    assert all(account.user_id for account in Account.objects.all())
    assert Product.objects.count() == 10


def test_places_orders_through_the_lifecycle():
    output = _seed(orders=5)

    assert "Seed completed" in output
    assert Order.objects.count() == 5
    assert all(order.state_history.exists() for order in Order.objects.all())


def test_is_idempotent():
    _seed(orders=3)
    stock = dict(Product.objects.values_list("sku", "stock_quantity"))

    _seed(orders=3)

    assert Account.objects.count() == 5
    assert Order.objects.count() == 3
    assert dict(Product.objects.values_list("sku", "stock_quantity")) == stock
