from uuid import uuid4

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.accounts.models import Account, AccountRole
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderLifecycleService
from modules.products.ledger import StockLedger
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def make_account():
    """Factory for accounts, each backed by its own Django user."""
    User = get_user_model()

    def _make(role=AccountRole.CLIENT, *, is_active=True, with_user=True):
        tag = uuid4().hex[:8]
        prefix = str(role).lower()
        user = None
        if with_user:
            user = User.objects.create_user(
                username=f"{prefix}-{tag}", password="testpass123"
            )
        return Account.objects.create(
            user=user,
            name=f"{prefix.title()} {tag}",
            email=f"{prefix}-{tag}@example.com",
            role=role,
            is_active=is_active,
        )

    return _make


@pytest.fixture()
def make_product():
    def _make(stock=10, sku=None, name="Test Product"):
        return Product.objects.create(
            sku=sku or f"SKU-{uuid4().hex[:8]}",
            name=name,
            stock_quantity=stock,
        )

    return _make


@pytest.fixture()
def service():
    return OrderLifecycleService(
        order_repository=OrderDjangoRepository(),
        account_repository=AccountDjangoRepository(),
        stock_ledger=StockLedger(ProductDjangoRepository()),
    )


@pytest.fixture()
def client_for():
    """Return an APIClient authenticated as the given account's user."""

    def _client(account):
        client = APIClient()
        client.force_authenticate(user=account.user)
        return client

    return _client
