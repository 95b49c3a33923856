"""Stock and lifecycle concurrency integration tests.

Proves that the row locks taken by ``OrderLifecycleService`` serialise
concurrent work on the same rows:

- Product with **stock = 5**, 10 threads each place an order for 1 unit:
  exactly 5 succeed, 5 fail with ``NOT_ENOUGH_STOCK``, final stock is 0.
- A delivered order returned from 5 threads at once restocks only once.

Uses ``TransactionTestCase`` so each thread sees committed data.  SQLite
has no row-level locking, so the threaded tests run only against a server
database (``DATABASE_URL=postgres://... pytest -m concurrency``).
``TestLockDiscipline`` runs everywhere: it checks that every row lock is
taken inside the transaction and that products are locked in id order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from unittest import skipIf

import django
import pytest
from django.db import connection
from django.test import TransactionTestCase

from modules.accounts.models import Account
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.exceptions import ErrorKind, OrderRejected
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderLifecycleService
from modules.products.ledger import StockLedger
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

logger = logging.getLogger(__name__)

INITIAL_STOCK = 5
NUM_WORKERS = 10


def _service() -> OrderLifecycleService:
    return OrderLifecycleService(
        order_repository=OrderDjangoRepository(),
        account_repository=AccountDjangoRepository(),
        stock_ledger=StockLedger(ProductDjangoRepository()),
    )


@pytest.mark.concurrency
@skipIf(connection.vendor == "sqlite", "needs SELECT FOR UPDATE row locking")
class TestLifecycleConcurrency(TransactionTestCase):
    def setUp(self):
        self.customer = Account.objects.create(
            name="Concurrency Customer", email="concurrency@example.com"
        )
        self.product = Product.objects.create(
            sku="GAMER-PC", name="Gamer PC", stock_quantity=INITIAL_STOCK
        )

    def _run(self, fn, workers=NUM_WORKERS):
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(fn, range(workers)))

    def _place_in_thread(self, thread_id: int) -> str:
        try:
            _service().place_order(
                PlaceOrderDTO(
                    customer_id=self.customer.id,
                    items={self.product.id: 1},
                    notes=f"Concurrency thread {thread_id}",
                )
            )
            return "success"
        except OrderRejected as exc:
            logger.warning("Thread %d: %s", thread_id, exc.kind.value)
            return exc.kind.value
        finally:
            django.db.connections.close_all()

    def test_concurrent_orders_exhaust_stock(self):
        results = self._run(self._place_in_thread)

        self.assertEqual(results.count("success"), INITIAL_STOCK)
        self.assertEqual(
            results.count(ErrorKind.NOT_ENOUGH_STOCK.value), NUM_WORKERS - INITIAL_STOCK
        )
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 0)

    def test_concurrent_returns_restock_once(self):
        order = _service().place_order(
            PlaceOrderDTO(customer_id=self.customer.id, items={self.product.id: 2})
        )
        _service().deliver_order(order.id)

        def return_in_thread(thread_id: int) -> str:
            try:
                _service().return_order(order.id, self.customer.id)
                return "success"
            except OrderRejected as exc:
                return exc.kind.value
            finally:
                django.db.connections.close_all()

        results = self._run(return_in_thread, workers=5)

        self.assertEqual(results.count("success"), 1)
        self.assertEqual(results.count(ErrorKind.INVALID_OPERATION.value), 4)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, INITIAL_STOCK)


class _LockRecorder:
    """Records each ``get_for_update`` call and whether a transaction was open."""

    def __init__(self):
        self.locks = []

    def get_for_update(self, id):
        self.locks.append((id, connection.in_atomic_block))
        return super().get_for_update(id)


class _RecordingProductRepository(_LockRecorder, ProductDjangoRepository):
    pass


class _RecordingOrderRepository(_LockRecorder, OrderDjangoRepository):
    pass


class TestLockDiscipline(TransactionTestCase):
    """Row locks are taken inside the unit of work, on every database."""

    def setUp(self):
        self.customer = Account.objects.create(
            name="Lock Customer", email="locks@example.com"
        )
        self.first = Product.objects.create(sku="LOCK-A", name="A", stock_quantity=5)
        self.second = Product.objects.create(sku="LOCK-B", name="B", stock_quantity=5)
        self.products = _RecordingProductRepository()
        self.orders = _RecordingOrderRepository()
        self.service = OrderLifecycleService(
            order_repository=self.orders,
            account_repository=AccountDjangoRepository(),
            stock_ledger=StockLedger(self.products),
        )

    def _place(self):
        return self.service.place_order(
            PlaceOrderDTO(
                customer_id=self.customer.id,
                items={self.second.id: 1, self.first.id: 2},
            )
        )

    def test_place_order_locks_products_in_id_order(self):
        self.assertFalse(connection.in_atomic_block)

        self._place()

        locked_ids = [product_id for product_id, _ in self.products.locks]
        self.assertEqual(locked_ids, sorted([str(self.first.id), str(self.second.id)]))
        self.assertTrue(all(in_atomic for _, in_atomic in self.products.locks))
        self.assertFalse(connection.in_atomic_block)

    def test_transitions_lock_the_order_row(self):
        order = self._place()
        other = self._place()

        self.service.deliver_order(order.id)
        self.service.return_order(order.id, self.customer.id)
        self.service.cancel_order(other.id, self.customer.id)

        self.assertEqual(
            [order_id for order_id, _ in self.orders.locks],
            [str(order.id), str(order.id), str(other.id)],
        )
        self.assertTrue(all(in_atomic for _, in_atomic in self.orders.locks))

    def test_rejection_rolls_back_earlier_decrements(self):
        with self.assertRaises(OrderRejected):
            self.service.place_order(
                PlaceOrderDTO(
                    customer_id=self.customer.id,
                    items={self.first.id: 1, self.second.id: 50},
                )
            )

        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual((self.first.stock_quantity, self.second.stock_quantity), (5, 5))
