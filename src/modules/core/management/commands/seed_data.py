from __future__ import annotations

import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.accounts.models import Account, AccountRole
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.exceptions import OrderRejected
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderLifecycleService
from modules.products.ledger import StockLedger
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

SEED_ACCOUNTS = [
    ("admin", "admin123", "Admin", "admin@example.com", AccountRole.ADMIN),
    ("expeditor", "expeditor123", "Eva Expeditor", "eva@example.com", AccountRole.EXPEDITOR),
    ("ana", "ana12345", "Ana Souza", "ana@example.com", AccountRole.CLIENT),
    ("bruno", "bruno12345", "Bruno Lima", "bruno@example.com", AccountRole.CLIENT),
    ("carla", "carla12345", "Carla Mendes", "carla@example.com", AccountRole.CLIENT),
]

CATALOG = [
    ("ELET-001", "Monitor 27\"", "Electronics"),
    ("ELET-002", "Mechanical Keyboard", "Electronics"),
    ("ELET-003", "Gaming Mouse", "Electronics"),
    ("ELET-004", "Notebook 14\"", "Electronics"),
    ("MOV-001", "Office Desk", "Furniture"),
    ("MOV-002", "Ergonomic Chair", "Furniture"),
    ("OFF-001", "A4 Paper", "Office"),
    ("OFF-002", "Blue Pen", "Office"),
    ("OFF-003", "Notebook", "Office"),
    ("OFF-004", "Stapler", "Office"),
]


class Command(BaseCommand):
    help = "Seed database with development accounts, products and orders."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=20,
            help="Number of orders to place (default: 20).",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        with transaction.atomic():
            accounts = self._seed_accounts()
            products = self._seed_products()
        orders_created = self._seed_orders(accounts, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"accounts={len(accounts)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_accounts(self) -> list[Account]:
        self.stdout.write("Creating accounts...")
        User = get_user_model()
        accounts: list[Account] = []
        for username, password, name, email, role in SEED_ACCOUNTS:
            user = User.objects.filter(username=username).first()
            if user is None:
                if role == AccountRole.ADMIN:
                    user = User.objects.create_superuser(username, password=password)
                else:
                    user = User.objects.create_user(username, password=password)
            account, _ = Account.objects.get_or_create(
                email=email,
                defaults={"user": user, "name": name, "role": role},
            )
            accounts.append(account)
        self.stdout.write(self.style.SUCCESS("Creating accounts... Done!"))
        return accounts

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for sku, name, category in CATALOG:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "description": category,
                    "stock_quantity": random.randint(20, 200),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self, accounts: list[Account], products: list[Product], count: int
    ) -> int:
        """Place orders through the lifecycle service and move some along."""
        self.stdout.write("Creating orders...")
        clients = [a for a in accounts if a.role == AccountRole.CLIENT]
        expeditor = next(
            (a for a in accounts if a.role == AccountRole.EXPEDITOR), None
        )
        if not clients or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no clients/products)."))
            return 0
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Orders already present, skipping."))
            return 0

        service = OrderLifecycleService(
            order_repository=OrderDjangoRepository(),
            account_repository=AccountDjangoRepository(),
            stock_ledger=StockLedger(ProductDjangoRepository()),
        )

        created = 0
        for _ in range(count):
            client = random.choice(clients)
            picked = random.sample(products, k=random.randint(1, 3))
            dto = PlaceOrderDTO(
                customer_id=client.id,
                items={product.id: random.randint(1, 3) for product in picked},
                notes="Seed order",
            )
            try:
                order = service.place_order(dto)
                outcome = random.random()
                if outcome < 0.5 and expeditor is not None:
                    service.deliver_order(order.id, actor_id=expeditor.id)
                    if outcome < 0.15:
                        service.return_order(order.id, requester_id=client.id)
                elif outcome < 0.7:
                    service.cancel_order(order.id, client.id)
            except OrderRejected as exc:
                self.stdout.write(self.style.WARNING(f"Skipped order: {exc.message}"))
                continue
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
