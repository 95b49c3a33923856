"""Order, OrderItem, and OrderStateHistory models.

Business rules implemented:
- The lifecycle is a single ``state`` enum (PENDING, DELIVERED, CANCELED,
  RETURNED); the ``delivered`` / ``canceled`` / ``returned`` flags are
  derived from it, so "returned but never delivered" or "canceled after
  delivery" cannot be stored.
- Legal transitions come from the tables in ``constants``; the service
  layer applies them under a row lock.
- Each state change generates an ``OrderStateHistory`` record.
- OrderItem captures the quantity committed at placement time; returns
  restore exactly that quantity.
- Order number auto-generated as human-readable identifier.
- Customer and product FKs use PROTECT: orders are never deleted here.
"""

from __future__ import annotations

import secrets
from typing import Any

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    DELIVERED_STATES,
    ORDER_NUMBER_MAX_RETRIES,
    REJECTED_TRANSITIONS,
    REJECTION_MESSAGES,
    VALID_TRANSITIONS,
    OrderState,
)
from modules.orders.exceptions import ErrorKind, OrderRejected
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API lookups.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        "accounts.Account",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    state: models.CharField = models.CharField(
        max_length=20,
        choices=OrderState.choices,
        default=OrderState.PENDING,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["state"], name="orders_state_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # Lifecycle flags (read-only views of ``state``)
    # ------------------------------------------------------------------

    @property
    def delivered(self) -> bool:
        return self.state in DELIVERED_STATES

    @property
    def canceled(self) -> bool:
        return self.state == OrderState.CANCELED

    @property
    def returned(self) -> bool:
        return self.state == OrderState.RETURNED

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    def resolve_transition(self, action: str) -> str:
        """Return the state *action* leads to from the current state.

        Raises:
            OrderRejected: the action is not accepted from this state.
        """
        target = VALID_TRANSITIONS.get(self.state, {}).get(action)
        if target is not None:
            return target
        kind = REJECTED_TRANSITIONS.get(self.state, {}).get(
            action, ErrorKind.INVALID_OPERATION
        )
        raise OrderRejected(kind, REJECTION_MESSAGES.get((self.state, action)))

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.order_number} ({self.state})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``quantity`` is the amount of stock committed when the order was
    placed.  It is never recomputed, and a return restores exactly this
    amount even if the product stock changed in the meantime.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
            models.UniqueConstraint(
                fields=["order", "product"],
                name="order_items_unique_product",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity}"


class OrderStateHistory(BaseModel):
    """Append-only audit trail for order state transitions.

    Each record captures a single state change with the responsible
    account and optional notes.  ``actor`` is nullable: ``None`` means the
    change was performed by the system (e.g. seed data).
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="state_history",
    )
    old_state: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderState.choices,
        null=True,
        blank=True,
    )
    new_state: models.CharField = models.CharField(
        max_length=20,
        choices=OrderState.choices,
    )
    actor: models.ForeignKey = models.ForeignKey(
        "accounts.Account",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_state_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_state} -> {self.new_state}"
