"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when an order is placed and its stock reserved."""


@dataclass(frozen=True)
class OrderDelivered(DomainEvent):
    """Raised when an order is delivered."""


@dataclass(frozen=True)
class OrderCanceled(DomainEvent):
    """Raised when an order is canceled by its owner."""


@dataclass(frozen=True)
class OrderReturned(DomainEvent):
    """Raised when a delivered order is returned and its stock restored."""
