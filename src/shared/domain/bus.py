"""Domain bus interfaces for in-process event handling.

Order lifecycle events (placed, delivered, canceled, returned) are relayed
from the outbox to subscribers through an ``IEventBus``.
"""

from __future__ import annotations

from typing import Generic, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    """Handler interface for domain events."""

    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Event bus interface.

    ``subscribe`` is keyed by the concrete event class; ``publish`` only
    reaches handlers registered for ``type(event)``.
    """

    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
