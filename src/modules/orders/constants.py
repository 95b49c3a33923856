"""Order domain constants.

Defines the lifecycle states, the actions that drive them and the
transition table of the order state machine.

For each state, an action either maps to a target state in
``VALID_TRANSITIONS`` or to an ``ErrorKind`` in ``REJECTED_TRANSITIONS``;
the two tables together cover every (state, action) pair.  A target equal
to the current state is an accepted no-op.
"""

from django.db import models

from modules.orders.exceptions import ErrorKind


class OrderState(models.TextChoices):
    PENDING = "PENDING", "Pending"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELED = "CANCELED", "Canceled"
    RETURNED = "RETURNED", "Returned"


class OrderAction(models.TextChoices):
    PLACE = "PLACE", "Place"
    DELIVER = "DELIVER", "Deliver"
    CANCEL = "CANCEL", "Cancel"
    RETURN = "RETURN", "Return"


VALID_TRANSITIONS: dict[str, dict[str, str]] = {
    OrderState.PENDING: {
        OrderAction.DELIVER: OrderState.DELIVERED,
        OrderAction.CANCEL: OrderState.CANCELED,
    },
    OrderState.DELIVERED: {
        OrderAction.DELIVER: OrderState.DELIVERED,
        OrderAction.RETURN: OrderState.RETURNED,
    },
    OrderState.CANCELED: {
        OrderAction.CANCEL: OrderState.CANCELED,
    },
    OrderState.RETURNED: {
        OrderAction.DELIVER: OrderState.RETURNED,
    },
}

REJECTED_TRANSITIONS: dict[str, dict[str, ErrorKind]] = {
    OrderState.PENDING: {
        OrderAction.RETURN: ErrorKind.ORDER_NOT_DELIVERED_YET,
    },
    OrderState.DELIVERED: {
        OrderAction.CANCEL: ErrorKind.ORDER_ALREADY_DELIVERED,
    },
    OrderState.CANCELED: {
        OrderAction.DELIVER: ErrorKind.ORDER_CANCELED,
        OrderAction.RETURN: ErrorKind.ORDER_CANCELED,
    },
    OrderState.RETURNED: {
        OrderAction.CANCEL: ErrorKind.ORDER_ALREADY_DELIVERED,
        # A second return would restock twice; no state kind names it.
        OrderAction.RETURN: ErrorKind.INVALID_OPERATION,
    },
}

# States in which the goods have reached the customer.
DELIVERED_STATES: set[str] = {OrderState.DELIVERED, OrderState.RETURNED}

REJECTION_MESSAGES: dict[tuple[str, str], str] = {
    (OrderState.RETURNED, OrderAction.RETURN): "The order has already been returned.",
}

ORDER_NUMBER_MAX_RETRIES = 5
