"""Role policy for order actions.

This is the authorization layer in front of the order lifecycle: it
decides *who* may invoke each action, while ``OrderLifecycleService``
decides whether the action is legal for the order's current state.
Any mismatch surfaces as ``INVALID_OPERATION``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from modules.accounts.models import AccountRole
from modules.orders.constants import OrderAction
from modules.orders.exceptions import ErrorKind, OrderRejected

if TYPE_CHECKING:
    from modules.accounts.models import Account

logger = structlog.get_logger(__name__)

ROLE_POLICY: dict[str, frozenset[str]] = {
    OrderAction.PLACE: frozenset({AccountRole.CLIENT}),
    OrderAction.DELIVER: frozenset({AccountRole.EXPEDITOR}),
    OrderAction.CANCEL: frozenset({AccountRole.CLIENT}),
    OrderAction.RETURN: frozenset({AccountRole.CLIENT}),
}


def is_allowed(account: Optional[Account], action: str) -> bool:
    if account is None or not account.is_active:
        return False
    return account.role in ROLE_POLICY.get(action, frozenset())


def authorize(account: Optional[Account], action: str) -> Account:
    """Return *account* if its role may perform *action*.

    Raises:
        OrderRejected: ``INVALID_OPERATION`` when there is no active account
            or its role is not allowed.
    """
    if not is_allowed(account, action):
        logger.warning(
            "order.authorization_denied",
            action=str(action),
            account_id=str(account.id) if account is not None else None,
            role=getattr(account, "role", None),
        )
        raise OrderRejected(ErrorKind.INVALID_OPERATION)
    return account
