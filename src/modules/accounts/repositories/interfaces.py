"""Account repository interface.

Extends ``IRepository[Account]`` with the look-ups the order lifecycle
and the API layer need to resolve the calling identity.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import Account


class IAccountRepository(IRepository["Account"]):
    """Repository contract for the Account aggregate."""

    @abstractmethod
    def get_for_user(self, user: Any) -> Optional[Account]:
        """Retrieve the account linked to an authenticated Django user."""
