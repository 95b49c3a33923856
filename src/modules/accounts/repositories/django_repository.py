"""Django ORM implementation of the Account repository.

Error handling follows the Null Object pattern: methods return ``None``
instead of raising -- the Service Layer decides how to translate a
missing account into a rejection.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.accounts.models import Account
from modules.accounts.repositories.interfaces import IAccountRepository

logger = structlog.get_logger(__name__)


class AccountDjangoRepository(IAccountRepository):
    """Concrete Account repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Account]:
        """Retrieve an account by primary key.

        Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID).
        """
        try:
            return Account.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Account]:
        queryset = Account.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Account) -> Account:
        """Persist (create or update) an account."""
        is_new = entity._state.adding
        entity.save()
        logger.info("account.saved", account_id=str(entity.id), is_new=is_new)
        return entity

    def get_for_user(self, user: Any) -> Optional[Account]:
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return Account.objects.filter(user_id=user.pk).first()
