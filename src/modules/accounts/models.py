"""Account model: the shop identity behind a Django auth user.

Business rules implemented:
- Every account carries exactly one role (``ADMIN``, ``CLIENT``,
  ``EXPEDITOR``); the role decides which order actions it may trigger.
- Inactive accounts cannot place or transition orders.
- Email is unique in the system.
- Accounts are never deleted by the order lifecycle (orders keep a
  PROTECTed reference to their owner).
"""

from __future__ import annotations

import structlog
from django.conf import settings
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class AccountRole(models.TextChoices):
    ADMIN = "ADMIN", "Administrator"
    CLIENT = "CLIENT", "Client"
    EXPEDITOR = "EXPEDITOR", "Expeditor"


class Account(BaseModel):
    """Account aggregate root.

    ``user`` is optional so service-level code and fixtures can work
    with accounts that never log in; API callers are always resolved
    through ``request.user.account``.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="account",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    role = models.CharField(
        max_length=20,
        choices=AccountRole.choices,
        default=AccountRole.CLIENT,
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "accounts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role"], name="accounts_role_idx"),
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)
        if is_new:
            logger.info("account.created", account_id=str(self.id), role=self.role)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"
