"""Account URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.accounts.views import CurrentAccountView

urlpatterns = [
    path("me", CurrentAccountView.as_view(), name="current_account"),
]
