"""Account DRF serializers (read-only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import Account


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = ["id", "name", "email", "role", "is_active", "created_at"]
        read_only_fields = fields
