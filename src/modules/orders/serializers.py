"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderStateHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class PlaceOrderSerializer(serializers.Serializer):
    """Validates the placement payload shape.

    ``products`` maps product ids to quantities.  Id and quantity
    semantics (valid UUIDs, positive quantities) are checked when the
    payload is translated into a ``PlaceOrderDTO``.
    """

    products = serializers.DictField(child=serializers.IntegerField())
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class TransitionSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "quantity",
        ]
        read_only_fields = fields


class StateHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order state history records."""

    class Meta:
        model = OrderStateHistory
        fields = [
            "id",
            "old_state",
            "new_state",
            "actor_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with flags, items and history."""

    delivered = serializers.BooleanField(read_only=True)
    canceled = serializers.BooleanField(read_only=True)
    returned = serializers.BooleanField(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    state_history = StateHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "state",
            "delivered",
            "canceled",
            "returned",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "state_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "state",
            "created_at",
        ]
        read_only_fields = fields
