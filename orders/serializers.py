"""DRF serializers for orders and checkout requests."""

from cart.serializers import CartItemWriteSerializer
from rest_framework import serializers

from .models import Order


class OrderSerializer(serializers.ModelSerializer):
    """Full order record for its owner."""

    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "stripe_session_id",
            "status",
            "customer_email",
            "customer_name",
            "total_amount",
            "shipping_address",
            "items",
            "fulfillment_order_id",
            "created_at",
        ]
        read_only_fields = fields


class OrderSummarySerializer(serializers.ModelSerializer):
    """What the checkout success page may show to anyone holding the session id."""

    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, read_only=True)

    class Meta:
        model = Order
        fields = ["stripe_session_id", "status", "total_amount", "items", "created_at"]
        read_only_fields = fields


class CheckoutRequestSerializer(serializers.Serializer):
    items = CartItemWriteSerializer(many=True, allow_empty=False)
    customerEmail = serializers.EmailField()
