"""Cart serializers for read and write operations."""

from rest_framework import serializers

from .models import CartItem


class CartItemReadSerializer(serializers.ModelSerializer):
    """Storefront shape of a cart row: `id` is the composite `productId[-variantId]`."""

    id = serializers.CharField(source="composite_id", read_only=True)
    name = serializers.CharField(source="product_name", read_only=True)
    image = serializers.CharField(source="product_image", read_only=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "name",
            "price",
            "image",
            "quantity",
            "stripe_price_id",
        ]


class CartItemWriteSerializer(serializers.Serializer):
    """One entry of a cart replacement payload."""

    id = serializers.CharField(max_length=511)
    name = serializers.CharField(max_length=255)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    image = serializers.CharField(max_length=1024, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    stripe_price_id = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True, default="")

    def validate_id(self, value):
        if not value.strip() or value.startswith("-"):
            raise serializers.ValidationError("Item id must start with a product id.")
        return value.strip()


class CartReplaceSerializer(serializers.Serializer):
    """Write serializer for replacing the whole cart."""

    items = CartItemWriteSerializer(many=True, allow_empty=True)
