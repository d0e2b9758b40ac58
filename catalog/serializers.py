"""Serializers for storefront products (read-only)."""

from rest_framework import serializers


class CatalogVariantSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    color = serializers.CharField()
    size = serializers.CharField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False)
    stripe_product_id = serializers.CharField()
    stripe_price_id = serializers.CharField(allow_blank=True)
    printful_variant_id = serializers.CharField(allow_blank=True)
    is_available = serializers.BooleanField()


class CatalogProductSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False)
    image = serializers.CharField()
    category = serializers.CharField(allow_blank=True)
    stripe_product_id = serializers.CharField()
    stripe_price_id = serializers.CharField(allow_blank=True)
    printful_product_id = serializers.CharField(allow_blank=True)
    inventory_count = serializers.IntegerField()
    is_active = serializers.BooleanField()
    variants = CatalogVariantSerializer(many=True)


class SyncedProductSerializer(serializers.Serializer):
    name = serializers.CharField()
    stripe_product_id = serializers.CharField()
    stripe_price_id = serializers.CharField(allow_blank=True)
    printful_variant_id = serializers.CharField()
    created = serializers.BooleanField()


class SyncResultSerializer(serializers.Serializer):
    synced = SyncedProductSerializer(many=True)
    deleted = serializers.IntegerField()
    total = serializers.IntegerField()
