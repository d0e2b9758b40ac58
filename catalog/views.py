"""Catalog endpoints: the storefront product list and the admin product sync."""

from common.exceptions import ShopError
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from users.permissions import IsShopAdmin

from .serializers import CatalogProductSerializer, SyncResultSerializer
from .services import fetch_products, sync_printful_products

ErrorSerializer = inline_serializer(name="CatalogError", fields={"detail": rf_serializers.CharField()})


class ProductListView(APIView):
    """Active products grouped into storefront products with variants."""

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "catalog"

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="List products",
        description=(
            "Reads active products from Stripe and groups SKUs into products. "
            "Any upstream failure returns 500 with no partial list."
        ),
        responses={200: CatalogProductSerializer(many=True), 500: ErrorSerializer},
        examples=[
            OpenApiExample(
                "Products",
                value=[
                    {
                        "id": "prod_A",
                        "name": "KSO Hoodie",
                        "description": "KSO KSO Hoodie",
                        "price": 45.0,
                        "image": "https://files.example.com/hoodie.png",
                        "category": "Apparel",
                        "stripe_product_id": "prod_A",
                        "stripe_price_id": "price_A",
                        "printful_product_id": "101",
                        "inventory_count": 999,
                        "is_active": True,
                        "variants": [
                            {
                                "id": "prod_A",
                                "name": "Black / M",
                                "color": "Black",
                                "size": "M",
                                "price": 45.0,
                                "stripe_product_id": "prod_A",
                                "stripe_price_id": "price_A",
                                "printful_variant_id": "5001",
                                "is_available": True,
                            }
                        ],
                    }
                ],
                response_only=True,
            )
        ],
    )
    def get(self, request):
        try:
            products = fetch_products()
        except ShopError as exc:
            return Response({"detail": exc.detail}, status=exc.status_code)
        return Response(CatalogProductSerializer(products, many=True).data, status=status.HTTP_200_OK)


class ProductSyncView(APIView):
    """Push Printful's store products into Stripe (shop admins only)."""

    permission_classes = [IsShopAdmin]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "catalog_sync"

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Sync products from Printful",
        request=None,
        responses={200: SyncResultSerializer, 403: ErrorSerializer, 502: ErrorSerializer},
        examples=[OpenApiExample("Synced", value={"synced": [], "deleted": 0, "total": 0}, response_only=True)],
    )
    def post(self, request):
        try:
            result = sync_printful_products()
        except ShopError as exc:
            return Response({"detail": exc.detail}, status=exc.status_code)
        return Response(SyncResultSerializer(result).data, status=status.HTTP_200_OK)
