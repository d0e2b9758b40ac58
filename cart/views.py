"""DRF views for cart operations.

All endpoints act on the authenticated member's own cart. Identity comes
from a JWT, the session, or the `X-User-ID` fallback header when enabled.
"""

import logging

from common.exceptions import StorageUnavailable
from django.db import DatabaseError
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import CartItemReadSerializer, CartReplaceSerializer
from .services import clear_cart, delete_item, get_cart, replace_cart, require_member

logger = logging.getLogger("kso.cart")

ErrorSerializer = inline_serializer(name="CartError", fields={"detail": rf_serializers.CharField()})
SuccessSerializer = inline_serializer(name="CartSuccess", fields={"success": rf_serializers.BooleanField()})


def storage_error_response(exc: Exception, *, detail: str, user) -> Response:
    """Map a cart storage failure to a response."""

    if isinstance(exc, StorageUnavailable):
        return Response({"detail": exc.detail}, status=exc.status_code)
    logger.exception("cart.storage_error", extra={"event": "cart.storage_error", "user_id": getattr(user, "id", None)})
    return Response({"detail": detail}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class MemberCartView(APIView):
    """Resolves the cart owner before the handler runs; anonymous callers get 401."""

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        require_member(request.user)


class CartView(MemberCartView):
    """Read, replace or clear the member's cart."""

    def get_throttles(self):
        self.throttle_scope = "cart" if self.request.method == "GET" else "cart_write"
        return super().get_throttles()

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get cart",
        description="Returns the member's cart items, oldest first.",
        responses={
            200: CartItemReadSerializer(many=True),
            401: ErrorSerializer,
            503: ErrorSerializer,
        },
        examples=[
            OpenApiExample(
                "Cart",
                value=[
                    {
                        "id": "prod_123-456",
                        "name": "KSO Hoodie - Black / M",
                        "price": 45.0,
                        "image": "https://files.example.com/hoodie.png",
                        "quantity": 2,
                        "stripe_price_id": "price_abc",
                    }
                ],
                response_only=True,
            )
        ],
    )
    def get(self, request):
        try:
            items = get_cart(user=request.user)
        except (StorageUnavailable, DatabaseError) as exc:
            return storage_error_response(exc, detail="Failed to fetch cart", user=request.user)
        return Response(CartItemReadSerializer(items, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Replace cart",
        description=(
            "Makes the stored cart equal to `items`. Existing rows are upserted on "
            "(product, variant); rows missing from `items` are removed. An empty list clears the cart."
        ),
        request=CartReplaceSerializer,
        responses={200: SuccessSerializer, 400: ErrorSerializer, 401: ErrorSerializer, 503: ErrorSerializer},
        examples=[
            OpenApiExample(
                "Replace",
                value={
                    "items": [
                        {
                            "id": "prod_123-456",
                            "name": "KSO Hoodie - Black / M",
                            "price": "45.00",
                            "image": "https://files.example.com/hoodie.png",
                            "quantity": 1,
                            "stripe_price_id": "price_abc",
                        }
                    ]
                },
                request_only=True,
            ),
            OpenApiExample("Saved", value={"success": True}, response_only=True),
        ],
    )
    def post(self, request):
        serializer = CartReplaceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            replace_cart(user=request.user, items=serializer.validated_data["items"])
        except (StorageUnavailable, DatabaseError) as exc:
            return storage_error_response(exc, detail="Failed to save cart", user=request.user)
        return Response({"success": True}, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Clear cart",
        responses={200: SuccessSerializer, 401: ErrorSerializer, 503: ErrorSerializer},
        examples=[OpenApiExample("Cleared", value={"success": True})],
    )
    def delete(self, request):
        try:
            clear_cart(user=request.user)
        except (StorageUnavailable, DatabaseError) as exc:
            return storage_error_response(exc, detail="Failed to clear cart", user=request.user)
        return Response({"success": True}, status=status.HTTP_200_OK)


class CartItemDeleteView(MemberCartView):
    """Remove one item, addressed by its composite id."""

    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Delete cart item",
        description=(
            "Deletes the row for `productId-variantId` (or `productId` for items without a variant). "
            "Only that exact row is removed; other variants of the same product stay in the cart."
        ),
        responses={200: SuccessSerializer, 401: ErrorSerializer, 503: ErrorSerializer},
        examples=[OpenApiExample("Removed", value={"success": True})],
    )
    def delete(self, request, item_id: str):
        try:
            delete_item(user=request.user, composite_id=item_id)
        except (StorageUnavailable, DatabaseError) as exc:
            return storage_error_response(exc, detail="Failed to delete cart item", user=request.user)
        return Response({"success": True}, status=status.HTTP_200_OK)
