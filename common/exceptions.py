"""Domain errors shared by the cart, catalog, checkout and fulfillment code.

Services raise these. Views translate them into `{"detail": ...}` responses
using `status_code`, or let `shop_exception_handler` do it; the webhook
dispatcher records `reason`.
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class ShopError(Exception):
    """Base class for expected failures of the shop pipeline."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    reason = "error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(ShopError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "User not authenticated"
    reason = "unauthenticated"


class ValidationError(ShopError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"
    reason = "missing_order_information"


class InvalidSignature(ShopError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Webhook signature verification failed"
    reason = "invalid_signature"


class StorageUnavailable(ShopError):
    """The backing table is missing: a deployment error, not a runtime one."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Cart table not found. Please contact administrator."
    reason = "storage_unavailable"


class UpstreamError(ShopError):
    """A payment processor or fulfillment partner call failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service error"
    reason = "fulfillment_failed"


class CatalogError(UpstreamError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Failed to fetch products"


class CheckoutError(UpstreamError):
    default_detail = "Failed to create checkout session"


class NoFulfillableItems(ShopError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "No valid Printful items found"
    reason = "no_fulfillable_items"


def shop_exception_handler(exc, context):
    """DRF exception handler that also renders `ShopError` as `{"detail": ...}`."""

    if isinstance(exc, ShopError):
        return Response({"detail": exc.detail}, status=exc.status_code)
    return exception_handler(exc, context)
