"""Orders API endpoints: checkout session creation, the Stripe webhook and order lookup."""

from common.exceptions import InvalidSignature, ShopError
from django.http import Http404
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import generics
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from .checkout import create_checkout_session
from .models import Order
from .serializers import CheckoutRequestSerializer, OrderSerializer, OrderSummarySerializer
from .services import compute_request_hash, with_idempotency
from .webhooks import handle_event, verify_event

ErrorSerializer = inline_serializer(name="OrdersError", fields={"detail": rf_serializers.CharField()})


class CheckoutSessionView(APIView):
    """Create a hosted checkout session for the posted cart.

    Idempotent when `Idempotency-Key` is provided; the key is also forwarded to Stripe.
    """

    permission_classes = [AllowAny]
    throttle_scope = "checkout"

    @extend_schema(
        tags=["Checkout"],
        summary="Create checkout session",
        description=(
            "Creates a Stripe Checkout session for `items` and returns its id and redirect URL. "
            "The stored cart is not modified."
        ),
        request=CheckoutRequestSerializer,
        parameters=[
            OpenApiParameter(
                name="Idempotency-Key",
                location=OpenApiParameter.HEADER,
                required=False,
                description="Makes the request idempotent within scope+path+method",
                type=str,
            )
        ],
        responses={
            200: inline_serializer(
                name="CheckoutSession",
                fields={"sessionId": rf_serializers.CharField(), "url": rf_serializers.URLField()},
            ),
            400: ErrorSerializer,
            502: ErrorSerializer,
        },
        examples=[
            OpenApiExample(
                "Checkout",
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
                    ],
                    "customerEmail": "member@example.com",
                },
                request_only=True,
            ),
            OpenApiExample(
                "Session",
                value={"sessionId": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"},
                response_only=True,
            ),
            OpenApiExample("Failure", value={"detail": "Failed to create checkout session"}, response_only=True),
        ],
    )
    def post(self, request):
        if not request.data.get("items"):
            return Response({"detail": "No items in cart"}, status=status.HTTP_400_BAD_REQUEST)
        if not request.data.get("customerEmail"):
            return Response({"detail": "Customer email is required"}, status=status.HTTP_400_BAD_REQUEST)
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        idem_key = request.headers.get("Idempotency-Key")

        def _handler():
            try:
                session = create_checkout_session(
                    items=serializer.validated_data["items"],
                    customer_email=serializer.validated_data["customerEmail"],
                    user=request.user,
                    idempotency_key=idem_key,
                )
            except ShopError as exc:
                return {"detail": exc.detail}, exc.status_code
            return {"sessionId": session["session_id"], "url": session["url"]}, 200

        if idem_key:
            body, code = with_idempotency(
                key=idem_key,
                user=request.user,
                path=str(request.path),
                method=str(request.method),
                request_hash=compute_request_hash(getattr(request, "data", None)),
                handler=_handler,
            )
            return Response(body, status=code)

        body, code = _handler()
        return Response(body, status=code)


class StripeWebhookView(APIView):
    """Receive Stripe events.

    The signature is checked over the raw request body, so this view never
    touches `request.data`.
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "webhook"

    @extend_schema(
        tags=["Checkout"],
        summary="Stripe webhook",
        description=(
            "Verifies `Stripe-Signature` and dispatches the event. Only `checkout.session.completed` "
            "triggers fulfillment. Any verified event is answered with 200; `fulfilled` and `reason` "
            "report what happened."
        ),
        request=None,
        responses={
            200: inline_serializer(
                name="WebhookAck",
                fields={
                    "received": rf_serializers.BooleanField(),
                    "acknowledged": rf_serializers.BooleanField(),
                    "fulfilled": rf_serializers.BooleanField(),
                    "reason": rf_serializers.CharField(allow_null=True),
                },
            ),
            400: ErrorSerializer,
        },
        examples=[
            OpenApiExample(
                "Fulfilled",
                value={"received": True, "acknowledged": True, "fulfilled": True, "reason": None},
                response_only=True,
            ),
            OpenApiExample(
                "Not fulfilled",
                value={"received": True, "acknowledged": True, "fulfilled": False, "reason": "no_fulfillable_items"},
                response_only=True,
            ),
        ],
    )
    def post(self, request):
        try:
            event = verify_event(request.body, request.headers.get("Stripe-Signature"))
        except InvalidSignature as exc:
            return Response({"detail": exc.detail}, status=exc.status_code)
        result = handle_event(event)
        return Response(result.as_response(), status=status.HTTP_200_OK)


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class OrderListView(generics.ListAPIView):
    """List the authenticated member's orders.

    Filters:
    - `status`: one of the OrderStatus values
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = DefaultPagination
    throttle_scope = "orders"

    def get_queryset(self):
        qs = Order.objects.filter(user_id=self.request.user.id).order_by("-id")
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs

    @extend_schema(
        tags=["Orders"],
        summary="List orders",
        description="List current member's orders, newest first.",
        parameters=[
            OpenApiParameter(name="status", description="Order status filter", required=False, type=str),
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderBySessionView(generics.RetrieveAPIView):
    """Order summary for the checkout success page."""

    permission_classes = [AllowAny]
    serializer_class = OrderSummarySerializer
    throttle_scope = "orders"

    def get_object(self):
        try:
            return Order.objects.get(stripe_session_id=self.kwargs["session_id"])
        except Order.DoesNotExist:
            raise Http404("Not found.")

    @extend_schema(
        tags=["Orders"],
        summary="Get order by checkout session",
        description="Returns status, total and items for the order created from a checkout session. 404 until the webhook has recorded it.",
        examples=[
            OpenApiExample(
                "Processing",
                value={
                    "stripe_session_id": "cs_test_123",
                    "status": "processing",
                    "total_amount": 55.0,
                    "items": [{"id": "p1-v1", "quantity": 2, "stripe_price_id": "price_1"}],
                    "created_at": "2025-01-01T12:00:00Z",
                },
                response_only=True,
            )
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)
