from decimal import Decimal

from common.choices import OrderStatus, WebhookOutcome
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Order(TimeStampedModel):
    """One paid checkout session.

    `items` is the cart snapshot recovered from the checkout session and
    `shipping_address` the address Stripe collected; both are stored as JSON
    exactly as received.
    """

    STATUS_PENDING = OrderStatus.PENDING
    STATUS_PROCESSING = OrderStatus.PROCESSING
    STATUS_FULFILLED = OrderStatus.FULFILLED
    STATUS_CANCELLED = OrderStatus.CANCELLED
    STATUS_CHOICES = OrderStatus.choices

    stripe_session_id = models.CharField(max_length=255, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="orders", on_delete=models.SET_NULL
    )
    customer_email = models.EmailField()
    customer_name = models.CharField(max_length=255, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping_address = models.JSONField(null=True, blank=True)
    items = models.JSONField(default=list)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    fulfillment_order_id = models.CharField(max_length=64, null=True, blank=True)

    class Meta:
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["user", "status", "created_at"], name="order_user_status_created_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order#{self.id} session={self.stripe_session_id} status={self.status}"


class PaymentEvent(TimeStampedModel):
    """Outcome of one verified Stripe webhook delivery.

    `fulfilled=False` with a `reason` marks a paid-but-unfulfilled session
    that needs operator follow-up.
    """

    REASON_CHOICES = WebhookOutcome.choices

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=128)
    stripe_session_id = models.CharField(max_length=255, blank=True, db_index=True)
    acknowledged = models.BooleanField(default=True)
    fulfilled = models.BooleanField(default=False)
    reason = models.CharField(max_length=64, choices=REASON_CHOICES, blank=True)
    detail = models.TextField(blank=True)
    order = models.ForeignKey(Order, null=True, blank=True, related_name="payment_events", on_delete=models.SET_NULL)

    class Meta:
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["fulfilled", "event_type"], name="payment_event_fulfilled_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"PaymentEvent#{self.id} {self.event_type} fulfilled={self.fulfilled} reason={self.reason}"


class IdempotencyKey(TimeStampedModel):
    """Stores idempotent request results to prevent duplicate processing."""

    key = models.CharField(max_length=128)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.CASCADE)
    scope = models.CharField(max_length=128)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=16)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    response_code = models.IntegerField(null=True, blank=True)
    response_json = models.JSONField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["key", "scope", "path", "method"], name="uniq_idem_scope_path_method"),
        ]
