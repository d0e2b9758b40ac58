"""Shared enumerations and choices used across apps."""

from django.db import models


class UserType(models.TextChoices):
    """Membership categories shown on profiles and the member directory."""

    UNDERGRAD = "undergrad", "Undergrad"
    GRAD = "grad", "Grad"
    ALUMNI = "alumni", "Alumni"
    BOARD_MEMBER = "board_member", "Board member"


class OrderStatus(models.TextChoices):
    """Lifecycle statuses for shop orders.

    Only PENDING (storage default) and PROCESSING are set by this service;
    the remaining values are maintained by operators.
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    FULFILLED = "fulfilled", "Fulfilled"
    CANCELLED = "cancelled", "Cancelled"


class WebhookOutcome(models.TextChoices):
    """Reasons recorded on a payment event when it did not fulfill."""

    IGNORED = "ignored", "Ignored event type"
    DUPLICATE = "duplicate", "Duplicate delivery"
    IN_PROGRESS = "in_progress", "Delivery still in progress"
    MISSING_ORDER_INFORMATION = "missing_order_information", "Missing order information"
    NO_FULFILLABLE_ITEMS = "no_fulfillable_items", "No fulfillable items"
    FULFILLMENT_FAILED = "fulfillment_failed", "Fulfillment partner error"
    ORDER_WRITE_FAILED = "order_write_failed", "Order record write failed"
