"""Stripe webhook verification and dispatch.

Once a delivery is verified it is always acknowledged. Fulfillment failures
are logged and stored on its `PaymentEvent` row instead of being returned to
Stripe, so a Stripe retry never produces a second Printful order. Each event
id is processed at most once.
"""

import logging
from dataclasses import dataclass, field

from common.choices import WebhookOutcome
from common.exceptions import InvalidSignature, ShopError
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction
from integrations.stripe_api import as_dict, get_stripe

from .checkout import decode_cart_metadata
from .fulfillment import shipping_details, submit_fulfillment_order
from .models import PaymentEvent
from .services import create_order, get_order_by_session, mark_order_processing

logger = logging.getLogger("kso.orders")

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass
class WebhookResult:
    acknowledged: bool = True
    fulfilled: bool = False
    reason: str = ""
    detail: str = ""
    order_id: int | None = field(default=None, repr=False)

    def as_response(self) -> dict:
        return {
            "received": True,
            "acknowledged": self.acknowledged,
            "fulfilled": self.fulfilled,
            "reason": self.reason or None,
        }


def verify_event(payload: bytes, signature: str | None) -> dict:
    """Check the signature over the raw body and return the parsed event."""

    if not signature:
        raise InvalidSignature()
    stripe = get_stripe()
    try:
        event = stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (stripe.SignatureVerificationError, ValueError) as exc:
        logger.warning("webhook.invalid_signature", extra={"event": "webhook.invalid_signature", "error": str(exc)})
        raise InvalidSignature() from exc
    return as_dict(event)


def resolve_user(session: dict):
    """Member who started checkout, from `client_reference_id`."""

    ref = session.get("client_reference_id")
    if not ref:
        return None
    User = get_user_model()
    try:
        return User.objects.filter(pk=int(ref)).first()
    except (TypeError, ValueError):
        return None


def fulfill_session(session: dict, *, printful=None) -> WebhookResult:
    """Submit the Printful order for a completed session and record the order.

    Raises `ShopError` subclasses when no Printful order was placed.
    """

    session_id = session["id"]
    if get_order_by_session(session_id=session_id) is not None:
        logger.info(
            "webhook.order_exists",
            extra={"event": "webhook.order_exists", "stripe_session_id": session_id},
        )
        return WebhookResult(reason=WebhookOutcome.DUPLICATE)

    items = decode_cart_metadata(session.get("metadata"))
    printful_order = submit_fulfillment_order(session, items, printful=printful)

    customer = session.get("customer_details") or {}
    try:
        order = create_order(
            session_id=session_id,
            customer_email=customer.get("email"),
            customer_name=customer.get("name") or "",
            amount_total=session.get("amount_total"),
            shipping_address=shipping_details(session).get("address"),
            items=items,
            user=resolve_user(session),
        )
    except DatabaseError as exc:
        logger.exception(
            "order.write_failed",
            extra={
                "event": "order.write_failed",
                "stripe_session_id": session_id,
                "printful_order_id": printful_order.get("id"),
            },
        )
        return WebhookResult(fulfilled=True, reason=WebhookOutcome.ORDER_WRITE_FAILED, detail=str(exc))

    mark_order_processing(order=order, fulfillment_order_id=printful_order.get("id"))
    return WebhookResult(fulfilled=True, order_id=order.id)


def claim_event(event: dict):
    """Create the ledger row for `event`; returns (row, created)."""

    session = (event.get("data") or {}).get("object") or {}
    is_session_event = (event.get("type") or "").startswith("checkout.session.")
    try:
        with transaction.atomic():
            record = PaymentEvent.objects.create(
                event_id=event["id"],
                event_type=event.get("type") or "",
                stripe_session_id=(session.get("id") or "") if is_session_event else "",
            )
    except IntegrityError:
        return PaymentEvent.objects.get(event_id=event["id"]), False
    return record, True


def handle_event(event: dict, *, printful=None) -> WebhookResult:
    """Dispatch a verified event and record the outcome."""

    record, created = claim_event(event)
    if not created:
        logger.info(
            "webhook.redelivered",
            extra={"event": "webhook.redelivered", "event_id": record.event_id, "event_type": record.event_type},
        )
        # A row with neither outcome nor reason was claimed by a delivery that has not finished.
        reason = record.reason or ("" if record.fulfilled else WebhookOutcome.IN_PROGRESS)
        return WebhookResult(fulfilled=record.fulfilled, reason=reason, order_id=record.order_id)

    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED:
        result = WebhookResult(reason=WebhookOutcome.IGNORED)
    else:
        session = event["data"]["object"]
        try:
            result = fulfill_session(session, printful=printful)
        except ShopError as exc:
            logger.error(
                "fulfillment.failed",
                extra={
                    "event": "fulfillment.failed",
                    "event_id": event["id"],
                    "stripe_session_id": session.get("id"),
                    "reason": exc.reason,
                    "error": exc.detail,
                },
            )
            result = WebhookResult(reason=exc.reason, detail=exc.detail)
        except Exception as exc:
            logger.exception(
                "fulfillment.failed",
                extra={
                    "event": "fulfillment.failed",
                    "event_id": event["id"],
                    "stripe_session_id": session.get("id"),
                    "reason": WebhookOutcome.FULFILLMENT_FAILED,
                    "error": str(exc),
                },
            )
            result = WebhookResult(reason=WebhookOutcome.FULFILLMENT_FAILED, detail=str(exc) or type(exc).__name__)

    record.fulfilled = result.fulfilled
    record.reason = result.reason
    record.detail = result.detail
    record.order_id = result.order_id
    record.save(update_fields=["fulfilled", "reason", "detail", "order", "updated_at"])

    logger.info(
        "webhook.processed",
        extra={
            "event": "webhook.processed",
            "event_id": record.event_id,
            "event_type": event_type,
            "fulfilled": result.fulfilled,
            "reason": result.reason,
            "order_id": result.order_id,
        },
    )
    return result
