"""Order record writer and request idempotency helpers."""

import hashlib
import json
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional, Tuple

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from .models import IdempotencyKey, Order

logger = logging.getLogger("kso.orders")


def get_order_by_session(*, session_id: str) -> Optional[Order]:
    return Order.objects.filter(stripe_session_id=session_id).first()


def create_order(
    *,
    session_id: str,
    customer_email: str,
    items: list,
    customer_name: str = "",
    amount_total: Optional[int] = None,
    shipping_address: Optional[dict] = None,
    user=None,
) -> Order:
    """Insert the order for a paid checkout session.

    The status is left to its storage default (pending). `amount_total` is in
    minor units. If a row for `session_id` already exists it is returned
    unchanged.
    """

    total = (Decimal(amount_total) / 100) if amount_total else Decimal("0.00")
    try:
        with transaction.atomic():
            order = Order.objects.create(
                stripe_session_id=session_id,
                user=user,
                customer_email=customer_email,
                customer_name=customer_name or "",
                total_amount=total,
                shipping_address=shipping_address,
                items=items,
            )
    except IntegrityError:
        order = Order.objects.get(stripe_session_id=session_id)
        logger.info(
            "order.duplicate_session",
            extra={"event": "order.duplicate_session", "order_id": order.id, "stripe_session_id": session_id},
        )
        return order

    logger.info(
        "order.created",
        extra={
            "event": "order.created",
            "order_id": order.id,
            "stripe_session_id": session_id,
            "user_id": order.user_id,
            "total_amount": str(total),
        },
    )
    return order


def mark_order_processing(*, order: Order, fulfillment_order_id) -> bool:
    """Move the order to processing and attach the fulfillment order id.

    A storage failure here is logged and reported as False, never raised:
    the payment and the fulfillment order both exist by this point.
    """

    prev = order.status
    fulfillment_order_id = str(fulfillment_order_id)
    try:
        Order.objects.filter(pk=order.pk).update(
            status=Order.STATUS_PROCESSING,
            fulfillment_order_id=fulfillment_order_id,
            updated_at=timezone.now(),
        )
    except DatabaseError:
        logger.exception(
            "order.status_update_failed",
            extra={
                "event": "order.status_update_failed",
                "order_id": order.id,
                "fulfillment_order_id": fulfillment_order_id,
            },
        )
        return False

    order.status = Order.STATUS_PROCESSING
    order.fulfillment_order_id = fulfillment_order_id
    logger.info(
        "order_status_changed",
        extra={
            "event": "order_status_changed",
            "order_id": order.id,
            "user_id": order.user_id,
            "status_from": prev,
            "status_to": order.status,
            "fulfillment_order_id": fulfillment_order_id,
        },
    )
    return True


def with_idempotency(
    *,
    key: str,
    user,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - Scope is derived from the caller: for authenticated users, "user:<id>"; otherwise "anon".
    - If a record exists and the stored `request_hash` differs from the provided one, returns 409.
    - If a record exists but response is not yet stored, returns 409 to indicate in-progress.
    - Server errors (5xx or an exception from `handler`) release the key so the client may retry.
    """

    scope = f"user:{getattr(user, 'id', None)}" if getattr(user, "id", None) else "anon"
    method = str(method).upper()
    path = str(path)

    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                user=user if getattr(user, "id", None) else None,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                expires_at=timezone.now() + timedelta(hours=24),
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        # Guard against key reuse with different fingerprints
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return {"detail": "Idempotency key reused with different request payload"}, 409
        if idem.response_json is not None and idem.response_code is not None:
            return idem.response_json, int(idem.response_code)
        return {"detail": "Request in progress"}, 409

    try:
        body, code = handler()
    except Exception:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        raise

    if code >= 500:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        return body, code

    def _json_safe(value):
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, dict):
            return {k: _json_safe(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [_json_safe(v) for v in value]
        return value

    IdempotencyKey.objects.filter(id=idem.id).update(response_json=_json_safe(body), response_code=code)
    return body, code


def compute_request_hash(data: Optional[dict]) -> Optional[str]:
    """Compute a canonical SHA256 hash of the request body.

    Uses sorted keys JSON representation to stabilize the hash across equivalent payloads.
    Returns None when data is falsy.
    """
    if not data:
        return None
    try:
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
