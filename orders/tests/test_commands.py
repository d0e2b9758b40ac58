import json
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone
from orders.models import IdempotencyKey, PaymentEvent


@pytest.mark.django_db
def test_list_unfulfilled_reports_failed_sessions_only():
    PaymentEvent.objects.create(
        event_id="evt_1",
        event_type="checkout.session.completed",
        stripe_session_id="cs_failed",
        reason="fulfillment_failed",
        detail="Printful API error",
    )
    PaymentEvent.objects.create(
        event_id="evt_2", event_type="checkout.session.completed", stripe_session_id="cs_ok", fulfilled=True
    )
    PaymentEvent.objects.create(
        event_id="evt_3", event_type="checkout.session.completed", stripe_session_id="cs_ok", reason="duplicate"
    )
    PaymentEvent.objects.create(event_id="evt_4", event_type="payment_intent.succeeded", reason="ignored")
    out = StringIO()

    call_command("list_unfulfilled", "--json", stdout=out)

    rows = [json.loads(line) for line in out.getvalue().splitlines()]
    assert [r["stripe_session_id"] for r in rows] == ["cs_failed"]
    assert rows[0]["reason"] == "fulfillment_failed"


@pytest.mark.django_db
def test_list_unfulfilled_filters_by_reason():
    PaymentEvent.objects.create(
        event_id="evt_1", event_type="checkout.session.completed", stripe_session_id="cs_a", reason="fulfillment_failed"
    )
    PaymentEvent.objects.create(
        event_id="evt_2", event_type="checkout.session.completed", stripe_session_id="cs_b", reason="no_fulfillable_items"
    )
    out = StringIO()

    call_command("list_unfulfilled", "--reason", "no_fulfillable_items", stdout=out)

    assert "cs_b" in out.getvalue()
    assert "cs_a" not in out.getvalue()
    assert "1 unfulfilled checkout sessions." in out.getvalue()


@pytest.mark.django_db
def test_cleanup_idempotency_deletes_expired_keys():
    now = timezone.now()
    IdempotencyKey.objects.create(key="old", scope="anon", path="/x", method="POST", expires_at=now - timedelta(hours=1))
    IdempotencyKey.objects.create(key="new", scope="anon", path="/x", method="POST", expires_at=now + timedelta(hours=1))
    out = StringIO()

    call_command("cleanup_idempotency", "--dry-run", stdout=out)
    assert IdempotencyKey.objects.count() == 2
    assert "1 expired" in out.getvalue()

    call_command("cleanup_idempotency", stdout=out)
    assert list(IdempotencyKey.objects.values_list("key", flat=True)) == ["new"]
