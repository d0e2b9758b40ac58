import json
from unittest import mock

import pytest
import stripe
from cart.models import CartItem
from cart.tests.factories import CartItemFactory
from orders.models import IdempotencyKey
from rest_framework.test import APIClient
from users.tests.factories import UserFactory

URL = "/api/v1/checkout/"


def item(composite_id="p1-v1", *, price="20.00", quantity=2, stripe_price_id="price_1"):
    return {
        "id": composite_id,
        "name": "KSO Tee - Black / M",
        "price": price,
        "image": "https://files.example.com/tee.png",
        "quantity": quantity,
        "stripe_price_id": stripe_price_id,
    }


@pytest.fixture
def create_session():
    with mock.patch(
        "stripe.checkout.Session.create",
        return_value={"id": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1"},
    ) as create:
        yield create


@pytest.mark.django_db
def test_checkout_returns_session_id_and_url(create_session):
    r = APIClient().post(URL, {"items": [item()], "customerEmail": "a@b.com"}, format="json")

    assert r.status_code == 200
    assert r.json() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1"}

    params = create_session.call_args.kwargs
    assert params["mode"] == "payment"
    assert params["line_items"] == [{"price": "price_1", "quantity": 2}]
    assert params["customer_email"] == "a@b.com"
    assert params["success_url"] == "https://shop.example.com/shop/success?session_id={CHECKOUT_SESSION_ID}"
    assert params["cancel_url"] == "https://shop.example.com/shop"
    assert params["shipping_address_collection"] == {"allowed_countries": ["US", "CA"]}
    assert json.loads(params["metadata"]["items"]) == [{"id": "p1-v1", "quantity": 2, "stripe_price_id": "price_1"}]
    assert "client_reference_id" not in params
    assert "idempotency_key" not in params


@pytest.mark.django_db
def test_items_without_price_id_use_inline_price_data(create_session):
    r = APIClient().post(
        URL, {"items": [item("p2", price="15.00", quantity=1, stripe_price_id=None)], "customerEmail": "a@b.com"}, format="json"
    )

    assert r.status_code == 200
    (line,) = create_session.call_args.kwargs["line_items"]
    assert line == {
        "price_data": {
            "currency": "usd",
            "product_data": {"name": "KSO Tee - Black / M", "images": ["https://files.example.com/tee.png"]},
            "unit_amount": 1500,
        },
        "quantity": 1,
    }


@pytest.mark.django_db
@pytest.mark.parametrize(
    "body,detail",
    [
        ({"items": [], "customerEmail": "a@b.com"}, "No items in cart"),
        ({"customerEmail": "a@b.com"}, "No items in cart"),
        ({"items": [item()]}, "Customer email is required"),
        ({"items": [item()], "customerEmail": ""}, "Customer email is required"),
    ],
)
def test_checkout_rejects_incomplete_requests(create_session, body, detail):
    r = APIClient().post(URL, body, format="json")

    assert r.status_code == 400
    assert r.json() == {"detail": detail}
    create_session.assert_not_called()


@pytest.mark.django_db
def test_stripe_failure_returns_502_and_leaves_cart_alone():
    member = UserFactory()
    CartItemFactory(user=member, product_id="p1", variant_id="v1")
    client = APIClient()
    client.force_authenticate(user=member)

    with mock.patch("stripe.checkout.Session.create", side_effect=stripe.APIConnectionError("network down")):
        r = client.post(URL, {"items": [item()], "customerEmail": "a@b.com"}, format="json")

    assert r.status_code == 502
    assert r.json() == {"detail": "Failed to create checkout session"}
    assert CartItem.objects.filter(user=member).count() == 1


@pytest.mark.django_db
def test_authenticated_checkout_carries_member_reference(create_session):
    member = UserFactory()
    client = APIClient()
    client.force_authenticate(user=member)

    client.post(URL, {"items": [item()], "customerEmail": member.email}, format="json")

    assert create_session.call_args.kwargs["client_reference_id"] == str(member.id)


@pytest.mark.django_db
def test_idempotency_key_replays_first_response(create_session):
    client = APIClient()
    body = {"items": [item()], "customerEmail": "a@b.com"}

    first = client.post(URL, body, format="json", HTTP_IDEMPOTENCY_KEY="checkout-1")
    second = client.post(URL, body, format="json", HTTP_IDEMPOTENCY_KEY="checkout-1")

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert create_session.call_count == 1
    assert create_session.call_args.kwargs["idempotency_key"] == "checkout-1"


@pytest.mark.django_db
def test_idempotency_key_reused_with_other_payload_conflicts(create_session):
    client = APIClient()
    client.post(URL, {"items": [item()], "customerEmail": "a@b.com"}, format="json", HTTP_IDEMPOTENCY_KEY="k")

    r = client.post(URL, {"items": [item(quantity=5)], "customerEmail": "a@b.com"}, format="json", HTTP_IDEMPOTENCY_KEY="k")

    assert r.status_code == 409


@pytest.mark.django_db
def test_failed_checkout_releases_idempotency_key():
    client = APIClient()
    body = {"items": [item()], "customerEmail": "a@b.com"}

    with mock.patch("stripe.checkout.Session.create", side_effect=stripe.APIConnectionError("down")):
        r = client.post(URL, body, format="json", HTTP_IDEMPOTENCY_KEY="retry-me")
    assert r.status_code == 502
    assert not IdempotencyKey.objects.filter(key="retry-me").exists()

    with mock.patch("stripe.checkout.Session.create", return_value={"id": "cs_test_2", "url": "https://x"}):
        r = client.post(URL, body, format="json", HTTP_IDEMPOTENCY_KEY="retry-me")
    assert r.status_code == 200
    assert r.json()["sessionId"] == "cs_test_2"


@pytest.mark.django_db
def test_oversized_cart_is_rejected_before_calling_stripe(create_session):
    items = [item(f"prod_{'x' * 200}-{n}", quantity=1) for n in range(120)]

    r = APIClient().post(URL, {"items": items, "customerEmail": "a@b.com"}, format="json")

    assert r.status_code == 400
    assert r.json() == {"detail": "Cart is too large to check out in one order"}
    create_session.assert_not_called()
