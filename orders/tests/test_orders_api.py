import pytest
from orders.models import Order
from orders.tests.factories import OrderFactory
from rest_framework.test import APIClient
from users.tests.factories import UserFactory


@pytest.fixture
def member():
    return UserFactory()


@pytest.fixture
def client(member):
    c = APIClient()
    c.force_authenticate(user=member)
    return c


@pytest.mark.django_db
def test_order_list_shows_only_own_orders(client, member):
    mine = OrderFactory(user=member)
    OrderFactory(user=UserFactory())
    OrderFactory(user=None)

    r = client.get("/api/v1/orders/")

    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    assert body["results"][0]["id"] == mine.id
    assert body["results"][0]["total_amount"] == 55.0


@pytest.mark.django_db
def test_order_list_filters_by_status(client, member):
    OrderFactory(user=member, status=Order.STATUS_PENDING)
    processing = OrderFactory(user=member, status=Order.STATUS_PROCESSING)

    r = client.get("/api/v1/orders/?status=processing")

    assert [o["id"] for o in r.json()["results"]] == [processing.id]


@pytest.mark.django_db
def test_order_list_requires_authentication():
    r = APIClient().get("/api/v1/orders/")

    assert r.status_code == 401


@pytest.mark.django_db
def test_order_list_accepts_user_id_header(member):
    OrderFactory(user=member)

    r = APIClient().get("/api/v1/orders/", HTTP_X_USER_ID=str(member.id))

    assert r.status_code == 200
    assert r.json()["count"] == 1


@pytest.mark.django_db
def test_order_by_session_returns_summary():
    OrderFactory(stripe_session_id="cs_test_ok", status=Order.STATUS_PROCESSING)

    r = APIClient().get("/api/v1/orders/session/cs_test_ok/")

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "processing"
    assert body["total_amount"] == 55.0
    assert "customer_email" not in body
    assert "shipping_address" not in body


@pytest.mark.django_db
def test_order_by_session_unknown_is_404():
    r = APIClient().get("/api/v1/orders/session/cs_missing/")

    assert r.status_code == 404
