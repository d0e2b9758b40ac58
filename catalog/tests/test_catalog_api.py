from unittest import mock

import pytest
import stripe
from catalog.tests.factories import listing
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework.throttling import AnonRateThrottle, ScopedRateThrottle


def listing_page(listings):
    return mock.Mock(auto_paging_iter=mock.Mock(return_value=iter(listings)))


@pytest.mark.django_db
def test_products_endpoint_returns_grouped_products():
    listings = [
        listing("KSO Hoodie - Black / M", unit_amount=4500, metadata={"printful_product_id": "101"}),
        listing("KSO Hoodie - Black / L", unit_amount=4500, metadata={"printful_product_id": "101"}),
    ]
    with mock.patch("stripe.Product.list", return_value=listing_page(listings)) as product_list:
        r = APIClient().get("/api/v1/catalog/products/")

    assert r.status_code == 200
    data = r.json()
    assert len(data) == 1
    assert data[0]["name"] == "KSO Hoodie"
    assert data[0]["price"] == 45.0
    assert data[0]["inventory_count"] == 999
    assert [v["name"] for v in data[0]["variants"]] == ["Black / M", "Black / L"]
    product_list.assert_called_once_with(active=True, expand=["data.default_price"], limit=100)


@pytest.mark.django_db
def test_products_endpoint_failure_returns_500_without_partial_results():
    with mock.patch("stripe.Product.list", side_effect=stripe.APIConnectionError("network down")):
        r = APIClient().get("/api/v1/catalog/products/")

    assert r.status_code == 500
    assert r.json() == {"detail": "Failed to fetch products"}


@pytest.mark.django_db
def test_malformed_listing_is_reported_as_failure():
    broken = listing("KSO Hoodie - Black / M")
    del broken["id"]
    with mock.patch("stripe.Product.list", return_value=listing_page([broken])):
        r = APIClient().get("/api/v1/catalog/products/")

    assert r.status_code == 500


@pytest.mark.django_db
def test_sync_endpoint_requires_shop_admin():
    from users.tests.factories import UserFactory

    client = APIClient()
    client.force_authenticate(user=UserFactory())

    r = client.post("/api/v1/catalog/sync/")

    assert r.status_code == 403


@pytest.mark.django_db
def test_products_endpoint_is_limited_by_catalog_scope_only():
    cache.clear()
    rates = {"catalog": "2/min", "anon": "1/min"}
    with mock.patch.object(ScopedRateThrottle, "THROTTLE_RATES", rates), mock.patch.object(
        AnonRateThrottle, "THROTTLE_RATES", rates
    ), mock.patch("stripe.Product.list", side_effect=lambda **kw: listing_page([])):
        client = APIClient()
        codes = [client.get("/api/v1/catalog/products/").status_code for _ in range(3)]

    assert codes == [200, 200, 429]
    cache.clear()
